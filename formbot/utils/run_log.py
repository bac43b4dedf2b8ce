"""Run logging: live console output plus an in-memory transcript.

Every status line logged under the ``formbot`` logger goes to stdout and is
also kept in a buffer, which is written to a text file when the run ends.
"""

import logging
import sys
from pathlib import Path
from typing import List, Union

ROOT_LOGGER_NAME = "formbot"
LOG_FORMAT = "%(message)s"


class TranscriptHandler(logging.Handler):
    """Logging handler that keeps every formatted record in memory."""

    def __init__(self, level: int = logging.NOTSET):
        super().__init__(level)
        self.lines: List[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.lines.append(self.format(record))
        except Exception:
            self.handleError(record)

    def clear(self) -> None:
        self.lines.clear()

    def text(self) -> str:
        return "\n".join(self.lines)


def configure_run_logging(level: Union[int, str] = logging.INFO) -> TranscriptHandler:
    """Attach a console handler and a fresh transcript handler to the formbot logger.

    Calling this again replaces the handlers installed by a previous call,
    so each run starts with an empty transcript.

    Returns:
        The transcript handler collecting this run's output.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        if getattr(handler, "_formbot_run_handler", False):
            root.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    console._formbot_run_handler = True  # type: ignore[attr-defined]

    transcript = TranscriptHandler()
    transcript.setFormatter(formatter)
    transcript._formbot_run_handler = True  # type: ignore[attr-defined]

    root.addHandler(console)
    root.addHandler(transcript)
    root.setLevel(level)
    root.propagate = False
    return transcript


def write_transcript(transcript: TranscriptHandler, output_path: Union[str, Path]) -> Path:
    """Write the buffered transcript to ``output_path``."""
    path = Path(output_path)
    path.write_text(transcript.text(), encoding="utf-8")
    # Console only, the transcript is already on disk
    print(f"Log written to: {path}")
    return path
