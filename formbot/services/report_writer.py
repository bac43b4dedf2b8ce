"""Write analysis and evaluation results to CSV and JSON.

CSV files start with a UTF-8 byte order mark so spreadsheet tools detect
the encoding. The analysis CSV uses the same columns as the reviewer
spreadsheet, followed by extra metadata columns.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydantic import TypeAdapter

from formbot.models.classification import MachineRecord
from formbot.models.evaluation import AnalysisSummary, ComparisonRecord, EvaluationSummary
from formbot.services.form_analyzer import display_name_for
from formbot.utils.normalizers import DEFAULT_CONFIDENCE

logger = logging.getLogger(__name__)

BOM = "\ufeff"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"
MATCH = "✓"
MISMATCH = "✗"

ANALYSIS_HEADERS = [
    "url",
    "Review: Is this a form",
    "Reviewer: Form Type",
    "Reviewer: Does this form ask for SSN, DL#, financial, health info or criminal history?",
    "Reviewer: Revisit for further review (optional)",
    "Reviewer: Notes (optional)",
    "Review: Reviewed by",
    # Additional metadata columns
    "Confidence",
    "Page Count",
    "File Size (KB)",
    "Processing Time (sec)",
    "SSN",
    "Driver's License",
    "Financial",
    "Health",
    "Criminal History",
    "Sensitive Info Summary",
    "Error",
]

COMPARISON_HEADERS = [
    "URL",
    "All Match",
    "Human: Is Form",
    "LLM: Is Form",
    "Is Form Match",
    "Human: Form Type",
    "LLM: Form Type",
    "Form Type Match",
    "Human: Sensitive",
    "LLM: Sensitive",
    "Sensitive Match",
    "Human Reviewer",
    "Human Notes",
    "LLM Notes",
]

_machine_records_adapter = TypeAdapter(List[MachineRecord])


def make_timestamp(now: Optional[datetime] = None) -> str:
    """Local-time timestamp used in output file names, e.g. 2026-01-31T09-05-07."""
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def escape_csv_field(value: object) -> str:
    """Quote a CSV field if it contains a comma, quote or line break."""
    text = "" if value is None else str(value)
    if any(ch in text for ch in (",", '"', "\n", "\r")):
        return '"' + text.replace('"', '""') + '"'
    return text


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _mark(flag: bool) -> str:
    return MATCH if flag else MISMATCH


def render_csv(headers: Sequence[str], rows: Sequence[Sequence[object]]) -> str:
    """Render header and rows as BOM-prefixed CSV text."""
    lines = [",".join(escape_csv_field(h) for h in headers)]
    lines.extend(",".join(escape_csv_field(cell) for cell in row) for row in rows)
    return BOM + "\n".join(lines)


def analysis_row(
    record: MachineRecord,
    review_threshold: float = 0.7,
) -> List[object]:
    """One analysis CSV row for ``record``."""
    confidence = record.confidence if record.confidence is not None else DEFAULT_CONFIDENCE
    flags = record.sensitivity
    return [
        record.url,
        record.is_form.value,
        record.form_type.value,
        _yes_no(flags.any()),
        "checked" if confidence < review_threshold else "",
        record.notes,
        record.model,
        f"{record.confidence:.2f}" if record.confidence is not None else "",
        record.page_count if record.page_count is not None else "",
        record.file_size_kb if record.file_size_kb is not None else "",
        f"{record.processing_time_sec:g}",
        _yes_no(flags.ssn),
        _yes_no(flags.drivers_license),
        _yes_no(flags.financial),
        _yes_no(flags.health),
        _yes_no(flags.criminal_history),
        flags.summary() or "None",
        record.error_message or "",
    ]


def comparison_row(comparison: ComparisonRecord) -> List[object]:
    """One evaluation CSV row for ``comparison``."""
    human = comparison.human
    machine = comparison.machine
    return [
        human.url,
        _mark(comparison.all_match),
        human.is_form_raw,
        machine.is_form.value,
        _mark(comparison.is_form_match),
        human.form_type_raw,
        machine.form_type.value,
        _mark(comparison.form_type_match),
        human.sensitivity_raw,
        comparison.machine_sensitivity,
        _mark(comparison.sensitivity_match),
        human.reviewer_name,
        human.notes,
        machine.notes or (f"Error: {machine.error_message}" if machine.failed else ""),
    ]


def write_analysis_csv(
    records: Sequence[MachineRecord],
    output_path: Union[str, Path],
    review_threshold: float = 0.7,
) -> Path:
    """Write analysis results as spreadsheet-compatible CSV."""
    path = Path(output_path)
    rows = [analysis_row(r, review_threshold) for r in records]
    path.write_text(render_csv(ANALYSIS_HEADERS, rows), encoding="utf-8")
    logger.info(f"\nResults written to: {path}")
    return path


def write_comparison_csv(
    comparisons: Sequence[ComparisonRecord],
    output_path: Union[str, Path],
) -> Path:
    """Write evaluation results as spreadsheet-compatible CSV."""
    path = Path(output_path)
    rows = [comparison_row(c) for c in comparisons]
    path.write_text(render_csv(COMPARISON_HEADERS, rows), encoding="utf-8")
    logger.info(f"\nComparison results written to: {path}")
    return path


def write_json(
    records: Sequence[Union[MachineRecord, ComparisonRecord]],
    output_path: Union[str, Path],
) -> Path:
    """Write records as a pretty-printed JSON array with camelCase keys."""
    path = Path(output_path)
    data = [r.model_dump(mode="json", by_alias=True) for r in records]
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info(f"JSON results written to: {path}")
    return path


def read_machine_records(input_path: Union[str, Path]) -> List[MachineRecord]:
    """Read a results JSON file written by ``write_json`` back into records."""
    content = Path(input_path).read_text(encoding="utf-8")
    return _machine_records_adapter.validate_json(content)


# ---------------------------------------------------------------------------
# Console summaries
# ---------------------------------------------------------------------------

def log_analysis_summary(summary: AnalysisSummary) -> None:
    logger.info("\nSummary:")
    logger.info(f"   Total analyzed: {summary.total}")
    logger.info(f"   Forms found: {summary.forms}")
    logger.info(f"   Errors: {summary.errors}")
    logger.info(f"   Forms with sensitive info: {summary.with_sensitive_info}")


def log_evaluation_summary(summary: EvaluationSummary) -> None:
    """Log match counts and percentages, then every mismatch."""
    logger.info("\n" + "=" * 60)
    logger.info("EVALUATION SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Total evaluated: {summary.total}")
    logger.info(f"Full matches:    {summary.all_match} ({summary.percent(summary.all_match):.1f}%)")
    logger.info(f"Is Form match:   {summary.is_form_match} ({summary.percent(summary.is_form_match):.1f}%)")
    logger.info(f"Form Type match: {summary.form_type_match} ({summary.percent(summary.form_type_match):.1f}%)")
    logger.info(f"Sensitive match: {summary.sensitivity_match} ({summary.percent(summary.sensitivity_match):.1f}%)")
    logger.info(f"Errors:          {summary.errors}")

    if not summary.mismatches:
        return

    logger.info("\nMISMATCHES:")
    for m in summary.mismatches:
        logger.info(f"\n  {display_name_for(m.url)}")
        if not m.is_form_match:
            logger.info(f'    Is Form: Human="{m.human.is_form_raw}" vs LLM="{m.machine.is_form.value}"')
        if not m.form_type_match:
            logger.info(f'    Type: Human="{m.human.form_type_raw}" vs LLM="{m.machine.form_type.value}"')
        if not m.sensitivity_match:
            logger.info(f'    Sensitive: Human="{m.human.sensitivity_raw}" vs LLM="{m.machine_sensitivity}"')
