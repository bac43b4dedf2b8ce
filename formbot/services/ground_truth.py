"""Parse the human reviewer spreadsheet (CSV export) into HumanRecords."""

import csv
import io
import logging
from pathlib import Path
from typing import List, Union

from formbot.models.evaluation import HumanRecord

logger = logging.getLogger(__name__)

URL_COLUMN = "url"
IS_FORM_COLUMN = "Review: Is this a form"
FORM_TYPE_COLUMN = "Reviewer: Form Type"
SENSITIVITY_COLUMN = (
    "Reviewer: Does this form ask for SSN, DL#, financial, health info or criminal history?"
)
REVIEWER_COLUMN = "Review: Reviewed by"
NOTES_COLUMN = "Reviewer: Notes (optional)"

BOM = "\ufeff"


def _cell(row: dict, column: str) -> str:
    value = row.get(column)
    return value.strip() if isinstance(value, str) else ""


def parse_human_reviews(content: str) -> List[HumanRecord]:
    """Parse reviewer CSV text.

    Rows without a url ending in ``.pdf`` are skipped. Missing optional
    columns read as empty strings.

    Raises:
        ValueError: If the header row has no ``url`` column.
    """
    if content.startswith(BOM):
        content = content[len(BOM):]

    reader = csv.DictReader(io.StringIO(content))
    fieldnames = [name.strip() for name in (reader.fieldnames or [])]
    if URL_COLUMN not in fieldnames:
        raise ValueError(f"Ground truth file must have a '{URL_COLUMN}' column")
    reader.fieldnames = fieldnames

    reviews: List[HumanRecord] = []
    skipped = 0
    for row in reader:
        url = _cell(row, URL_COLUMN)
        if not url.endswith(".pdf"):
            skipped += 1
            continue
        reviews.append(
            HumanRecord(
                url=url,
                is_form_raw=_cell(row, IS_FORM_COLUMN),
                form_type_raw=_cell(row, FORM_TYPE_COLUMN),
                sensitivity_raw=_cell(row, SENSITIVITY_COLUMN),
                reviewer_name=_cell(row, REVIEWER_COLUMN),
                notes=_cell(row, NOTES_COLUMN),
            )
        )

    if skipped:
        logger.debug(f"Skipped {skipped} rows without a PDF url")
    return reviews


def read_human_reviews(file_path: Union[str, Path]) -> List[HumanRecord]:
    """Read and parse a reviewer CSV file."""
    content = Path(file_path).read_text(encoding="utf-8")
    return parse_human_reviews(content)
