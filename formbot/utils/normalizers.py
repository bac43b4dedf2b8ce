"""Normalize free-text Gemini answers and reviewer entries into canonical values.

Form type classification is an ordered list of (predicate, result) rules.
The first rule whose predicate matches the trimmed, lower-cased text wins.
"""

import math
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Tuple

from formbot.models.classification import (
    FormType,
    IsForm,
    NormalizedClassification,
    SensitivityFlags,
)

# Fallbacks for consumers that need a number when the model reported none
DEFAULT_CONFIDENCE = 0.5
DEFAULT_PAGE_COUNT = 0

TRUE_STRINGS = frozenset({"true", "yes", "y", "1"})

Rule = Tuple[Callable[[str], bool], FormType]


def _contains_any(*needles: str) -> Callable[[str], bool]:
    return lambda text: any(n in text for n in needles)


def _contains_all(*needles: str) -> Callable[[str], bool]:
    return lambda text: all(n in text for n in needles)


def _equals_any(*values: str) -> Callable[[str], bool]:
    return lambda text: text in values


# Negated fillability first, so "Non-Fillable PDF" maps to itself
FORM_TYPE_RULES: List[Rule] = [
    (_contains_any("non-fillable", "nonfillable", "not fillable"), FormType.NON_FILLABLE_PDF),
    (_contains_all("fillable", "pdf"), FormType.FILLABLE_PDF),
    (_contains_any("google"), FormType.GOOGLE_FORM),
    (_contains_any("airtable"), FormType.AIRTABLE_FORM),
    (_contains_any("office", "excel"), FormType.MS_OFFICE_FORM),
    (_contains_any("word"), FormType.MS_WORD_DOCUMENT),
    (_contains_any("phone"), FormType.PHONE),
    (_contains_any("email"), FormType.EMAIL),
    (_contains_any("digital", "printable"), FormType.NON_FILLABLE_PDF),
    (_equals_any("n/a", "na", "not a form"), FormType.NOT_APPLICABLE),
    (_contains_any("pdf"), FormType.NON_FILLABLE_PDF),
]

# Reviewer spreadsheets only use a few form types
REVIEWER_FORM_TYPE_RULES: List[Tuple[Callable[[str], bool], str]] = [
    (_contains_any("non-fillable", "nonfillable", "not fillable"), FormType.NON_FILLABLE_PDF.value),
    (_contains_any("fillable"), FormType.FILLABLE_PDF.value),
    (_equals_any("n/a", "na"), FormType.NOT_APPLICABLE.value),
]


def raw_text(value: Any) -> str:
    """Text form of a raw value; empty for None."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def normalize_is_form(value: Any) -> IsForm:
    """Only the exact answer "Yes" counts as a form."""
    return IsForm.YES if value == "Yes" else IsForm.NO


def normalize_form_type(value: Any) -> FormType:
    """Map free-text form type to the canonical vocabulary.

    Empty text means N/A, unrecognized text means Unknown.
    """
    if isinstance(value, FormType):
        return value
    text = raw_text(value).lower()
    if not text:
        return FormType.NOT_APPLICABLE
    for predicate, form_type in FORM_TYPE_RULES:
        if predicate(text):
            return form_type
    return FormType.UNKNOWN


def normalize_reviewer_form_type(value: str) -> str:
    """Reduced form type mapping for reviewer text; unmatched text is kept verbatim."""
    original = raw_text(value)
    text = original.lower()
    if not text:
        return ""
    for predicate, form_type in REVIEWER_FORM_TYPE_RULES:
        if predicate(text):
            return form_type
    return original


def coerce_flag(value: Any) -> bool:
    """True only for explicitly true-like values."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return False


def normalize_sensitivity(value: Any) -> SensitivityFlags:
    """Build SensitivityFlags from a nested response object; malformed input yields all False."""
    if isinstance(value, SensitivityFlags):
        return value
    if not isinstance(value, Mapping):
        return SensitivityFlags()
    return SensitivityFlags(
        ssn=coerce_flag(value.get("ssn")),
        drivers_license=coerce_flag(value.get("driversLicense")),
        financial=coerce_flag(value.get("financial")),
        health=coerce_flag(value.get("health")),
        criminal_history=coerce_flag(value.get("criminalHistory")),
    )


def normalize_confidence(value: Any) -> Optional[float]:
    """Confidence clamped to [0, 1]; None when missing or not a number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        # Integers too large for a float
        number = math.inf if value > 0 else -math.inf
    if math.isnan(number):
        return None
    return min(max(number, 0.0), 1.0)


def normalize_page_count(value: Any) -> Optional[int]:
    """Non-negative whole page count; None when missing or not usable."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and (not math.isfinite(value) or not value.is_integer()):
        return None
    if value < 0:
        return None
    return int(value)


def normalize_response(parsed: Any) -> NormalizedClassification:
    """Turn a parsed Gemini JSON response into a canonical classification.

    Never raises: a non-object response is treated as an empty object.
    """
    if not isinstance(parsed, Mapping):
        parsed = {}

    sensitivity = parsed.get("sensitiveInfo")
    if sensitivity is None:
        sensitivity = parsed.get("sensitivity")

    notes = parsed.get("notes")

    return NormalizedClassification(
        is_form=normalize_is_form(parsed.get("isForm")),
        form_type=normalize_form_type(parsed.get("formType")),
        sensitivity=normalize_sensitivity(sensitivity),
        confidence=normalize_confidence(parsed.get("confidence")),
        page_count=normalize_page_count(parsed.get("pageCount")),
        notes=notes if isinstance(notes, str) else "",
    )
