"""Pydantic models for machine form classification results.

Field names are snake_case in Python and camelCase in JSON output, so a
results file reads the same way the Gemini response contract does.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FormbotModel(BaseModel):
    """Base model: camelCase JSON aliases, immutable once built."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class IsForm(str, Enum):
    """Answer to "is this document a form?"."""

    YES = "Yes"
    NO = "No"
    ERROR = "Error"  # analysis failed, answer unknown


class FormType(str, Enum):
    """Canonical form type vocabulary (matches the reviewer spreadsheet)."""

    FILLABLE_PDF = "Fillable PDF"
    NON_FILLABLE_PDF = "Non-Fillable PDF"
    GOOGLE_FORM = "Google form"
    MS_OFFICE_FORM = "MS Office form"
    MS_WORD_DOCUMENT = "MS Word document"
    AIRTABLE_FORM = "Airtable form"
    PHONE = "Phone"
    EMAIL = "Email"
    NOT_APPLICABLE = "N/A"
    UNKNOWN = "Unknown"


# Summary labels, in the order they are reported
SENSITIVITY_LABELS = (
    ("ssn", "SSN"),
    ("drivers_license", "DL#"),
    ("financial", "Financial"),
    ("health", "Health"),
    ("criminal_history", "Criminal"),
)


class SensitivityFlags(FormbotModel):
    """Categories of sensitive personal information a form asks for."""

    ssn: bool = False
    drivers_license: bool = False
    financial: bool = False
    health: bool = False
    criminal_history: bool = False

    def labels(self) -> List[str]:
        """Labels of the flags that are set, in reporting order."""
        return [label for field, label in SENSITIVITY_LABELS if getattr(self, field)]

    def summary(self) -> str:
        """Comma-joined labels, e.g. "SSN, Financial"; empty when nothing is set."""
        return ", ".join(self.labels())

    def any(self) -> bool:
        return bool(self.labels())


class NormalizedClassification(FormbotModel):
    """Canonical fragment produced from one raw Gemini response."""

    is_form: IsForm = IsForm.NO
    form_type: FormType = FormType.NOT_APPLICABLE
    sensitivity: SensitivityFlags = Field(default_factory=SensitivityFlags)
    confidence: Optional[float] = Field(
        default=None, ge=0.0, le=1.0,
        description="Model confidence; None when the response did not report one"
    )
    page_count: Optional[int] = Field(
        default=None, ge=0,
        description="Page count; None when the response did not report one"
    )
    notes: str = ""


class MachineRecord(NormalizedClassification):
    """Result of analyzing one document URL.

    When ``error_message`` is set, ``is_form`` is ``IsForm.ERROR`` and the
    classification fields keep their defaults.
    """

    url: str
    raw_form_type: str = Field(
        default="",
        description="Form type text exactly as returned by the model"
    )
    error_message: Optional[str] = None

    # Run metadata
    model: str = ""
    file_size_kb: Optional[int] = None
    processing_time_sec: float = 0.0

    @classmethod
    def from_error(
        cls,
        url: str,
        error_message: str,
        model: str = "",
        processing_time_sec: float = 0.0,
    ) -> "MachineRecord":
        """Build the record for a document whose analysis failed."""
        return cls(
            url=url,
            is_form=IsForm.ERROR,
            error_message=error_message,
            model=model,
            processing_time_sec=processing_time_sec,
        )

    @property
    def failed(self) -> bool:
        return self.error_message is not None
