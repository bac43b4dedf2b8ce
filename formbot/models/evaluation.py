"""Pydantic models for evaluating machine results against human reviewers."""

from typing import List

from pydantic import Field, computed_field

from formbot.models.classification import FormbotModel, IsForm, MachineRecord


class HumanRecord(FormbotModel):
    """One row of the reviewer ground-truth spreadsheet, as written by the reviewer."""

    url: str
    is_form_raw: str = ""
    form_type_raw: str = ""
    sensitivity_raw: str = Field(
        default="",
        description="Free text: Yes/No or a list such as 'SSN, DL'"
    )
    reviewer_name: str = ""
    notes: str = ""


class ComparisonRecord(FormbotModel):
    """A human review and a machine result for the same URL, with match flags."""

    human: HumanRecord
    machine: MachineRecord
    machine_sensitivity: str = Field(
        description="Machine sensitivity summary as compared, 'No' when nothing is flagged"
    )
    is_form_match: bool
    form_type_match: bool
    sensitivity_match: bool

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_match(self) -> bool:
        return self.is_form_match and self.form_type_match and self.sensitivity_match

    @property
    def url(self) -> str:
        return self.human.url


def _percent(count: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round(count / total * 100, 1)


class AnalysisSummary(FormbotModel):
    """End-of-run counts for analysis mode."""

    total: int
    forms: int
    errors: int
    with_sensitive_info: int

    @classmethod
    def from_records(cls, records: List[MachineRecord]) -> "AnalysisSummary":
        return cls(
            total=len(records),
            forms=sum(1 for r in records if r.is_form == IsForm.YES),
            errors=sum(1 for r in records if r.failed),
            with_sensitive_info=sum(1 for r in records if r.sensitivity.any()),
        )


class EvaluationSummary(FormbotModel):
    """Match counts and percentages across all comparisons."""

    total: int
    all_match: int
    is_form_match: int
    form_type_match: int
    sensitivity_match: int
    errors: int
    mismatches: List[ComparisonRecord] = Field(default_factory=list)

    @classmethod
    def from_comparisons(cls, comparisons: List[ComparisonRecord]) -> "EvaluationSummary":
        return cls(
            total=len(comparisons),
            all_match=sum(1 for c in comparisons if c.all_match),
            is_form_match=sum(1 for c in comparisons if c.is_form_match),
            form_type_match=sum(1 for c in comparisons if c.form_type_match),
            sensitivity_match=sum(1 for c in comparisons if c.sensitivity_match),
            errors=sum(1 for c in comparisons if c.machine.failed),
            mismatches=[c for c in comparisons if not c.all_match],
        )

    def percent(self, count: int) -> float:
        """Share of ``count`` in the total, as a percentage with one decimal."""
        return _percent(count, self.total)
