"""Compare machine classifications against human reviewer answers.

Reviewers write free text ("Yes", "fillable", "SSN, DL"), the model output
is canonical. Each field has its own equivalence rule.
"""

import logging
from typing import Dict, List, Sequence

from formbot.models.classification import IsForm, MachineRecord
from formbot.models.evaluation import ComparisonRecord, HumanRecord
from formbot.utils.normalizers import normalize_reviewer_form_type

logger = logging.getLogger(__name__)

NO_SENSITIVE_INFO = "No"


def machine_sensitivity_summary(machine: MachineRecord) -> str:
    """Sensitivity summary as compared with the reviewer: labels, or "No"."""
    return machine.sensitivity.summary() or NO_SENSITIVE_INFO


def is_form_matches(human: HumanRecord, machine: MachineRecord) -> bool:
    return human.is_form_raw.strip().lower() == machine.is_form.value.lower()


def form_type_matches(human: HumanRecord, machine: MachineRecord) -> bool:
    """Types agree after normalization, or both sides say it is not a form."""
    human_type = normalize_reviewer_form_type(human.form_type_raw)
    machine_type = normalize_reviewer_form_type(machine.form_type.value)
    if human_type.lower() == machine_type.lower():
        return True
    return human.is_form_raw.strip().lower() == "no" and machine.is_form == IsForm.NO


def sensitivity_matches(human_raw: str, machine_summary: str) -> bool:
    """Compare reviewer sensitivity text with the machine summary.

    - reviewer empty or "no": machine must also report nothing
    - reviewer "yes" or mentions ssn/dl: machine must report something
    - anything else: case-insensitive equality
    """
    human_text = human_raw.strip().lower()
    machine_text = machine_summary.strip().lower()
    machine_reports_none = machine_text in ("", "no")

    if human_text in ("", "no"):
        return machine_reports_none
    if human_text == "yes" or "ssn" in human_text or "dl" in human_text:
        return not machine_reports_none
    return human_text == machine_text


def compare(human: HumanRecord, machine: MachineRecord) -> ComparisonRecord:
    """Compare one reviewer row with the machine result for the same URL.

    Records for different URLs are still compared, with a warning.
    """
    if human.url.strip() != machine.url.strip():
        logger.warning(f"  Comparing different documents: {human.url} vs {machine.url}")

    summary = machine_sensitivity_summary(machine)
    return ComparisonRecord(
        human=human,
        machine=machine,
        machine_sensitivity=summary,
        is_form_match=is_form_matches(human, machine),
        form_type_match=form_type_matches(human, machine),
        sensitivity_match=sensitivity_matches(human.sensitivity_raw, summary),
    )


def pair_records(
    humans: Sequence[HumanRecord],
    machines: Sequence[MachineRecord],
) -> List[ComparisonRecord]:
    """Join reviewer rows with saved machine results by URL and compare them.

    Reviewer rows without a machine result are logged and left out.
    """
    by_url: Dict[str, MachineRecord] = {}
    for machine in machines:
        by_url.setdefault(machine.url.strip(), machine)

    comparisons = []
    for human in humans:
        machine = by_url.get(human.url.strip())
        if machine is None:
            logger.warning(f"No machine result for {human.url}, skipping")
            continue
        comparisons.append(compare(human, machine))
    return comparisons
