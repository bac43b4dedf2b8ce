"""Sequential batch processing for analysis and evaluation runs.

Documents are processed strictly one at a time. An IntervalRateLimiter is
acquired before each document, which spaces out calls to Gemini and to the
sites hosting the PDFs.
"""

import logging
from typing import List, Sequence

from formbot.models.classification import IsForm, MachineRecord
from formbot.models.evaluation import ComparisonRecord, HumanRecord
from formbot.services.comparator import compare
from formbot.services.form_analyzer import FormAnalyzer, display_name_for
from formbot.utils.rate_limit import IntervalRateLimiter

logger = logging.getLogger(__name__)

NOTES_PREVIEW_CHARS = 100


def log_machine_record(record: MachineRecord) -> None:
    """Print the per-document status lines for an analysis result."""
    if record.failed:
        return
    logger.info(f"  Is Form: {record.is_form.value}")
    if record.is_form == IsForm.YES:
        logger.info(f"     Type: {record.form_type.value}")
        logger.info(f"     Sensitive: {record.sensitivity.summary() or 'None'}")
    if record.notes:
        logger.info(f"     Notes: {record.notes[:NOTES_PREVIEW_CHARS]}...")


def log_comparison(comparison: ComparisonRecord) -> None:
    """Print the per-document status lines for an evaluation result."""
    machine = comparison.machine
    logger.info(
        f"   LLM:   {machine.is_form.value} | {machine.form_type.value} | "
        f"Sensitive: {comparison.machine_sensitivity}"
    )
    if comparison.all_match:
        logger.info("   All match!")
        return
    if not comparison.is_form_match:
        logger.info("   Is Form mismatch")
    if not comparison.form_type_match:
        logger.info("   Form Type mismatch")
    if not comparison.sensitivity_match:
        logger.info("   Sensitive Info mismatch")


async def analyze_urls(
    analyzer: FormAnalyzer,
    urls: Sequence[str],
    rate_limiter: IntervalRateLimiter,
) -> List[MachineRecord]:
    """Analyze each URL in order; failed documents are kept as error records."""
    results: List[MachineRecord] = []
    total = len(urls)

    for idx, raw_url in enumerate(urls):
        url = raw_url.strip()
        if not url:
            continue

        await rate_limiter.acquire()
        logger.info(f"\n[{idx + 1}/{total}] Analyzing: {url}")

        record = await analyzer.analyze_pdf(url)
        results.append(record)
        log_machine_record(record)

    return results


async def evaluate_reviews(
    analyzer: FormAnalyzer,
    reviews: Sequence[HumanRecord],
    rate_limiter: IntervalRateLimiter,
) -> List[ComparisonRecord]:
    """Analyze every reviewed URL and compare the result with the reviewer's answers."""
    comparisons: List[ComparisonRecord] = []
    total = len(reviews)

    for idx, human in enumerate(reviews):
        await rate_limiter.acquire()
        logger.info(f"\n[{idx + 1}/{total}] {display_name_for(human.url)}")
        logger.info(
            f"   Human: {human.is_form_raw} | {human.form_type_raw} | "
            f"Sensitive: {human.sensitivity_raw or '?'}"
        )

        machine = await analyzer.analyze_pdf(human.url)
        comparison = compare(human, machine)
        comparisons.append(comparison)
        log_comparison(comparison)

    return comparisons
