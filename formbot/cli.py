"""
Command-line interface for pdf-formbot.

Usage:
    formbot analyze urls.txt                 # one URL per line
    formbot analyze input.csv                # extracts PDF URLs from a CSV export
    formbot analyze https://example.com/form.pdf
    formbot analyze --test                   # built-in sample URLs
    formbot evaluate reviews.csv             # compare against human reviewers

Options:
    --prompt FILE       Use a custom prompt from a text file
    --output-dir DIR    Where result files are written
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from formbot.config import Settings, get_settings
from formbot.models.evaluation import AnalysisSummary, EvaluationSummary
from formbot.services.batch_runner import analyze_urls, evaluate_reviews
from formbot.services.comparator import pair_records
from formbot.services.form_analyzer import FormAnalyzer
from formbot.services.gemini_client import get_gemini_client
from formbot.services.ground_truth import read_human_reviews
from formbot.services.prompts import load_prompt
from formbot.services.report_writer import (
    log_analysis_summary,
    log_evaluation_summary,
    make_timestamp,
    read_machine_records,
    write_analysis_csv,
    write_comparison_csv,
    write_json,
)
from formbot.services.url_reader import TEST_URLS, resolve_urls
from formbot.utils.rate_limit import IntervalRateLimiter
from formbot.utils.run_log import configure_run_logging, write_transcript

logger = logging.getLogger("formbot.cli")


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="formbot",
        description="Classify PDF forms and sensitive information requests with Gemini"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--prompt",
        type=str,
        default=None,
        help="Text file with a custom analysis prompt"
    )
    common.add_argument(
        "--output-dir",
        "-o",
        type=str,
        default=None,
        help="Directory for result files (default: from env or current directory)"
    )

    # Analyze command
    analyze_parser = subparsers.add_parser(
        "analyze",
        parents=[common],
        help="Analyze PDFs from a file, a single URL, or the built-in samples"
    )
    analyze_parser.add_argument(
        "source",
        nargs="?",
        default=None,
        help="URL list (.txt), any text/CSV file containing PDF URLs, or a single PDF URL"
    )
    analyze_parser.add_argument(
        "--test",
        action="store_true",
        help="Analyze the built-in sample PDFs"
    )

    # Evaluate command
    evaluate_parser = subparsers.add_parser(
        "evaluate",
        parents=[common],
        help="Compare model answers with a human reviewer spreadsheet"
    )
    evaluate_parser.add_argument(
        "reviews",
        help="Reviewer CSV with url and 'Review: ...' columns"
    )
    evaluate_parser.add_argument(
        "--results",
        type=str,
        default=None,
        help="Reuse a results JSON from a previous analyze run instead of calling Gemini"
    )

    return parser


def load_settings() -> Optional[Settings]:
    """Load settings, printing a configuration error instead of raising."""
    try:
        return get_settings()
    except (ValidationError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        print("\nMake sure GEMINI_API_KEY is set in the environment or a .env file:", file=sys.stderr)
        print("  GEMINI_API_KEY=your_api_key", file=sys.stderr)
        return None


def load_custom_prompt(path: Optional[str]) -> Optional[str]:
    """Read ``--prompt``; raises FileNotFoundError/ValueError on a bad file."""
    if path is None:
        return None
    prompt = load_prompt(path)
    logger.info(f"Using custom prompt from: {Path(path).resolve()}\n")
    return prompt


def build_analyzer(settings: Settings, prompt: Optional[str]) -> FormAnalyzer:
    return FormAnalyzer(
        get_gemini_client(),
        model=settings.model_name,
        prompt=prompt,
        user_agent=settings.download_user_agent,
        poll_max_attempts=settings.poll_max_attempts,
        poll_interval_seconds=settings.poll_interval_seconds,
    )


def output_directory(args: argparse.Namespace, settings: Settings) -> Path:
    directory = Path(args.output_dir or settings.output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


async def analyze_command(args: argparse.Namespace, settings: Settings) -> int:
    """
    Execute the analyze command.

    Returns:
        int: Exit code (0 for success, 1 for error)
    """
    transcript = configure_run_logging(settings.log_level)

    try:
        prompt = load_custom_prompt(args.prompt)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Error: {e}")
        return 1

    urls: List[str]
    if args.test:
        logger.info("Test mode: analyzing sample PDFs\n")
        urls = list(TEST_URLS)
    elif args.source:
        if Path(args.source).is_file():
            logger.info(f"Reading URLs from: {Path(args.source).resolve()}\n")
        try:
            urls = resolve_urls(args.source)
        except (OSError, ValueError) as e:
            logger.error(f"Error: Could not read {args.source}: {e}")
            return 1
        logger.info(f"   Found {len(urls)} PDF URLs\n")
    else:
        logger.error("Error: provide a file, a PDF URL, or --test")
        return 1

    if not urls:
        logger.error("No URLs found to analyze")
        return 1

    logger.info(f"Analyzing {len(urls)} PDF(s)...")
    analyzer = build_analyzer(settings, prompt)
    results = await analyze_urls(
        analyzer, urls, IntervalRateLimiter(settings.request_delay_seconds)
    )

    directory = output_directory(args, settings)
    stem = f"results_{make_timestamp()}"
    write_analysis_csv(
        results, directory / f"{stem}.csv", settings.review_confidence_threshold
    )
    write_json(results, directory / f"{stem}.json")
    log_analysis_summary(AnalysisSummary.from_records(results))
    write_transcript(transcript, directory / f"{stem}.txt")
    return 0


async def evaluate_command(args: argparse.Namespace, settings: Settings) -> int:
    """
    Execute the evaluate command.

    Returns:
        int: Exit code (0 for success, 1 for error)
    """
    transcript = configure_run_logging(settings.log_level)

    reviews_path = Path(args.reviews)
    if not reviews_path.is_file():
        logger.error(f"Error: Reviews file not found: {reviews_path.resolve()}")
        return 1

    try:
        prompt = load_custom_prompt(args.prompt)
        logger.info(f"Reading human reviews from: {reviews_path.resolve()}\n")
        reviews = read_human_reviews(reviews_path)
    except (OSError, ValueError) as e:
        logger.error(f"Error: {e}")
        return 1

    logger.info(f"   Found {len(reviews)} PDF reviews\n")
    if not reviews:
        logger.error("No PDF URLs found in input file")
        return 1

    if args.results:
        results_path = Path(args.results)
        if not results_path.is_file():
            logger.error(f"Error: Results file not found: {results_path.resolve()}")
            return 1
        logger.info(f"Comparing against saved results: {results_path.resolve()}")
        try:
            machine_records = read_machine_records(results_path)
        except (OSError, ValueError) as e:
            logger.error(f"Error: Could not read results file {results_path.resolve()}: {e}")
            return 1
        comparisons = pair_records(reviews, machine_records)
    else:
        analyzer = build_analyzer(settings, prompt)
        comparisons = await evaluate_reviews(
            analyzer, reviews, IntervalRateLimiter(settings.request_delay_seconds)
        )

    directory = output_directory(args, settings)
    stem = f"eval_results_{make_timestamp()}"
    write_comparison_csv(comparisons, directory / f"{stem}.csv")
    write_json(comparisons, directory / f"{stem}.json")
    log_evaluation_summary(EvaluationSummary.from_comparisons(comparisons))
    write_transcript(transcript, directory / f"{stem}.txt")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    settings = load_settings()
    if settings is None:
        return 1

    # Route to command handler
    try:
        if args.command == "analyze":
            return asyncio.run(analyze_command(args, settings))
        if args.command == "evaluate":
            return asyncio.run(evaluate_command(args, settings))
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 1

    print(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
