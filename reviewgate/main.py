"""
Main entry point for the review gate.

Usage:
    reviewgate main --changes-file changes.json
    reviewgate develop --all-files --repo-root .
    reviewgate main --changes-file changes.json --config config/review-criteria.yml --output output/review.json

Exit status: 0 when the change passes, 1 when the gate blocks it,
2 on configuration or input errors, 3 when the review run itself fails.
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from reviewgate.config import DEFAULT_CONFIG_PATH, ConfigError, load_config, validate_environment
from reviewgate.models import ReviewOutput
from reviewgate.pipeline import run_review
from reviewgate.sources import ChangeSetError, LocalContentResolver, load_changes, save_report, scan_workspace

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_BLOCKED = 1
EXIT_CONFIG_ERROR = 2
EXIT_RUNTIME_ERROR = 3


def print_summary(output: ReviewOutput):
    """Print human-readable summary to console."""
    decision = output.decision
    summary = output.summary

    print("\n" + "=" * 60)
    print(f"CODE REVIEW SUMMARY - {output.branch}")
    print("=" * 60)

    print(f"\nOverall Severity: {decision.overall_severity.value.upper()}")
    print(f"Total Issues: {summary.total_issues}")
    print(f"  High Severity: {summary.high_severity}")
    print(f"  Medium Severity: {summary.medium_severity}")
    print(f"  Low Severity: {summary.low_severity}")
    print(f"\nFiles reviewed: {output.stats.files_analyzed}/{output.stats.files_filtered}")
    print(f"Review Time: {summary.review_time_seconds}s")
    print(f"Report: {'raised' if decision.raise_report else 'not raised'}")
    print(f"Gate: {'BLOCKED' if decision.block else 'passed'}")

    with_issues = [verdict for verdict in output.verdicts if verdict.result.issues]
    if with_issues:
        print("\n" + "-" * 60)
        print("ISSUES FOUND:")
        print("-" * 60)

        for verdict in with_issues:
            print(f"\n{verdict.path}")
            for issue in verdict.result.issues:
                print(f"  [{issue.severity.value.upper()}] {issue.description}")
                if issue.line != "unknown":
                    print(f"    Line: {issue.line}")
                if issue.recommendation:
                    print(f"    Recommendation: {issue.recommendation}")
    else:
        print("\n✓ No issues found!")

    print("\n" + "=" * 60)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Review changed files with an LLM and gate the change on branch policy"
    )
    parser.add_argument(
        "branch",
        help="Target branch name, used to look up the branch policy"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--changes-file",
        help="Path to a JSON file listing the changed files"
    )
    source.add_argument(
        "--all-files",
        action="store_true",
        help="Review every matching file under --repo-root (no base revision known)"
    )
    parser.add_argument(
        "--repo-root",
        default=".",
        help="Checkout used to read file content (default: current directory)"
    )
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help=f"Review configuration (default: {DEFAULT_CONFIG_PATH})"
    )
    parser.add_argument(
        "--output",
        default="output/review_results.json",
        help="Output file path (default: output/review_results.json)"
    )
    parser.add_argument(
        "--provider",
        choices=["openai", "anthropic", "local"],
        help="Override the configured LLM provider"
    )
    parser.add_argument(
        "--model",
        help="Override the configured model name"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    return parser


def main(argv=None):
    """Main CLI entry point."""
    load_dotenv()  # Load environment variables from .env file

    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s: %(message)s',
    )

    try:
        config = load_config(args.config)
        if args.provider:
            config.llm.provider = args.provider
        if args.model:
            config.llm.model = args.model
        validate_environment(config.llm.provider)

        if args.changes_file:
            changes = load_changes(args.changes_file)
        else:
            changes = scan_workspace(args.repo_root, config.global_settings.rules)

    except (ConfigError, ChangeSetError) as e:
        logger.error(str(e))
        return EXIT_CONFIG_ERROR

    logger.info(f"Starting code review for branch: {args.branch}")
    try:
        output = asyncio.run(run_review(
            changes,
            config,
            args.branch,
            fetch_content=LocalContentResolver(args.repo_root),
        ))
    except Exception as e:
        logger.exception(f"Review run failed: {e}")
        return EXIT_RUNTIME_ERROR

    print_summary(output)

    if output.decision.raise_report:
        # Non-fatal: the gate still applies when the report cannot be written
        if not save_report(output, args.output):
            logger.warning("Continuing without a saved report")

    if output.decision.block:
        print(f"\n⚠ BLOCKING: {output.decision.overall_severity.value} severity issues found on {args.branch}")
        return EXIT_BLOCKED

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
