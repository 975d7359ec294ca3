#!/usr/bin/env python3
"""CLI script to score captured model outputs against their references.

Usage:
    python -m evaluation.run_evaluation cases.json
    python -m evaluation.run_evaluation cases.json --kind compliance
    python -m evaluation.run_evaluation cases.json --save --model qwen3:4b
"""

import argparse
import logging
import sys
from pathlib import Path

from llm_scorecard.config import get_settings
from llm_scorecard.exceptions import ScorecardError

from evaluation.evaluator import CaseResult, Evaluator
from evaluation.result_store import ResultStore

logger = logging.getLogger(__name__)


def print_results(
    evaluator: Evaluator,
    results: list[CaseResult],
    show_details: bool = True,
    violation_limit: int = 5,
) -> None:
    """Pretty print evaluation results.

    Args:
        evaluator: Evaluator used to compute aggregates
        results: List of case results
        show_details: Whether to show per-case details
        violation_limit: Maximum violations printed per compliance case
    """
    if not results:
        print("No results to display.")
        return

    print("\n" + "=" * 80)
    settings = evaluator.settings
    print(f"{settings.app_name} v{settings.app_version} - EVALUATION RESULTS")
    print("=" * 80 + "\n")

    if show_details:
        for result in results:
            print(f"{result.name} [{result.kind}]")
            print(f"   {result.metric}: {result.score:.3f}")
            if "mrr" in result.details:
                print(f"   mrr: {result.details['mrr']:.3f}")
            if "tool_accuracy" in result.details:
                print(f"   tool selection: {result.details['tool_accuracy']:.3f}")
                print(f"   parameters: {result.details['parameter_accuracy']:.3f}")
            if "matched" in result.details:
                print(f"   fields: {result.details['matched']}/{result.details['total']}")

            violations = result.details.get("violations") or []
            if violations:
                print(f"   violations ({len(violations)}):")
                for violation in violations[:violation_limit]:
                    print(f"     - {violation}")
                if len(violations) > violation_limit:
                    print(f"     ... and {len(violations) - violation_limit} more")
            print()

    aggregate = evaluator.get_aggregate_metrics(results)

    print("-" * 80)
    print("AGGREGATE METRICS")
    print("-" * 80)
    print(f"Number of cases evaluated: {aggregate['num_evaluated']}")
    print(f"Mean score: {aggregate['mean_score']:.3f}")
    print(f"Min score:  {aggregate['min_score']:.3f}")
    print(f"Max score:  {aggregate['max_score']:.3f}")
    print()

    breakdown = evaluator.get_kind_breakdown(results)
    if len(breakdown) > 1:
        print("-" * 80)
        print("KIND BREAKDOWN")
        print("-" * 80)
        for kind, metrics in sorted(breakdown.items()):
            print(f"\n{kind.upper()}")
            print(f"  Cases: {metrics['num_evaluated']}")
            print(f"  Mean score: {metrics['mean_score']:.3f}")
        print()


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        description="Score captured model outputs against known-good references"
    )
    parser.add_argument("cases", type=Path, help="JSON file holding one case or a list of cases")
    parser.add_argument("--kind", type=str, help="Only score cases of this kind")
    parser.add_argument("--save", action="store_true", help="Save each case result as JSON")
    parser.add_argument("--model", type=str, help="Model variant name recorded with saved results")
    parser.add_argument("--results-dir", type=Path, help="Directory for saved results")
    parser.add_argument("--quiet", action="store_true", help="Only print aggregate metrics")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Process exit code
    """
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    args = build_parser().parse_args(argv)
    evaluator = Evaluator(settings)

    try:
        cases = evaluator.load_cases(args.cases)
        if args.kind:
            cases = [case for case in cases if case.kind == args.kind.lower()]
        results = evaluator.evaluate_batch(cases)

        if args.save:
            store = ResultStore(args.results_dir)
            for result in results:
                store.save_result(result, model=args.model)
    except ScorecardError as e:
        logger.error(e.message)
        return 1

    print_results(
        evaluator,
        results,
        show_details=not args.quiet,
        violation_limit=settings.violation_display_limit,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
