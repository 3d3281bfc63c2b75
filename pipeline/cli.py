"""Command line entry point: run the pipeline on one loan file and print the model comparison."""

import argparse
import logging
import sys
from typing import List, Optional

import pandas as pd

from core.config import PipelineConfig, UnknownStatusPolicy
from core.errors import CleaningError, DataValidationError
from models.prediction import typical_half_width

from .runner import run_pipeline

logger = logging.getLogger(__name__)

_COMPARISON_COLUMNS = [
    "added_variable", "n_obs", "n_excluded", "r_squared", "adj_r_squared",
    "delta_r_squared", "sigma", "f_change", "p_change",
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prosper-rates",
        description="Clean a Prosper loan export and fit the nested borrower-rate models",
    )
    parser.add_argument("path", help="Path to the loan file (.csv, .xlsx or .xls)")
    parser.add_argument(
        "--confidence",
        type=float,
        default=0.95,
        help="Confidence level for prediction intervals",
    )
    parser.add_argument(
        "--unknown-status",
        choices=[p.value for p in UnknownStatusPolicy],
        default=UnknownStatusPolicy.PAST_DUE.value,
        help="How to treat missing or unmapped loan statuses",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry function."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        config = PipelineConfig(
            confidence_level=args.confidence,
            unknown_status_policy=args.unknown_status,
        )
        result = run_pipeline(args.path, config)
    except (CleaningError, DataValidationError, ValueError, OSError) as exc:
        logger.error("Pipeline failed: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    with pd.option_context("display.width", 160, "display.max_columns", 20):
        print(f"Cleaned {result.cleaned.n_rows} loans")
        print(result.comparison[_COMPARISON_COLUMNS].to_string(float_format=lambda v: f"{v:.4f}"))
    final = result.final_model
    half_width = typical_half_width(final, confidence=config.confidence_level)
    print(
        f"{final.name} {config.confidence_level:.1%} prediction interval for a typical borrower: "
        f"borrower_rate +/- {half_width:.4f}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
