"""
Data quality validation for the cleaned loan table before it reaches the models.

Catches problems early:
- Missing critical fields
- Rates outside the fraction range (percent vs decimal mix-ups)
- Negative incomes, credit lines or ratios
- Ratings from the wrong scheme for the origination date
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from core.config import PipelineConfig
from core.schema import REQUIRED_COLUMNS

from .cleaner import CleanedLoans

# variables used by the nested rate models
_MODEL_COLUMNS = (
    "borrower_rate",
    "credit_rating",
    "stated_monthly_income",
    "is_borrower_homeowner",
    "employment_status",
    "available_bankcard_credit",
    "debt_to_income_ratio",
)


@dataclass
class ValidationResult:
    """Collects all validation warnings/errors for a loan table."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        lines = []
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  ✗ {e}")
        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            for w in self.warnings:
                lines.append(f"  ⚠ {w}")
        if not lines:
            lines.append("✓ All checks passed.")
        return "\n".join(lines)


def validate_loan_records(
    cleaned: CleanedLoans,
    config: Optional[PipelineConfig] = None,
) -> ValidationResult:
    """
    Run all validation checks on the cleaned loan table.
    Returns a ValidationResult with errors (blocking) and warnings (informational).
    """
    cfg = config or PipelineConfig()
    result = ValidationResult()
    loans = cleaned.frame

    # --- Schema checks ---
    missing = [c for c in REQUIRED_COLUMNS if c not in loans.columns]
    if missing:
        result.errors.append(f"Missing required columns: {missing}")
        return result

    if len(loans) == 0:
        result.errors.append("Loan table is empty (0 rows).")
        return result

    # --- Rates ---
    for col in ["borrower_rate", "borrower_apr"]:
        rates = loans[col]
        n_high = int((rates > 1.0).sum())
        n_neg = int((rates < 0).sum())
        if n_high > 0:
            result.warnings.append(
                f"{n_high} rows have {col} > 1.0 — check if rates are in "
                f"percent vs decimal form."
            )
        if n_neg > 0:
            result.errors.append(f"{n_neg} rows have negative {col}.")

    # --- Non-negative amounts ---
    for col in ["stated_monthly_income", "available_bankcard_credit", "debt_to_income_ratio"]:
        n_neg = int((loans[col] < 0).sum())
        if n_neg > 0:
            result.errors.append(f"{n_neg} rows have negative {col}.")

    # --- Rating scheme vs origination date ---
    dates = loans["loan_origination_date"]
    cutover = cfg.rating_cutover
    n_late_grade = int((loans["credit_grade"].notna() & (dates >= cutover)).sum())
    n_early_rating = int((loans["prosper_rating"].notna() & (dates < cutover)).sum())
    if n_late_grade > 0:
        result.warnings.append(
            f"{n_late_grade} rows have CreditGrade but originated on/after {cutover.date()}."
        )
    if n_early_rating > 0:
        result.warnings.append(
            f"{n_early_rating} rows have ProsperRating but originated before {cutover.date()}."
        )

    n_bad_date = int(dates.isna().sum())
    if n_bad_date > 0:
        result.warnings.append(f"{n_bad_date} rows have null/unparseable loan_origination_date.")

    # --- Nulls in modeling variables (rows get excluded from fits) ---
    for col in _MODEL_COLUMNS:
        n_null = int(loans[col].isna().sum())
        if n_null > 0:
            result.warnings.append(f"{n_null} rows have null {col}.")

    if cleaned.n_status_defaulted > 0:
        result.warnings.append(
            f"{cleaned.n_status_defaulted} rows had a missing/unmapped loan status counted as 'Past Due'."
        )

    return result
