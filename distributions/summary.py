"""
Descriptive summaries of the cleaned loan table.

These feed the reporting layer (charts live elsewhere):
  - numeric distribution table (mean, std, percentiles)
  - counts / shares of a categorical column
  - borrower rate by credit rating, in rating order
  - loan volume per origination quarter, chronological
  - collapsed loan status mix within each credit rating
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from core.schema import CREDIT_RATING_DTYPE
from core.utils import require_columns
from data_prep.cleaner import CleanedLoans

DEFAULT_NUMERIC_COLUMNS: Tuple[str, ...] = (
    "borrower_rate",
    "borrower_apr",
    "prosper_score",
    "term",
    "debt_to_income_ratio",
    "stated_monthly_income",
    "available_bankcard_credit",
    "loan_original_amount",
)


def _frame(cleaned: Union[CleanedLoans, pd.DataFrame]) -> pd.DataFrame:
    return cleaned.frame if isinstance(cleaned, CleanedLoans) else cleaned


def summarize_numeric(
    cleaned: Union[CleanedLoans, pd.DataFrame],
    columns: Optional[Sequence[str]] = None,
    *,
    percentiles: Tuple[float, ...] = (0.05, 0.25, 0.50, 0.75, 0.95),
) -> pd.DataFrame:
    """
    One row per numeric column: Count, Missing, Mean, Std Dev, Min, P05..P95, Max.
    Columns absent from the table or entirely null are skipped.
    """
    loans = _frame(cleaned)
    cols = DEFAULT_NUMERIC_COLUMNS if columns is None else tuple(columns)

    rows = []
    for col in cols:
        if col not in loans.columns:
            continue

        values = pd.to_numeric(loans[col], errors="coerce").dropna().to_numpy(dtype=float)
        if len(values) == 0:
            continue

        row = {
            "Variable": col,
            "Count": int(len(values)),
            "Missing": int(len(loans) - len(values)),
            "Mean": float(np.mean(values)),
            "Std Dev": float(np.std(values, ddof=1)) if len(values) > 1 else 0.0,
            "Min": float(np.min(values)),
        }
        for p in percentiles:
            row[f"P{int(round(p * 100)):02d}"] = float(np.percentile(values, p * 100))
        row["Max"] = float(np.max(values))
        rows.append(row)

    return pd.DataFrame(rows)


def category_counts(cleaned: Union[CleanedLoans, pd.DataFrame], column: str) -> pd.DataFrame:
    """
    Count and share of each value of `column`.

    Ordered categoricals (credit_rating) keep their level order, including
    empty levels; everything else is sorted by count, largest first.
    Missing values are reported as a final "Unknown" row when present.
    """
    loans = _frame(cleaned)
    require_columns(loans, [column])
    col = loans[column]

    ordered = isinstance(col.dtype, pd.CategoricalDtype) and col.dtype.ordered
    counts = col.value_counts(sort=not ordered, dropna=True)
    if ordered:
        counts = counts.reindex(col.dtype.categories, fill_value=0)

    out = counts.rename("count").to_frame()
    out.index = out.index.astype(str)
    n_missing = int(col.isna().sum())
    if n_missing:
        out.loc["Unknown"] = n_missing
    out["share"] = out["count"] / len(loans) if len(loans) else np.nan
    out.index.name = column
    return out


def rate_by_credit_rating(
    cleaned: Union[CleanedLoans, pd.DataFrame],
    *,
    rate_col: str = "borrower_rate",
) -> pd.DataFrame:
    """Borrower rate statistics for each credit rating level, AA first. Unrated loans are left out."""
    loans = _frame(cleaned)
    require_columns(loans, ["credit_rating", rate_col])
    rating = loans["credit_rating"].astype(CREDIT_RATING_DTYPE)
    grouped = loans[rate_col].groupby(rating, observed=False)
    out = pd.DataFrame({
        "count": grouped.count(),
        "mean": grouped.mean(),
        "median": grouped.median(),
        "std": grouped.std(),
        "min": grouped.min(),
        "max": grouped.max(),
    })
    out.index = pd.CategoricalIndex(out.index, dtype=CREDIT_RATING_DTYPE, name="credit_rating")
    return out


def loans_by_quarter(cleaned: Union[CleanedLoans, pd.DataFrame]) -> pd.DataFrame:
    """Loan count and original amount per normalized origination quarter, oldest first."""
    loans = _frame(cleaned)
    require_columns(
        loans, ["loan_origination_quarter_normalized", "loan_original_amount", "borrower_rate"]
    )
    grouped = loans.groupby("loan_origination_quarter_normalized", sort=True)
    out = pd.DataFrame({
        "n_loans": grouped.size(),
        "total_amount": grouped["loan_original_amount"].sum(),
        "mean_borrower_rate": grouped["borrower_rate"].mean(),
    })
    out.index.name = "quarter"
    return out


def status_by_credit_rating(cleaned: Union[CleanedLoans, pd.DataFrame]) -> pd.DataFrame:
    """Share of each collapsed loan status within each credit rating (rows sum to 1)."""
    loans = _frame(cleaned)
    require_columns(loans, ["credit_rating", "loan_status_collapsed"])
    rated = loans[loans["credit_rating"].notna()]
    table = pd.crosstab(
        rated["credit_rating"].astype(str),
        rated["loan_status_collapsed"].astype(str),
        normalize="index",
    )
    return table.reindex(list(CREDIT_RATING_DTYPE.categories)).rename_axis(
        index="credit_rating", columns="loan_status"
    )


def summarize_loans(cleaned: Union[CleanedLoans, pd.DataFrame]) -> Dict[str, pd.DataFrame]:
    """All standard summaries keyed by name."""
    return {
        "numeric": summarize_numeric(cleaned),
        "listing_category": category_counts(cleaned, "listing_category"),
        "credit_rating": category_counts(cleaned, "credit_rating"),
        "loan_status": category_counts(cleaned, "loan_status_collapsed"),
        "employment_status": category_counts(cleaned, "employment_status"),
        "rate_by_credit_rating": rate_by_credit_rating(cleaned),
        "loans_by_quarter": loans_by_quarter(cleaned),
        "status_by_credit_rating": status_by_credit_rating(cleaned),
    }
