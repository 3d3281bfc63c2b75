"""
Design matrices for the borrower-rate regressions.

Encoding:
  credit_rating          treatment dummies, baseline = best observed level (AA),
                         columns in rating order so the ordering survives
  employment_status      treatment dummies, levels sorted, first level is baseline
  is_borrower_homeowner  0/1
  anything else          numeric as-is (fractions stay fractions)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from core.errors import UnseenLevel
from core.schema import CREDIT_RATING_LEVELS
from core.utils import to_nullable_bool
from data_prep.cleaner import CleanedLoans

INTERCEPT = "Intercept"

# M1..M6: each model adds exactly one variable to the previous one.
MODEL_SEQUENCE: Tuple[Tuple[str, ...], ...] = (
    ("credit_rating",),
    ("credit_rating", "stated_monthly_income"),
    ("credit_rating", "stated_monthly_income", "is_borrower_homeowner"),
    ("credit_rating", "stated_monthly_income", "is_borrower_homeowner", "employment_status"),
    ("credit_rating", "stated_monthly_income", "is_borrower_homeowner", "employment_status",
     "available_bankcard_credit"),
    ("credit_rating", "stated_monthly_income", "is_borrower_homeowner", "employment_status",
     "available_bankcard_credit", "debt_to_income_ratio"),
)

MODEL_NAMES: Tuple[str, ...] = tuple(f"M{i}" for i in range(1, len(MODEL_SEQUENCE) + 1))

CATEGORICAL_VARIABLES = frozenset({"credit_rating", "employment_status"})
BOOLEAN_VARIABLES = frozenset({"is_borrower_homeowner"})

Levels = Dict[str, Tuple[str, ...]]


def as_frame(data: Union[CleanedLoans, pd.DataFrame]) -> pd.DataFrame:
    if isinstance(data, CleanedLoans):
        return data.frame
    return data


def _level_text(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value).strip()


def observed_levels(values: pd.Series, variable: str) -> Tuple[str, ...]:
    """Distinct non-null levels; credit ratings in rating order, others sorted."""
    present = {_level_text(v) for v in values.dropna()}
    if variable == "credit_rating":
        return tuple(level for level in CREDIT_RATING_LEVELS if level in present)
    return tuple(sorted(present))


def _dummies(values: pd.Series, variable: str, levels: Tuple[str, ...]) -> pd.DataFrame:
    text = values.astype(object).map(_level_text)
    unseen = sorted(set(text) - set(levels))
    if unseen:
        raise UnseenLevel(variable, unseen[0])
    return pd.DataFrame(
        {f"{variable}[T.{level}]": (text == level).astype(float) for level in levels[1:]},
        index=values.index,
    )


def build_design_matrix(
    frame: pd.DataFrame,
    variables: Sequence[str],
    *,
    levels: Optional[Levels] = None,
) -> Tuple[pd.DataFrame, Levels]:
    """
    Build the OLS design matrix (intercept first) for `variables`.

    `frame` must already be free of nulls in `variables`. Pass the `levels`
    recorded at fit time to encode new rows the same way; otherwise levels are
    taken from `frame`.
    """
    parts = [pd.DataFrame({INTERCEPT: np.ones(len(frame))}, index=frame.index)]
    used: Levels = {}
    for var in variables:
        col = frame[var]
        if var in CATEGORICAL_VARIABLES:
            var_levels = levels[var] if levels is not None else observed_levels(col, var)
            used[var] = var_levels
            parts.append(_dummies(col, var, var_levels))
        elif var in BOOLEAN_VARIABLES:
            parts.append(to_nullable_bool(col).astype(float).rename(var).to_frame())
        else:
            parts.append(pd.to_numeric(col).astype(float).rename(var).to_frame())
    return pd.concat(parts, axis=1), used
