"""
Point predictions of borrower_rate with intervals.

predict() returns a *prediction* interval for one new loan:

    ŷ ± t(1-α/2, df_resid) · σ · sqrt(1 + x₀ᵀ (XᵀX)⁻¹ x₀)

mean_confidence_interval() drops the "1 +" and bounds the mean rate of all
loans sharing x₀. It is always narrower and is not what a single borrower
should be quoted.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, NamedTuple, Optional, Union

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, Field
from scipy import stats

from core.errors import MissingPredictor, UnseenLevel
from core.schema import CreditRating

from .design import build_design_matrix
from .rate_model import RateModel

DEFAULT_CONFIDENCE = 0.95


class LoanProfile(BaseModel):
    """One borrower's values for the rate-model variables. Unset fields are missing."""

    model_config = ConfigDict(frozen=True)

    credit_rating: Optional[CreditRating] = None
    stated_monthly_income: Optional[float] = Field(default=None, ge=0)
    is_borrower_homeowner: Optional[bool] = None
    employment_status: Optional[str] = None
    available_bankcard_credit: Optional[float] = Field(default=None, ge=0)
    debt_to_income_ratio: Optional[float] = Field(default=None, ge=0)
    # observed rate, when known (fraction, not percent)
    borrower_rate: Optional[float] = Field(default=None, ge=0, le=1)


class PredictionInterval(NamedTuple):
    point: float
    lower: float
    upper: float

    @property
    def width(self) -> float:
        return self.upper - self.lower

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper


Record = Union[Mapping[str, Any], pd.Series, LoanProfile]


def _record_values(record: Record, model: RateModel) -> Dict[str, Any]:
    if isinstance(record, LoanProfile):
        record = record.model_dump()
    values = {}
    for var in model.variables:
        if var not in record:
            raise MissingPredictor(var)
        value = record[var]
        if value is None or value is pd.NA or (np.isscalar(value) and pd.isna(value)):
            raise MissingPredictor(var)
        values[var] = value
    return values


def _design_row(model: RateModel, record: Record) -> np.ndarray:
    values = _record_values(record, model)
    X, _ = build_design_matrix(pd.DataFrame([values]), model.variables, levels=model.levels)
    row = X.loc[:, list(model.design_columns)].iloc[0]
    # a value the coercions could not read (e.g. homeowner "yes") comes back as NaN
    unreadable = row.index[row.isna()]
    if len(unreadable):
        var = unreadable[0].split("[", 1)[0]
        raise UnseenLevel(var, values.get(var))
    return row.to_numpy(dtype=float)


def _interval(model: RateModel, record: Record, confidence: float, *, new_observation: bool) -> PredictionInterval:
    if not 0.0 < confidence < 1.0:
        raise ValueError(f"confidence must be in (0, 1), got {confidence!r}")
    x0 = _design_row(model, record)
    point = float(x0 @ model.coefficients.to_numpy())
    leverage = float(x0 @ model.xtx_pinv @ x0)
    t_crit = float(stats.t.ppf(0.5 + confidence / 2.0, model.df_resid))
    spread = 1.0 + leverage if new_observation else leverage
    half_width = t_crit * model.sigma * np.sqrt(spread)
    return PredictionInterval(point, point - half_width, point + half_width)


def predict(
    model: RateModel,
    record: Record,
    *,
    confidence: Optional[float] = None,
) -> PredictionInterval:
    """
    Predict borrower_rate for one loan with a two-sided prediction interval.

    Raises MissingPredictor if `record` lacks (or has a null for) any model
    variable, UnseenLevel for a categorical value the model never saw
    (or a homeowner flag that is not a boolean), and ValueError for a
    confidence outside (0, 1).
    """
    if confidence is None:
        confidence = DEFAULT_CONFIDENCE
    return _interval(model, record, confidence, new_observation=True)


def mean_confidence_interval(
    model: RateModel,
    record: Record,
    *,
    confidence: Optional[float] = None,
) -> PredictionInterval:
    """Confidence interval for the mean response at `record`'s design point."""
    if confidence is None:
        confidence = DEFAULT_CONFIDENCE
    return _interval(model, record, confidence, new_observation=False)


def typical_half_width(model: RateModel, *, confidence: Optional[float] = None) -> float:
    """
    Prediction-interval half-width for a borrower at the mean of the fitted design.

    With an intercept the leverage of the design mean is exactly 1 / n_obs, so
    this is the narrowest interval the model quotes for a single loan.
    """
    if confidence is None:
        confidence = DEFAULT_CONFIDENCE
    if not 0.0 < confidence < 1.0:
        raise ValueError(f"confidence must be in (0, 1), got {confidence!r}")
    t_crit = float(stats.t.ppf(0.5 + confidence / 2.0, model.df_resid))
    return t_crit * model.sigma * float(np.sqrt(1.0 + 1.0 / model.n_obs))
