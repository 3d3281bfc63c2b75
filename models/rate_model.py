"""
Rate Model Builder: nested OLS regressions of borrower_rate.

M1 uses credit_rating alone; every later model adds one variable
(see design.MODEL_SEQUENCE). Each model is an independent fit of
(cleaned loans, variable list) -> RateModel, so the sequence could be fitted
in any order; it is presented M1..M6.

Rows with a null in any active variable (or the response) are left out of that
fit only. The count is kept on the model and signalled with a RowExcluded warning.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.metrics import r2_score

from core.errors import InsufficientData, RowExcluded
from core.utils import require_columns
from data_prep.cleaner import CleanedLoans

from .design import MODEL_NAMES, MODEL_SEQUENCE, Levels, as_frame, build_design_matrix

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateModel:
    """One fitted OLS model of the response on `variables`."""
    name: str
    variables: Tuple[str, ...]
    response: str
    coefficients: pd.Series          # indexed by design column, Intercept first
    r_squared: float
    adj_r_squared: float
    sigma: float                     # residual standard error
    rss: float
    n_obs: int
    n_excluded: int
    rank: int
    df_resid: int
    f_statistic: float
    f_pvalue: float
    xtx_pinv: np.ndarray = field(repr=False)
    levels: Levels = field(default_factory=dict)

    @property
    def df_model(self) -> int:
        return self.rank - 1

    @property
    def design_columns(self) -> Tuple[str, ...]:
        return tuple(self.coefficients.index)

    def summary(self) -> Dict[str, object]:
        return {
            "model": self.name,
            "added_variable": self.variables[-1] if self.variables else None,
            "n_obs": self.n_obs,
            "n_excluded": self.n_excluded,
            "df_model": self.df_model,
            "r_squared": self.r_squared,
            "adj_r_squared": self.adj_r_squared,
            "sigma": self.sigma,
            "f_statistic": self.f_statistic,
            "f_pvalue": self.f_pvalue,
        }

    def __repr__(self) -> str:
        return (
            f"RateModel({self.name}: {' + '.join(self.variables)}, "
            f"R²={self.r_squared:.4f}, n={self.n_obs}, excluded={self.n_excluded})"
        )


def _complete_rows(frame: pd.DataFrame, columns: Sequence[str]) -> pd.Series:
    return frame[list(columns)].notna().all(axis=1)


def fit_rate_model(
    cleaned: Union[CleanedLoans, pd.DataFrame],
    variables: Sequence[str],
    *,
    name: Optional[str] = None,
    response: str = "borrower_rate",
) -> RateModel:
    """
    Fit OLS of `response` on `variables` over the complete rows of `cleaned`.

    Raises InsufficientData if the complete rows cannot identify the model.
    """
    frame = as_frame(cleaned)
    variables = tuple(variables)
    columns = [*variables, response]
    require_columns(frame, columns)
    name = name or " + ".join(variables) or "intercept only"

    complete = _complete_rows(frame, columns)
    n_excluded = int((~complete).sum())
    data = frame.loc[complete, columns]
    if n_excluded:
        logger.warning("%s: excluded %d rows with nulls in %s", name, n_excluded, columns)
        warnings.warn(RowExcluded(name, n_excluded, columns), stacklevel=2)

    X_df, levels = build_design_matrix(data, variables)
    X = X_df.to_numpy(dtype=float)
    y = data[response].to_numpy(dtype=float)
    n, p = X.shape
    if n <= p:
        raise InsufficientData(f"{name}: {n} complete rows for {p} parameters")

    beta, _, rank, _ = np.linalg.lstsq(X, y, rcond=None)
    rank = int(rank)
    df_resid = n - rank

    fitted = X @ beta
    resid = y - fitted
    rss = float(resid @ resid)
    tss = float(((y - y.mean()) ** 2).sum())
    r2 = float(r2_score(y, fitted))
    sigma = float(np.sqrt(rss / df_resid))
    adj_r2 = 1.0 - (1.0 - r2) * (n - 1) / df_resid

    df_model = rank - 1
    if df_model > 0 and rss > 0:
        f_stat = ((tss - rss) / df_model) / (rss / df_resid)
        f_pvalue = float(stats.f.sf(f_stat, df_model, df_resid))
    else:
        f_stat, f_pvalue = float("nan"), float("nan")

    model = RateModel(
        name=name,
        variables=variables,
        response=response,
        coefficients=pd.Series(beta, index=X_df.columns, name=name),
        r_squared=r2,
        adj_r_squared=float(adj_r2),
        sigma=sigma,
        rss=rss,
        n_obs=n,
        n_excluded=n_excluded,
        rank=rank,
        df_resid=df_resid,
        f_statistic=float(f_stat),
        f_pvalue=f_pvalue,
        xtx_pinv=np.linalg.pinv(X.T @ X),
        levels=levels,
    )
    logger.debug("Fitted %r", model)
    return model


def fit_sequence(
    cleaned: Union[CleanedLoans, pd.DataFrame],
    *,
    sequence: Sequence[Sequence[str]] = MODEL_SEQUENCE,
    names: Sequence[str] = MODEL_NAMES,
    response: str = "borrower_rate",
) -> List[RateModel]:
    """Fit the nested models in order (M1..M6 by default)."""
    if len(names) != len(sequence):
        raise ValueError(f"{len(names)} names for {len(sequence)} models")
    models = []
    for name, variables in zip(names, sequence):
        model = fit_rate_model(cleaned, variables, name=name, response=response)
        logger.info(
            "%s (+%s): R²=%.4f adj=%.4f n=%d excluded=%d",
            name, variables[-1], model.r_squared, model.adj_r_squared,
            model.n_obs, model.n_excluded,
        )
        models.append(model)
    return models


def compare_models(
    cleaned: Union[CleanedLoans, pd.DataFrame],
    models: Sequence[RateModel],
) -> pd.DataFrame:
    """
    Nested-model comparison table, one row per model.

    delta_r_squared is the in-sample gain over the previous model. The partial
    F-test (f_change, p_change) refits the previous model on exactly the rows the
    current model used, so both sides of the test see the same observations.
    """
    frame = as_frame(cleaned)
    rows = []
    prev: Optional[RateModel] = None
    for model in models:
        row = model.summary()
        row["delta_r_squared"] = float("nan")
        row["f_change"] = float("nan")
        row["p_change"] = float("nan")
        if prev is not None:
            row["delta_r_squared"] = model.r_squared - prev.r_squared
            same_rows = frame.loc[_complete_rows(frame, [*model.variables, model.response])]
            restricted = fit_rate_model(
                same_rows, prev.variables, name=f"{prev.name} on {model.name} rows",
                response=model.response,
            )
            df_num = model.rank - restricted.rank
            if df_num > 0 and model.rss > 0:
                f_change = ((restricted.rss - model.rss) / df_num) / (model.rss / model.df_resid)
                row["f_change"] = float(f_change)
                row["p_change"] = float(stats.f.sf(f_change, df_num, model.df_resid))
        rows.append(row)
        prev = model
    return pd.DataFrame(rows).set_index("model")
