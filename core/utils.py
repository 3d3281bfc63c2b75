from __future__ import annotations

from typing import Iterable

import pandas as pd


def require_columns(df: pd.DataFrame, cols: Iterable[str]) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")


def blank_to_na(series: pd.Series) -> pd.Series:
    """Strip strings and turn empty / whitespace-only values into missing."""
    s = series.astype("string").str.strip()
    return s.mask(s == "")


def to_nullable_bool(series: pd.Series) -> pd.Series:
    """Coerce True/False, "True"/"False", "true"/"false" and 1/0 to a nullable boolean."""
    if pd.api.types.is_bool_dtype(series):
        return series.astype("boolean")
    mapping = {"true": True, "false": False, "1": True, "0": False, "1.0": True, "0.0": False}
    s = series.astype("string").str.strip().str.lower().astype(object)
    return s.map(mapping, na_action="ignore").astype("boolean")
