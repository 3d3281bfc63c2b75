"""
Loan Record Cleaner: raw Prosper export -> cleaned, enriched loan table.

Steps, in dependency order:
  1. canonicalize column names (raw export names -> snake_case)
  2. repair missing / sentinel values and coerce dtypes
  3. derive listing_category, loan_origination_quarter_normalized,
     credit_rating (ordered), credit_rating_source, loan_status_collapsed

The raw frame is never mutated. Structural errors (bad category code, malformed
quarter, unknown credit code) abort the whole run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable, List, Optional

import pandas as pd

from core.config import PipelineConfig, UnknownStatusPolicy
from core.errors import (
    CleaningError,
    InvalidCategoryCode,
    MalformedQuarterString,
    UnknownCreditCode,
    UnknownLoanStatus,
)
from core.schema import (
    CREDIT_RATING_DTYPE,
    LISTING_CATEGORIES,
    LOAN_STATUS_DTYPE,
    NO_CREDIT_SENTINEL,
    NUMERIC_COLUMNS,
    PAST_DUE_STATUSES,
    PROSPER_COLUMNS,
    REQUIRED_COLUMNS,
    TEXT_COLUMNS,
    CreditRating,
    ListingCategory,
    LoanStatus,
)
from core.utils import blank_to_na, require_columns, to_nullable_bool

logger = logging.getLogger(__name__)

_LISTING_CATEGORY_DTYPE = pd.CategoricalDtype(categories=[c.value for c in LISTING_CATEGORIES])
_KNOWN_STATUSES = frozenset(PAST_DUE_STATUSES) | {s.value for s in LoanStatus}


@dataclass(frozen=True, eq=False, init=False)
class CleanedLoans:
    """
    The cleaned loan table, produced once and read-only afterwards.

    The table is copied on the way in, and `frame` / `records` hand out copies,
    so no consumer can change what another one reads.
    """
    _frame: pd.DataFrame = field(repr=False)
    n_status_defaulted: int = 0  # unmapped/missing statuses folded into "Past Due"

    def __init__(self, frame: pd.DataFrame, n_status_defaulted: int = 0) -> None:
        object.__setattr__(self, "_frame", frame.copy())
        object.__setattr__(self, "n_status_defaulted", int(n_status_defaulted))

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame.copy()

    @property
    def records(self) -> pd.DataFrame:
        return self.frame

    @property
    def n_rows(self) -> int:
        return len(self._frame)

    def __len__(self) -> int:
        return len(self._frame)


def _text(value: Any) -> str:
    """Missing -> empty string; everything else stripped text."""
    if value is None or value is pd.NA:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    return str(value).strip()


# ---------------------------------------------------------------------------
# Field-level operations
# ---------------------------------------------------------------------------

def resolve_listing_category(code: Any, *, field: str = "listing_category_code") -> ListingCategory:
    """Map a numeric listing category code (0-20) to its category."""
    if isinstance(code, bool):
        raise InvalidCategoryCode(field, code)
    try:
        as_float = float(code)
    except (TypeError, ValueError):
        raise InvalidCategoryCode(field, code) from None
    if not as_float.is_integer():
        raise InvalidCategoryCode(field, code)
    idx = int(as_float)
    if not 0 <= idx < len(LISTING_CATEGORIES):
        raise InvalidCategoryCode(field, code)
    return LISTING_CATEGORIES[idx]


def normalize_quarter(raw_quarter: Any, *, field: str = "loan_origination_quarter") -> str:
    """'Q2 2009' -> '2009 Q2', so that lexical order is chronological order."""
    if not isinstance(raw_quarter, str):
        raise MalformedQuarterString(field, raw_quarter)
    tokens = raw_quarter.split(" ")
    if len(tokens) != 2:
        raise MalformedQuarterString(field, raw_quarter)
    quarter, year = tokens
    if quarter not in ("Q1", "Q2", "Q3", "Q4") or len(year) != 4 or not year.isdigit():
        raise MalformedQuarterString(field, raw_quarter)
    return f"{year} {quarter}"


def derive_credit_rating(
    credit_grade: Any,
    prosper_rating: Any,
    *,
    field: str = "credit_grade+prosper_rating",
) -> Optional[CreditRating]:
    """
    Combine the pre-2009 CreditGrade and the post-2009 ProsperRating into one
    ordered rating. At most one of them is populated for a given loan, so the
    two are concatenated; empty or "NC" means the rating is unknown (None).
    """
    combined = _text(credit_grade) + _text(prosper_rating)
    if combined in ("", NO_CREDIT_SENTINEL):
        return None
    try:
        return CreditRating(combined)
    except ValueError:
        raise UnknownCreditCode(field, combined) from None


def is_known_loan_status(status: Any) -> bool:
    return _text(status) in _KNOWN_STATUSES


def collapse_loan_status(
    status: Any,
    *,
    policy: UnknownStatusPolicy = UnknownStatusPolicy.PAST_DUE,
    field: str = "loan_status",
) -> LoanStatus:
    """
    Merge the six "Past Due (N days)" buckets into "Past Due". Other known
    statuses pass through. Unmapped or missing statuses become "Past Due"
    under the default policy, or raise UnknownLoanStatus under ERROR.
    """
    text = _text(status)
    if text in PAST_DUE_STATUSES:
        return LoanStatus.PAST_DUE
    try:
        return LoanStatus(text)
    except ValueError:
        pass
    if UnknownStatusPolicy(policy) is UnknownStatusPolicy.ERROR:
        raise UnknownLoanStatus(field, status)
    return LoanStatus.PAST_DUE


# ---------------------------------------------------------------------------
# Table-level cleaning
# ---------------------------------------------------------------------------

def canonicalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy with raw export names mapped to internal names and duplicates coalesced."""
    if df.empty and len(df.columns) == 0:
        return df.copy()

    ren = {c: PROSPER_COLUMNS.get(c, c) for c in df.columns}
    out = df.rename(columns=ren).copy()

    # Both the raw and the internal name present (e.g. a partially cleaned file):
    # coalesce duplicates by taking the first non-null.
    if out.columns.duplicated().any():
        new_cols: List[str] = []
        parts: List[pd.Series] = []
        seen: set[str] = set()
        cols = list(out.columns)
        for name in cols:
            if name in seen:
                continue
            idxs = [i for i, c in enumerate(cols) if c == name]
            s = out.iloc[:, idxs[0]]
            for j in idxs[1:]:
                s = s.combine_first(out.iloc[:, j])
            new_cols.append(name)
            parts.append(s)
            seen.add(name)
        out = pd.concat(parts, axis=1)
        out.columns = new_cols

    return out


def repair_missing_values(df: pd.DataFrame) -> pd.DataFrame:
    """Blank strings -> missing, numeric/boolean/date coercion. Returns a copy."""
    out = df.copy()
    for col in TEXT_COLUMNS:
        if col in out.columns:
            out[col] = blank_to_na(out[col])
    for col in NUMERIC_COLUMNS:
        if col in out.columns:
            out[col] = pd.to_numeric(out[col], errors="coerce")
    if "is_borrower_homeowner" in out.columns:
        out["is_borrower_homeowner"] = to_nullable_bool(out["is_borrower_homeowner"])
    if "loan_origination_date" in out.columns:
        out["loan_origination_date"] = pd.to_datetime(out["loan_origination_date"], errors="coerce")
    return out


def _derive(series: pd.Series, func: Callable[[Any], Any]) -> List[Any]:
    values = []
    for row, value in series.items():
        try:
            values.append(func(value))
        except CleaningError as exc:
            raise exc.at_row(row) from exc
    return values


def _derive_pair(left: pd.Series, right: pd.Series, func: Callable[[Any, Any], Any]) -> List[Any]:
    values = []
    rows: List[Hashable] = list(left.index)
    for row, a, b in zip(rows, left.to_numpy(), right.to_numpy()):
        try:
            values.append(func(a, b))
        except CleaningError as exc:
            raise exc.at_row(row) from exc
    return values


def _rating_source(df: pd.DataFrame) -> pd.Series:
    rated = df["credit_rating"].notna()
    source = pd.Series(pd.NA, index=df.index, dtype="string")
    source[rated & df["credit_grade"].notna()] = "credit_grade"
    source[rated & df["prosper_rating"].notna()] = "prosper_rating"
    return source


def clean_loan_records(raw: pd.DataFrame, config: Optional[PipelineConfig] = None) -> CleanedLoans:
    """
    Build the cleaned loan table from the raw export.

    Deterministic: the same raw input always yields an identical cleaned table.
    Raises a CleaningError subclass naming field, value and row on schema violations.
    """
    cfg = config or PipelineConfig()
    df = canonicalize_columns(raw)
    require_columns(df, REQUIRED_COLUMNS)
    df = repair_missing_values(df)

    categories = _derive(df["listing_category_code"], resolve_listing_category)
    df["listing_category_code"] = [c.code for c in categories]
    df["listing_category"] = pd.Categorical([c.value for c in categories], dtype=_LISTING_CATEGORY_DTYPE)

    df["loan_origination_quarter_normalized"] = pd.Series(
        _derive(df["loan_origination_quarter"], normalize_quarter), index=df.index, dtype="string"
    )

    ratings = _derive_pair(df["credit_grade"], df["prosper_rating"], derive_credit_rating)
    df["credit_rating"] = pd.Categorical(
        [r.value if r is not None else None for r in ratings], dtype=CREDIT_RATING_DTYPE
    )
    df["credit_rating_source"] = _rating_source(df)

    policy = cfg.unknown_status_policy
    statuses = _derive(df["loan_status"], lambda s: collapse_loan_status(s, policy=policy))
    df["loan_status_collapsed"] = pd.Categorical([s.value for s in statuses], dtype=LOAN_STATUS_DTYPE)

    n_defaulted = sum(not is_known_loan_status(s) for s in df["loan_status"])
    if n_defaulted:
        logger.warning(
            "%d rows had a missing or unmapped loan_status and were counted as 'Past Due'",
            n_defaulted,
        )

    df = df.reset_index(drop=True)
    logger.info(
        "Cleaned %d loan records (%d without a credit rating)",
        len(df), int(df["credit_rating"].isna().sum()),
    )
    return CleanedLoans(frame=df, n_status_defaulted=n_defaulted)
