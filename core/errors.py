"""
Error taxonomy.

Cleaning errors are fatal: they mean the input file does not match the expected
schema, so the run aborts instead of producing corrupted derived fields.
Model errors are raised to the caller. RowExcluded is a warning, never raised.
"""

from __future__ import annotations

from typing import Any, Hashable, Optional, Sequence


class ProsperAnalysisError(Exception):
    """Base class for every error raised by this package."""


class CleaningError(ProsperAnalysisError, ValueError):
    """A raw field value the cleaner cannot turn into a derived field."""

    reason = "invalid value"

    def __init__(self, field: str, value: Any, row: Optional[Hashable] = None):
        self.field = field
        self.value = value
        self.row = row
        msg = f"{self.reason} in field {field!r}: {value!r}"
        if row is not None:
            msg += f" (row {row!r})"
        super().__init__(msg)

    def at_row(self, row: Hashable) -> "CleaningError":
        """Return a copy of this error tagged with the offending row label."""
        return type(self)(self.field, self.value, row)


class InvalidCategoryCode(CleaningError):
    reason = "listing category code outside 0-20"


class MalformedQuarterString(CleaningError):
    reason = "quarter string is not of the form 'Q<n> <year>'"


class UnknownCreditCode(CleaningError):
    reason = "unknown credit rating code"


class UnknownLoanStatus(CleaningError):
    reason = "unmapped loan status"


class ModelError(ProsperAnalysisError):
    """Base class for rate model errors."""


class MissingPredictor(ModelError, KeyError):
    """A record passed to predict() lacks a variable the model uses."""

    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(variable)

    def __str__(self) -> str:
        return f"record is missing model variable {self.variable!r}"


class UnseenLevel(ModelError, ValueError):
    """A categorical value at prediction time that the model never saw while fitting."""

    def __init__(self, variable: str, value: Any):
        self.variable = variable
        self.value = value
        super().__init__(f"level {value!r} of {variable!r} was not present when the model was fitted")


class InsufficientData(ModelError, ValueError):
    """Too few complete rows to estimate the model."""


class DataValidationError(ProsperAnalysisError):
    """Blocking data-quality errors found after cleaning."""

    def __init__(self, result):
        self.result = result
        super().__init__(result.summary())


class RowExcluded(UserWarning):
    """Rows dropped from one model fit because a variable it uses is null."""

    def __init__(self, model: str, n_excluded: int, variables: Sequence[str]):
        self.model = model
        self.n_excluded = n_excluded
        self.variables = tuple(variables)
        super().__init__(
            f"{model}: excluded {n_excluded} rows with nulls in {list(self.variables)}"
        )
