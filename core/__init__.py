"""
Core package — schema definitions, closed enumerations, configuration, errors
and shared utilities. No business logic lives here.
"""

from .schema import (
    PROSPER_COLUMNS,
    REQUIRED_COLUMNS,
    CREDIT_RATING_LEVELS,
    CREDIT_RATING_DTYPE,
    PAST_DUE_STATUSES,
    CreditRating,
    ListingCategory,
    LoanStatus,
)
from .config import PipelineConfig, UnknownStatusPolicy
from .errors import (
    ProsperAnalysisError,
    CleaningError,
    InvalidCategoryCode,
    MalformedQuarterString,
    UnknownCreditCode,
    UnknownLoanStatus,
    ModelError,
    MissingPredictor,
    UnseenLevel,
    InsufficientData,
    DataValidationError,
    RowExcluded,
)
from .utils import require_columns

__all__ = [
    "PROSPER_COLUMNS",
    "REQUIRED_COLUMNS",
    "CREDIT_RATING_LEVELS",
    "CREDIT_RATING_DTYPE",
    "PAST_DUE_STATUSES",
    "CreditRating",
    "ListingCategory",
    "LoanStatus",
    "PipelineConfig",
    "UnknownStatusPolicy",
    "ProsperAnalysisError",
    "CleaningError",
    "InvalidCategoryCode",
    "MalformedQuarterString",
    "UnknownCreditCode",
    "UnknownLoanStatus",
    "ModelError",
    "MissingPredictor",
    "UnseenLevel",
    "InsufficientData",
    "DataValidationError",
    "RowExcluded",
    "require_columns",
]
