"""
Data preparation — loading the raw export, cleaning and enriching loan records, validation.
"""

from .loader import load_loan_file
from .cleaner import (
    CleanedLoans,
    canonicalize_columns,
    repair_missing_values,
    resolve_listing_category,
    normalize_quarter,
    derive_credit_rating,
    collapse_loan_status,
    clean_loan_records,
)
from .validators import ValidationResult, validate_loan_records

__all__ = [
    "load_loan_file",
    "CleanedLoans",
    "canonicalize_columns",
    "repair_missing_values",
    "resolve_listing_category",
    "normalize_quarter",
    "derive_credit_rating",
    "collapse_loan_status",
    "clean_loan_records",
    "ValidationResult",
    "validate_loan_records",
]
