"""
Distributions package — descriptive summaries of the cleaned loan table.

  summary.py — numeric distributions, category counts, rate by rating,
               volume by quarter, status mix by rating
"""

from .summary import (
    summarize_numeric,
    category_counts,
    rate_by_credit_rating,
    loans_by_quarter,
    status_by_credit_rating,
    summarize_loans,
)

__all__ = [
    "summarize_numeric",
    "category_counts",
    "rate_by_credit_rating",
    "loans_by_quarter",
    "status_by_credit_rating",
    "summarize_loans",
]
