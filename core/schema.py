from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple

import pandas as pd

# Raw Prosper export columns used by the cleaner and the rate models, keyed to
# the snake_case names used everywhere downstream. Raw names must match the
# export exactly.
PROSPER_COLUMNS: Dict[str, str] = {
    "ListingCategory (numeric)": "listing_category_code",
    "LoanOriginationDate": "loan_origination_date",
    "LoanOriginationQuarter": "loan_origination_quarter",
    "CreditGrade": "credit_grade",
    "ProsperRating (Alpha)": "prosper_rating",
    "LoanStatus": "loan_status",
    "EmploymentStatus": "employment_status",
    "BorrowerRate": "borrower_rate",
    "ProsperScore": "prosper_score",
    "Term": "term",
    "BorrowerAPR": "borrower_apr",
    "DebtToIncomeRatio": "debt_to_income_ratio",
    "StatedMonthlyIncome": "stated_monthly_income",
    "AvailableBankcardCredit": "available_bankcard_credit",
    "LoanOriginalAmount": "loan_original_amount",
    "IsBorrowerHomeowner": "is_borrower_homeowner",
    "LenderYield": "lender_yield",
}

# LenderYield is carried through when present but nothing depends on it.
OPTIONAL_COLUMNS: Tuple[str, ...] = ("lender_yield",)

REQUIRED_COLUMNS: Tuple[str, ...] = tuple(
    c for c in PROSPER_COLUMNS.values() if c not in OPTIONAL_COLUMNS
)

NUMERIC_COLUMNS: Tuple[str, ...] = (
    "borrower_rate",
    "prosper_score",
    "term",
    "borrower_apr",
    "debt_to_income_ratio",
    "stated_monthly_income",
    "available_bankcard_credit",
    "loan_original_amount",
    "lender_yield",
)

TEXT_COLUMNS: Tuple[str, ...] = (
    "credit_grade",
    "prosper_rating",
    "loan_status",
    "employment_status",
)


class ListingCategory(str, Enum):
    """Loan purpose as entered on the listing. Definition order = numeric code."""

    NOT_AVAILABLE = "Not Available"
    DEBT_CONSOLIDATION = "Debt Consolidation"
    HOME_IMPROVEMENT = "Home Improvement"
    BUSINESS = "Business"
    PERSONAL_LOAN = "Personal Loan"
    STUDENT_USE = "Student Use"
    AUTO = "Auto"
    OTHER = "Other"
    BABY_ADOPTION = "Baby&Adoption"
    BOAT = "Boat"
    COSMETIC_PROCEDURE = "Cosmetic Procedure"
    ENGAGEMENT_RING = "Engagement Ring"
    GREEN_LOANS = "Green Loans"
    HOUSEHOLD_EXPENSES = "Household Expenses"
    LARGE_PURCHASES = "Large Purchases"
    MEDICAL_DENTAL = "Medical/Dental"
    MOTORCYCLE = "Motorcycle"
    RV = "RV"
    TAXES = "Taxes"
    VACATION = "Vacation"
    WEDDING_LOANS = "Wedding Loans"

    @property
    def code(self) -> int:
        return LISTING_CATEGORIES.index(self)


LISTING_CATEGORIES: Tuple[ListingCategory, ...] = tuple(ListingCategory)


class CreditRating(str, Enum):
    """Credit rating bucket, best (AA) to worst (HR). Comparisons follow that order."""

    AA = "AA"
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    HR = "HR"

    @property
    def rank(self) -> int:
        return CREDIT_RATING_LEVELS.index(self.value)

    def __lt__(self, other):
        if not isinstance(other, CreditRating):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, CreditRating):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, CreditRating):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, CreditRating):
            return NotImplemented
        return self.rank >= other.rank


CREDIT_RATING_LEVELS: Tuple[str, ...] = ("AA", "A", "B", "C", "D", "E", "HR")

# Older listings carry CreditGrade, newer ones ProsperRating; "NC" means no credit.
NO_CREDIT_SENTINEL = "NC"

CREDIT_RATING_DTYPE = pd.CategoricalDtype(categories=list(CREDIT_RATING_LEVELS), ordered=True)


class LoanStatus(str, Enum):
    """Loan status after every past-due bucket is merged into PAST_DUE."""

    CURRENT = "Current"
    COMPLETED = "Completed"
    CHARGEDOFF = "Chargedoff"
    DEFAULTED = "Defaulted"
    CANCELLED = "Cancelled"
    FINAL_PAYMENT_IN_PROGRESS = "FinalPaymentInProgress"
    PAST_DUE = "Past Due"


PAST_DUE_STATUSES: Tuple[str, ...] = (
    "Past Due (1-15 days)",
    "Past Due (16-30 days)",
    "Past Due (31-60 days)",
    "Past Due (61-90 days)",
    "Past Due (91-120 days)",
    "Past Due (>120 days)",
)

LOAN_STATUS_DTYPE = pd.CategoricalDtype(categories=[s.value for s in LoanStatus], ordered=False)
