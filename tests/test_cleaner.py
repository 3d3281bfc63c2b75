"""Tests for the loan record cleaner."""

import numpy as np
import pandas as pd
import pytest

from core.config import PipelineConfig, UnknownStatusPolicy
from core.errors import (
    CleaningError,
    InvalidCategoryCode,
    MalformedQuarterString,
    UnknownCreditCode,
    UnknownLoanStatus,
)
from core.schema import (
    CREDIT_RATING_LEVELS,
    PAST_DUE_STATUSES,
    CreditRating,
    ListingCategory,
    LoanStatus,
)
from data_prep.cleaner import (
    CleanedLoans,
    canonicalize_columns,
    clean_loan_records,
    collapse_loan_status,
    derive_credit_rating,
    normalize_quarter,
    resolve_listing_category,
)

LISTING_NAMES = [
    "Not Available", "Debt Consolidation", "Home Improvement", "Business",
    "Personal Loan", "Student Use", "Auto", "Other", "Baby&Adoption", "Boat",
    "Cosmetic Procedure", "Engagement Ring", "Green Loans",
    "Household Expenses", "Large Purchases", "Medical/Dental",
    "Motorcycle", "RV", "Taxes", "Vacation", "Wedding Loans",
]


class TestListingCategory:
    """Test cases for resolve_listing_category."""

    @pytest.mark.parametrize("code", range(21))
    def test_every_code_resolves_to_fixed_name(self, code):
        """Codes 0-20 map to the fixed category table."""
        category = resolve_listing_category(code)
        assert category == LISTING_NAMES[code]
        assert category.value == LISTING_NAMES[code]
        assert category.code == code

    def test_boundary_names(self):
        """Code 0 is 'Not Available', code 20 is 'Wedding Loans'."""
        assert resolve_listing_category(0) is ListingCategory.NOT_AVAILABLE
        assert resolve_listing_category(20) is ListingCategory.WEDDING_LOANS

    def test_integral_float_accepted(self):
        """CSV readers may hand back 3.0 for 3."""
        assert resolve_listing_category(3.0) is ListingCategory.BUSINESS
        assert resolve_listing_category(np.int64(6)) is ListingCategory.AUTO

    @pytest.mark.parametrize("code", [-1, 21, 100, 2.5, None, float("nan"), "abc", True])
    def test_invalid_codes_fail(self, code):
        """Out-of-range or non-integral codes never produce a label."""
        with pytest.raises(InvalidCategoryCode) as excinfo:
            resolve_listing_category(code)
        assert excinfo.value.field == "listing_category_code"


class TestNormalizeQuarter:
    """Test cases for normalize_quarter."""

    def test_reorders_tokens(self):
        """Quarter-then-year becomes year-then-quarter."""
        assert normalize_quarter("Q2 2009") == "2009 Q2"
        assert normalize_quarter("Q4 2013") == "2013 Q4"

    def test_lexical_order_is_chronological(self):
        """Sorting normalized labels as strings gives calendar order."""
        chronological = ["Q4 2005", "Q1 2006", "Q3 2006", "Q2 2008", "Q1 2009",
                         "Q4 2009", "Q1 2010", "Q2 2012", "Q3 2013", "Q1 2014"]
        normalized = [normalize_quarter(q) for q in chronological]
        assert sorted(normalized) == normalized
        # the raw labels do not have this property
        assert sorted(chronological) != chronological

    @pytest.mark.parametrize(
        "raw", ["2009Q2", "Q2 2009 extra", "", "Q2", "Q5 2009", "Q2 09", "Q2  2009", "Q2\t2009", None, 2009]
    )
    def test_malformed_strings_fail(self, raw):
        """Anything other than 'Q<n> <year>' is rejected."""
        with pytest.raises(MalformedQuarterString) as excinfo:
            normalize_quarter(raw)
        assert excinfo.value.value == raw


class TestCreditRating:
    """Test cases for derive_credit_rating and the rating order."""

    def test_documented_cases(self):
        """Empty and NC mean unknown; a single populated code maps to its level."""
        assert derive_credit_rating("", "") is None
        assert derive_credit_rating("", "NC") is None
        assert derive_credit_rating("NC", "") is None
        assert derive_credit_rating("AA", "") is CreditRating.AA
        assert derive_credit_rating("", "C") is CreditRating.C

    def test_missing_values_treated_as_empty(self):
        """NaN / None / pd.NA behave like empty strings."""
        assert derive_credit_rating(np.nan, None) is None
        assert derive_credit_rating(pd.NA, "HR") is CreditRating.HR

    @pytest.mark.parametrize("grade,rating", [("Z", ""), ("A", "B"), ("", "aa"), ("AAA", "")])
    def test_invalid_combination_fails(self, grade, rating):
        """Combined codes outside the seven levels are schema errors."""
        with pytest.raises(UnknownCreditCode):
            derive_credit_rating(grade, rating)

    def test_levels_are_ordered(self):
        """AA is best, HR worst; comparisons follow that order."""
        assert CreditRating.AA < CreditRating.A < CreditRating.B < CreditRating.HR
        assert CreditRating.E > CreditRating.D
        shuffled = [CreditRating.HR, CreditRating.A, CreditRating.D, CreditRating.AA]
        assert [r.value for r in sorted(shuffled)] == ["AA", "A", "D", "HR"]
        assert [CreditRating(level).rank for level in CREDIT_RATING_LEVELS] == list(range(7))


class TestCollapseLoanStatus:
    """Test cases for collapse_loan_status."""

    @pytest.mark.parametrize("status", PAST_DUE_STATUSES)
    def test_past_due_variants_collapse(self, status):
        """All six past-due buckets become 'Past Due'."""
        assert collapse_loan_status(status) is LoanStatus.PAST_DUE

    @pytest.mark.parametrize(
        "status",
        ["Current", "Completed", "Chargedoff", "Defaulted", "Cancelled", "FinalPaymentInProgress"],
    )
    def test_other_statuses_pass_through(self, status):
        """Non past-due statuses are unchanged."""
        assert collapse_loan_status(status).value == status

    def test_already_collapsed_is_stable(self):
        """'Past Due' itself maps to 'Past Due'."""
        assert collapse_loan_status("Past Due") is LoanStatus.PAST_DUE

    @pytest.mark.parametrize("status", ["Mystery", "", None, np.nan])
    def test_unmapped_defaults_to_past_due(self, status):
        """Default policy folds unknown/missing statuses into 'Past Due'."""
        assert collapse_loan_status(status) is LoanStatus.PAST_DUE

    @pytest.mark.parametrize("status", ["Mystery", None])
    def test_error_policy_raises(self, status):
        """With the ERROR policy unknown statuses are reported instead."""
        with pytest.raises(UnknownLoanStatus):
            collapse_loan_status(status, policy=UnknownStatusPolicy.ERROR)


class TestCleanLoanRecords:
    """Test cases for the table-level cleaning pass."""

    def test_adds_derived_columns(self, raw_loans):
        """Cleaned table carries every derived column."""
        cleaned = clean_loan_records(raw_loans)
        frame = cleaned.frame
        for col in ["listing_category", "loan_origination_quarter_normalized", "credit_rating",
                    "credit_rating_source", "loan_status_collapsed"]:
            assert col in frame.columns
        assert len(cleaned) == len(raw_loans)
        assert cleaned.n_rows == len(raw_loans)

    def test_credit_rating_is_ordered_categorical(self, raw_loans):
        """The ordering survives into the table."""
        rating = clean_loan_records(raw_loans).frame["credit_rating"]
        assert isinstance(rating.dtype, pd.CategoricalDtype)
        assert rating.dtype.ordered
        assert list(rating.dtype.categories) == list(CREDIT_RATING_LEVELS)
        assert (rating.dropna() >= "AA").all()

    def test_only_closed_set_values(self, raw_loans):
        """Derived categoricals only hold enumeration values."""
        frame = clean_loan_records(raw_loans).frame
        assert set(frame["listing_category"].astype(str)) <= set(LISTING_NAMES)
        assert set(frame["loan_status_collapsed"].astype(str)) <= {s.value for s in LoanStatus}
        assert not frame["loan_status_collapsed"].astype(str).str.contains("days").any()

    def test_raw_input_not_mutated(self, raw_loans):
        """Cleaning works on a copy."""
        before = raw_loans.copy()
        clean_loan_records(raw_loans)
        pd.testing.assert_frame_equal(raw_loans, before)

    def test_deterministic(self, raw_loans):
        """Same raw input, identical cleaned output."""
        first = clean_loan_records(raw_loans).frame
        second = clean_loan_records(raw_loans).frame
        pd.testing.assert_frame_equal(first, second)

    def test_frame_is_a_copy(self, raw_loans):
        """Writing through .frame does not reach the table other consumers read."""
        cleaned = clean_loan_records(raw_loans)
        cleaned.frame["borrower_rate"] = 9.0
        assert (cleaned.frame["borrower_rate"] != 9.0).all()

    def test_source_frame_detached(self, raw_loans):
        """Changing the frame a CleanedLoans was built from leaves it untouched."""
        frame = clean_loan_records(raw_loans).frame
        cleaned = CleanedLoans(frame=frame, n_status_defaulted=3)
        frame["borrower_rate"] = 9.0
        assert (cleaned.frame["borrower_rate"] != 9.0).all()
        assert cleaned.n_status_defaulted == 3
        with pytest.raises(AttributeError):
            cleaned.n_status_defaulted = 0

    def test_records_is_a_copy(self, raw_loans):
        """Mutating the handed-out records leaves the cleaned table alone."""
        cleaned = clean_loan_records(raw_loans)
        records = cleaned.records
        records["borrower_rate"] = 0.0
        assert (cleaned.frame["borrower_rate"] != 0.0).any()

    def test_blank_strings_become_missing(self, raw_loans):
        """Empty employment status and NC ratings are repaired to missing."""
        frame = clean_loan_records(raw_loans).frame
        assert frame["employment_status"].isna().any()
        assert not (frame["employment_status"].dropna() == "").any()
        assert frame["credit_rating"].isna().any()

    def test_rating_source_follows_cutover(self, raw_loans):
        """Older loans are rated from CreditGrade, newer ones from ProsperRating."""
        frame = clean_loan_records(raw_loans).frame
        cutover = pd.Timestamp("2009-07-01")
        rated = frame[frame["credit_rating"].notna()]
        early = rated["loan_origination_date"] < cutover
        assert (rated.loc[early, "credit_rating_source"] == "credit_grade").all()
        assert (rated.loc[~early, "credit_rating_source"] == "prosper_rating").all()
        assert frame.loc[frame["credit_rating"].isna(), "credit_rating_source"].isna().all()

    def test_homeowner_coerced_to_boolean(self):
        """String booleans from a CSV become a nullable boolean column."""
        raw = _tiny_raw()
        raw["IsBorrowerHomeowner"] = ["True", "false", None]
        frame = clean_loan_records(raw).frame
        assert str(frame["is_borrower_homeowner"].dtype) == "boolean"
        assert frame["is_borrower_homeowner"].tolist()[:2] == [True, False]
        assert frame["is_borrower_homeowner"].isna().iloc[2]

    def test_invalid_code_aborts_with_row(self):
        """A bad category code fails the whole run and names field, value and row."""
        raw = _tiny_raw()
        raw.loc[1, "ListingCategory (numeric)"] = 42
        with pytest.raises(InvalidCategoryCode) as excinfo:
            clean_loan_records(raw)
        err = excinfo.value
        assert err.field == "listing_category_code"
        assert err.value == 42
        assert err.row == 1
        assert "42" in str(err) and "listing_category_code" in str(err)

    def test_malformed_quarter_aborts(self):
        """Malformed quarters are fatal."""
        raw = _tiny_raw()
        raw.loc[2, "LoanOriginationQuarter"] = "2009-Q2"
        with pytest.raises(MalformedQuarterString) as excinfo:
            clean_loan_records(raw)
        assert excinfo.value.row == 2

    def test_both_schemes_populated_aborts(self):
        """A loan with both CreditGrade and ProsperRating is not a valid code."""
        raw = _tiny_raw()
        raw.loc[0, "ProsperRating (Alpha)"] = "B"
        with pytest.raises(UnknownCreditCode) as excinfo:
            clean_loan_records(raw)
        assert excinfo.value.value == "AB"
        assert isinstance(excinfo.value, CleaningError)

    def test_unknown_status_counted(self):
        """Fallback statuses are counted on the result."""
        raw = _tiny_raw()
        raw.loc[0, "LoanStatus"] = "Mystery"
        raw.loc[1, "LoanStatus"] = ""
        cleaned = clean_loan_records(raw)
        assert cleaned.n_status_defaulted == 2
        assert cleaned.frame["loan_status_collapsed"].astype(str).tolist()[:2] == ["Past Due", "Past Due"]

    def test_unknown_status_error_policy(self):
        """The strict policy makes unknown statuses fatal."""
        raw = _tiny_raw()
        raw.loc[2, "LoanStatus"] = "Mystery"
        config = PipelineConfig(unknown_status_policy="error")
        with pytest.raises(UnknownLoanStatus) as excinfo:
            clean_loan_records(raw, config)
        assert excinfo.value.row == 2

    def test_missing_required_column(self):
        """Schema mismatch is reported with the missing names."""
        raw = _tiny_raw().drop(columns=["LoanOriginationQuarter"])
        with pytest.raises(ValueError, match="loan_origination_quarter"):
            clean_loan_records(raw)


class TestCanonicalizeColumns:
    """Test cases for column canonicalization."""

    def test_raw_names_mapped(self):
        """Export names become internal names; unknown columns pass through."""
        out = canonicalize_columns(_tiny_raw())
        assert "listing_category_code" in out.columns
        assert "prosper_rating" in out.columns
        assert "ListingKey" in out.columns

    def test_duplicates_coalesced(self):
        """Raw and internal name both present: first non-null wins."""
        df = pd.DataFrame({"BorrowerRate": [0.1, np.nan], "borrower_rate": [0.5, 0.2]})
        out = canonicalize_columns(df)
        assert list(out.columns) == ["borrower_rate"]
        assert out["borrower_rate"].tolist() == [0.1, 0.2]


def _tiny_raw():
    return pd.DataFrame({
        "ListingKey": ["a", "b", "c"],
        "ListingCategory (numeric)": [1, 0, 20],
        "LoanOriginationDate": ["2008-03-01", "2010-05-12", "2013-11-30"],
        "LoanOriginationQuarter": ["Q1 2008", "Q2 2010", "Q4 2013"],
        "CreditGrade": ["A", "", ""],
        "ProsperRating (Alpha)": ["", "C", "HR"],
        "LoanStatus": ["Completed", "Past Due (1-15 days)", "Current"],
        "EmploymentStatus": ["Employed", "Self-employed", ""],
        "BorrowerRate": [0.12, 0.19, 0.31],
        "ProsperScore": [np.nan, 6.0, 2.0],
        "Term": [36, 36, 60],
        "BorrowerAPR": [0.13, 0.21, 0.34],
        "DebtToIncomeRatio": [0.2, 0.35, 0.1],
        "StatedMonthlyIncome": [3000.0, 5200.0, 4100.0],
        "AvailableBankcardCredit": [1500.0, 9000.0, 0.0],
        "LoanOriginalAmount": [4000, 10000, 2500],
        "IsBorrowerHomeowner": [True, False, True],
    })
