"""End-to-end tests for the pipeline runner and the command line."""

import numpy as np
import pytest

from core.config import PipelineConfig
from core.errors import DataValidationError, InvalidCategoryCode
from data_prep.loader import load_loan_file
from models.prediction import LoanProfile
from pipeline.cli import main
from pipeline.runner import run_analysis, run_pipeline


@pytest.fixture
def loan_csv(tmp_path, raw_loans):
    path = tmp_path / "prosperLoanData.csv"
    raw_loans.to_csv(path, index=False)
    return path


class TestLoader:
    """Test cases for load_loan_file."""

    def test_csv_round_trip_keeps_export_names(self, loan_csv, raw_loans):
        """Column names come back exactly as exported."""
        df = load_loan_file(loan_csv)
        assert list(df.columns) == list(raw_loans.columns)
        assert len(df) == len(raw_loans)

    def test_excel(self, tmp_path, raw_loans):
        """Workbooks are read with openpyxl."""
        path = tmp_path / "loans.xlsx"
        raw_loans.head(20).to_excel(path, index=False)
        df = load_loan_file(path)
        assert len(df) == 20
        assert "ProsperRating (Alpha)" in df.columns

    def test_unsupported_suffix(self, tmp_path):
        """Unknown file types are refused."""
        with pytest.raises(ValueError, match="Unsupported"):
            load_loan_file(tmp_path / "loans.parquet")


class TestRunPipeline:
    """Test cases for the full pipeline."""

    def test_end_to_end_from_csv(self, loan_csv):
        """Load, clean, summarize and fit six models from a file."""
        with pytest.warns(UserWarning):
            result = run_pipeline(loan_csv)
        assert len(result.models) == 6
        assert result.final_model.name == "M6"
        assert list(result.comparison.index) == ["M1", "M2", "M3", "M4", "M5", "M6"]
        assert result.validation.is_valid
        assert "rate_by_credit_rating" in result.summaries
        assert result.cleaned.frame["credit_rating"].dtype.ordered

    def test_predict_uses_final_model(self, complete_raw_loans):
        """The scenario borrower gets a sensible interval from M6."""
        result = run_analysis(complete_raw_loans, PipelineConfig(confidence_level=0.9))
        point, lower, upper = result.predict(LoanProfile(
            credit_rating="C",
            stated_monthly_income=4667,
            is_borrower_homeowner=True,
            employment_status="Employed",
            available_bankcard_credit=5000,
            debt_to_income_ratio=0.18,
        ))
        assert lower < point < upper
        assert 0.1 < point < 0.3
        wider = result.predict(
            {"credit_rating": "C", "stated_monthly_income": 4667, "is_borrower_homeowner": True,
             "employment_status": "Employed", "available_bankcard_credit": 5000,
             "debt_to_income_ratio": 0.18},
            confidence=0.99,
        )
        assert wider.width > upper - lower

    def test_cleaning_error_aborts(self, raw_loans):
        """Schema violations stop the run."""
        raw = raw_loans.copy()
        raw.loc[5, "ListingCategory (numeric)"] = 21
        with pytest.raises(InvalidCategoryCode):
            run_analysis(raw)

    def test_validation_error_aborts(self, complete_raw_loans):
        """Blocking validation errors stop the run before any fit."""
        raw = complete_raw_loans.copy()
        raw.loc[0, "StatedMonthlyIncome"] = -100.0
        with pytest.raises(DataValidationError) as excinfo:
            run_analysis(raw)
        assert not excinfo.value.result.is_valid

    def test_invalid_confidence_config(self):
        """Confidence outside (0, 1) is rejected at construction."""
        with pytest.raises(ValueError):
            PipelineConfig(confidence_level=95)


class TestCli:
    """Test cases for the prosper-rates command."""

    def test_prints_comparison(self, loan_csv, capsys):
        """Successful runs print the comparison table and exit 0."""
        with pytest.warns(UserWarning):
            code = main([str(loan_csv), "--log-level", "WARNING"])
        out = capsys.readouterr().out
        assert code == 0
        assert "M6" in out
        assert "r_squared" in out

    def test_confidence_flag_sets_interval(self, loan_csv, capsys):
        """--confidence changes the reported prediction half-width."""
        widths = {}
        for level in ("0.8", "0.99"):
            with pytest.warns(UserWarning):
                assert main([str(loan_csv), "--confidence", level, "--log-level", "WARNING"]) == 0
            line = capsys.readouterr().out.strip().splitlines()[-1]
            assert "prediction interval" in line
            widths[level] = float(line.rsplit("+/-", 1)[1])
        assert widths["0.8"] < widths["0.99"]

    def test_bad_input_exits_nonzero(self, tmp_path, raw_loans, capsys):
        """Fatal cleaning errors exit 1 with the offending value on stderr."""
        raw = raw_loans.copy()
        raw.loc[0, "LoanOriginationQuarter"] = "sometime in 2009"
        path = tmp_path / "bad.csv"
        raw.to_csv(path, index=False)
        code = main([str(path), "--log-level", "ERROR"])
        err = capsys.readouterr().err
        assert code == 1
        assert "sometime in 2009" in err
        assert "loan_origination_quarter" in err

    def test_strict_status_policy(self, tmp_path, raw_loans, capsys):
        """--unknown-status error makes unmapped statuses fatal."""
        raw = raw_loans.copy()
        raw.loc[3, "LoanStatus"] = np.nan
        path = tmp_path / "strict.csv"
        raw.to_csv(path, index=False)
        code = main([str(path), "--unknown-status", "error", "--log-level", "ERROR"])
        assert code == 1
        assert "loan_status" in capsys.readouterr().err
