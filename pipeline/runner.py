"""
Pipeline runner — one synchronous pass over one loan file.

    load -> clean -> validate -> summarize -> fit M1..M6 -> comparison table

Every stage takes the previous stage's output explicitly; nothing is held in
module-level state. The cleaned table is never modified after cleaning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from core.config import PipelineConfig
from core.errors import DataValidationError
from data_prep.cleaner import CleanedLoans, clean_loan_records
from data_prep.loader import load_loan_file
from data_prep.validators import ValidationResult, validate_loan_records
from distributions.summary import summarize_loans
from models.prediction import PredictionInterval, Record, predict
from models.rate_model import RateModel, compare_models, fit_sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    """Everything the reporting layer consumes."""
    config: PipelineConfig
    cleaned: CleanedLoans
    validation: ValidationResult
    summaries: Dict[str, pd.DataFrame]
    models: List[RateModel]
    comparison: pd.DataFrame

    @property
    def final_model(self) -> RateModel:
        return self.models[-1]

    def predict(self, record: Record, *, confidence: Optional[float] = None) -> PredictionInterval:
        """Prediction interval from the final model at the configured confidence level."""
        return predict(
            self.final_model,
            record,
            confidence=self.config.confidence_level if confidence is None else confidence,
        )


def run_analysis(raw: pd.DataFrame, config: Optional[PipelineConfig] = None) -> PipelineResult:
    """
    Run every stage on an already-loaded raw frame.

    Cleaning errors propagate unchanged; blocking validation errors raise
    DataValidationError.
    """
    cfg = config or PipelineConfig()

    cleaned = clean_loan_records(raw, cfg)

    validation = validate_loan_records(cleaned, cfg)
    for w in validation.warnings:
        logger.warning("validation: %s", w)
    if not validation.is_valid:
        raise DataValidationError(validation)

    summaries = summarize_loans(cleaned)
    models = fit_sequence(cleaned, response=cfg.response)
    comparison = compare_models(cleaned, models)
    logger.info(
        "Fitted %d models; final R²=%.4f on %d loans",
        len(models), models[-1].r_squared, models[-1].n_obs,
    )

    return PipelineResult(
        config=cfg,
        cleaned=cleaned,
        validation=validation,
        summaries=summaries,
        models=models,
        comparison=comparison,
    )


def run_pipeline(path: Union[str, Path], config: Optional[PipelineConfig] = None) -> PipelineResult:
    """Load the loan file at `path` and run the full analysis on it."""
    cfg = config or PipelineConfig()
    raw = load_loan_file(path, low_memory=cfg.low_memory)
    return run_analysis(raw, cfg)
