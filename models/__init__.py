"""
Borrower-rate regression models.

  design.py      — design matrices and the fixed M1..M6 variable sequence
  rate_model.py  — OLS fits, the nested sequence, the comparison table
  prediction.py  — point predictions with prediction / mean-confidence intervals
"""

from .design import MODEL_NAMES, MODEL_SEQUENCE, build_design_matrix
from .rate_model import RateModel, compare_models, fit_rate_model, fit_sequence
from .prediction import (
    DEFAULT_CONFIDENCE,
    LoanProfile,
    PredictionInterval,
    mean_confidence_interval,
    predict,
    typical_half_width,
)

__all__ = [
    "MODEL_NAMES",
    "MODEL_SEQUENCE",
    "build_design_matrix",
    "RateModel",
    "compare_models",
    "fit_rate_model",
    "fit_sequence",
    "DEFAULT_CONFIDENCE",
    "LoanProfile",
    "PredictionInterval",
    "mean_confidence_interval",
    "predict",
    "typical_half_width",
]
