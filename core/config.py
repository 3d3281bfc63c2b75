"""
Pipeline configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import pandas as pd


class UnknownStatusPolicy(str, Enum):
    """What the cleaner does with a loan status it has no mapping for (or a missing one)."""

    PAST_DUE = "past_due"  # fold into "Past Due", as the source data analysis did
    ERROR = "error"        # raise UnknownLoanStatus


@dataclass(frozen=True)
class PipelineConfig:
    confidence_level: float = 0.95
    unknown_status_policy: UnknownStatusPolicy = UnknownStatusPolicy.PAST_DUE

    # Prosper switched from CreditGrade to ProsperRating for loans originated from July 2009
    rating_cutover: pd.Timestamp = field(default_factory=lambda: pd.Timestamp("2009-07-01"))

    response: str = "borrower_rate"

    # forwarded to pd.read_csv
    low_memory: bool = False

    def __post_init__(self):
        if not 0.0 < self.confidence_level < 1.0:
            raise ValueError(f"confidence_level must be in (0, 1), got {self.confidence_level!r}")
        # accept plain strings from the CLI
        object.__setattr__(self, "unknown_status_policy", UnknownStatusPolicy(self.unknown_status_policy))
        object.__setattr__(self, "rating_cutover", pd.Timestamp(self.rating_cutover))
