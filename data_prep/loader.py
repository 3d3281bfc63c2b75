from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import pandas as pd

logger = logging.getLogger(__name__)

_EXCEL_ENGINES = {".xlsx": "openpyxl", ".xls": "xlrd"}


def load_loan_file(path: Union[str, Path], *, low_memory: bool = False) -> pd.DataFrame:
    """
    Load the raw Prosper loan export (one row per loan, ~81 columns).

    CSV is the usual format; .xlsx / .xls workbooks are read from the first sheet.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in _EXCEL_ENGINES:
        df = pd.read_excel(path, engine=_EXCEL_ENGINES[suffix])
    elif suffix in (".csv", ".txt", ".gz"):
        df = pd.read_csv(path, low_memory=low_memory)
    else:
        raise ValueError(f"Unsupported loan file type {suffix!r} for {path}")
    logger.info("Loaded %d rows x %d columns from %s", len(df), df.shape[1], path)
    return df
