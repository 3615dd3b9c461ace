# dataio/data_saver.py
import logging
import os
from pathlib import Path
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from models import Dataset, FitResult

logger = logging.getLogger(__name__)


def save_dataset(dataset: Dataset, save_path: str, rows: Optional[Iterable[int]] = None,
                 fit_result: Optional[FitResult] = None, sep: str = ","):
    """Write the table (optionally only *rows*) to CSV.

    With a fit result, a ``Residual`` column is appended; rows that did not
    take part in the fit get an empty cell.
    """
    indices = sorted(rows) if rows is not None else list(range(len(dataset)))
    df = pd.DataFrame([dataset[i] for i in indices], columns=dataset.columns)
    if fit_result is not None:
        by_row = dict(zip(fit_result.row_indices, fit_result.residuals))
        df["Residual"] = [by_row.get(i, np.nan) for i in indices]
    Path(save_path).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(save_path, index=False, sep=sep)
    logger.info("Saved %d rows to %s", len(df), save_path)
    return save_path


def save_report(text: str, save_path: str):
    """Write a plain-text regression report."""
    folder = os.path.dirname(save_path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    with open(save_path, "w", encoding="utf-8") as fh:
        fh.write(text)
        if not text.endswith("\n"):
            fh.write("\n")
    logger.info("Saved report to %s", save_path)
    return save_path
