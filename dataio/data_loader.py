# dataio/data_loader.py
import csv
import io
import logging
import os
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from models import Dataset

logger = logging.getLogger(__name__)


class DataLoadError(RuntimeError):
    """Raised when a file cannot be turned into a usable dataset."""


def dataset_from_frame(df: pd.DataFrame) -> Dataset:
    """Coerce every cell to a number (non-numeric becomes NaN)."""
    columns = [str(c).strip() for c in df.columns]
    numeric = df.apply(pd.to_numeric, errors="coerce").to_numpy(dtype=float)
    rows = [dict(zip(columns, (float(v) for v in values))) for values in numeric]
    return Dataset(rows, columns)


def load_data_from_text(text: str, sep: Optional[str] = ",") -> Dataset:
    """Parse CSV text with a header row into a Dataset."""
    try:
        df = pd.read_csv(io.StringIO(text.strip()), sep=sep, skipinitialspace=True)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        raise DataLoadError(f"Failed to parse CSV text: {exc}") from exc
    return _validated(dataset_from_frame(df), "CSV text")


def _validated(dataset: Dataset, label: str) -> Dataset:
    if len(dataset) == 0 or len(dataset.columns) < 2:
        raise DataLoadError(f"{label} is empty or has less than two columns.")
    n_numeric = sum(
        1 for c in dataset.columns if np.isfinite(np.asarray(dataset.column_values(c), dtype=float)).any()
    )
    if n_numeric < 2:
        logger.warning("%s has fewer than two numeric columns", label)
    return dataset


def load_data_from_file(filepath: str) -> Tuple[Dataset, dict]:
    """Load a CSV file with a header row. Returns (dataset, file_info)."""
    name = os.path.basename(filepath)
    try:
        # sep=None lets pandas sniff comma/semicolon/tab files
        df = pd.read_csv(filepath, sep=None, engine="python", skipinitialspace=True)
    except (OSError, UnicodeDecodeError, csv.Error, pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        raise DataLoadError(f"Failed to load {name}: {exc}") from exc

    dataset = _validated(dataset_from_frame(df), name)
    file_info = {
        "path": filepath,
        "name": name,
        "size": os.path.getsize(filepath),
    }
    logger.info("Loaded %s: %d rows, %d columns", name, len(dataset), len(dataset.columns))
    return dataset, file_info
