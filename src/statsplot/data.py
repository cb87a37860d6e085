"""Table loading for CSV, Parquet, and Parquet dataset directories."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Optional, List

import pandas as pd

logger = logging.getLogger(__name__)

# Flag to track PyArrow availability
_PYARROW_AVAILABLE: Optional[bool] = None


class DataFormat(str, Enum):
    """Supported data formats."""

    CSV = "csv"
    PARQUET = "parquet"
    PARQUET_DATASET = "parquet_dataset"

    @classmethod
    def from_path(cls, path: Path) -> DataFormat:
        """Infer format from path.

        Raises:
            ValueError: If format cannot be inferred
        """
        path = Path(path)

        if path.is_dir():
            return cls.PARQUET_DATASET

        suffix = path.suffix.lower()
        if suffix == ".csv":
            return cls.CSV
        elif suffix == ".parquet":
            return cls.PARQUET
        else:
            raise ValueError(
                f"Cannot infer data format from path: {path}. "
                f"Expected .csv, .parquet file, or directory for parquet dataset."
            )


def validate_parquet_available() -> None:
    """
    Check if PyArrow is available for Parquet operations.

    Raises
    ------
    ImportError
        If PyArrow is not installed with helpful installation message
    """
    global _PYARROW_AVAILABLE

    if _PYARROW_AVAILABLE is None:
        try:
            import pyarrow  # noqa: F401

            _PYARROW_AVAILABLE = True
        except ImportError:
            _PYARROW_AVAILABLE = False

    if not _PYARROW_AVAILABLE:
        raise ImportError(
            "PyArrow is required for Parquet support but is not installed.\n"
            "Install with: pip install statsplot[parquet] or pip install pyarrow"
        )


def load_table(path: Path, columns: Optional[List[str]] = None) -> pd.DataFrame:
    """
    Load a table from file (CSV, Parquet, or Parquet dataset directory).

    Parameters
    ----------
    path : Path
        Path to data file or directory
    columns : List[str], optional
        Subset of columns to load

    Returns
    -------
    pd.DataFrame
        Loaded data

    Examples
    --------
    >>> df = load_table(Path("mtcars.csv"))
    >>> df = load_table(Path("movies.parquet"), columns=["genre", "rating"])
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    fmt = DataFormat.from_path(path)
    logger.info(f"Loading table from {path} (format: {fmt.value})")

    if fmt == DataFormat.CSV:
        kwargs = {}
        if columns is not None:
            kwargs["usecols"] = columns
        return pd.read_csv(path, **kwargs)

    validate_parquet_available()
    import pyarrow.parquet as pq

    if fmt == DataFormat.PARQUET:
        return pq.read_table(path, columns=columns).to_pandas()

    files = sorted(path.glob("**/*.parquet"))
    if not files:
        raise ValueError(f"No parquet files found in dataset directory: {path}")
    return pq.ParquetDataset(path).read(columns=columns).to_pandas()
