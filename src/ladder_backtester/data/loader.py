"""
CSV ingestion for exchange daily-history exports.

Columns are read as text so the normalizer sees the exported values
verbatim (grouped digits included); numeric parsing happens there.
"""

import io
from pathlib import Path

import pandas as pd

from ladder_backtester.core.errors import EmptySeriesError, MissingColumnsError
from ladder_backtester.core.normalizer import REQUIRED_FIELDS
from ladder_backtester.logging import get_logger

logger = get_logger(__name__)


def _prepare(df: pd.DataFrame, source: str) -> pd.DataFrame:
    df.columns = [str(col).strip().upper() for col in df.columns]

    missing = set(REQUIRED_FIELDS) - set(df.columns)
    if missing:
        raise MissingColumnsError(missing)

    df = df.dropna(how="all").reset_index(drop=True)
    if df.empty:
        raise EmptySeriesError(f"no rows in {source}")

    logger.info("Price data loaded", source=source, rows=len(df))
    return df


def load_csv(path: str | Path) -> pd.DataFrame:
    """Load a daily-history CSV with DATE/OPEN/HIGH/LOW/CLOSE columns."""
    try:
        df = pd.read_csv(path, dtype=str, skipinitialspace=True, skip_blank_lines=True)
    except pd.errors.EmptyDataError as e:
        raise EmptySeriesError(f"no data in {path}") from e
    return _prepare(df, str(path))


def read_csv_text(text: str, source: str = "<text>") -> pd.DataFrame:
    """Same as load_csv() for CSV content already in memory (e.g. an upload)."""
    try:
        df = pd.read_csv(io.StringIO(text), dtype=str, skipinitialspace=True, skip_blank_lines=True)
    except pd.errors.EmptyDataError as e:
        raise EmptySeriesError(f"no data in {source}") from e
    return _prepare(df, source)
