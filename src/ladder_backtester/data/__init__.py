"""Price data ingestion."""

from ladder_backtester.data.loader import load_csv, read_csv_text

__all__ = ["load_csv", "read_csv_text"]
