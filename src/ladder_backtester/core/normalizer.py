"""
BarNormalizer — Raw exported rows to ordered numeric bars.

Handles:
- Digit grouping in price text ("1,150.00", "1,15,000.00")
- Exchange export dates ("21-Mar-2025") and ISO dates
- Newest-first exports (output is always oldest-first)
"""

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import pandas as pd

from ladder_backtester.core.errors import (
    DuplicateDateError,
    EmptySeriesError,
    MalformedDateError,
    MalformedPriceError,
)
from ladder_backtester.logging import get_logger

logger = get_logger(__name__)


PRICE_FIELDS = ("OPEN", "HIGH", "LOW", "CLOSE")
REQUIRED_FIELDS = frozenset({"DATE", *PRICE_FIELDS})

DATE_FORMATS = ("%d-%b-%Y", "%Y-%m-%d", "%d-%m-%Y", "%d/%m/%Y", "%d %b %Y")

_PLAIN_NUMBER = re.compile(r"^\+?\d+(?:\.\d+)?$|^\+?\.\d+$")
# Western (1,150,000) and Indian (11,50,000) grouping
_GROUPED_NUMBER = re.compile(r"^\+?\d{1,3}(?:(?:,\d{3})+|(?:,\d{2})*,\d{3})(?:\.\d+)?$")


@dataclass(frozen=True)
class PriceBar:
    """One daily OHLC bar. low <= open, close <= high is assumed, not enforced."""

    date: date
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "open": str(self.open),
            "high": str(self.high),
            "low": str(self.low),
            "close": str(self.close),
        }


def parse_price(raw: Any, field: str = "price") -> Decimal:
    """
    Parse a price field into a positive Decimal.

    Text may carry digit-grouping commas; anything else that is not a plain
    decimal number raises MalformedPriceError instead of being truncated.
    """
    if isinstance(raw, bool) or raw is None:
        raise MalformedPriceError(field, raw)

    if isinstance(raw, (int, float, Decimal)):
        if isinstance(raw, float) and not math.isfinite(raw):
            raise MalformedPriceError(field, raw, "non-finite price")
        value = Decimal(str(raw))
    elif isinstance(raw, str):
        text = raw.strip()
        if _GROUPED_NUMBER.match(text):
            text = text.replace(",", "")
        elif not _PLAIN_NUMBER.match(text):
            raise MalformedPriceError(field, raw)
        try:
            value = Decimal(text)
        except InvalidOperation as e:
            raise MalformedPriceError(field, raw) from e
    else:
        raise MalformedPriceError(field, raw, f"unsupported type {type(raw).__name__}")

    if not value.is_finite():
        raise MalformedPriceError(field, raw, "non-finite price")
    if value <= 0:
        raise MalformedPriceError(field, raw, "non-positive price")
    return value


def parse_date(raw: Any) -> date:
    """Parse a date field (export text, ISO text, or date-like object)."""
    if isinstance(raw, pd.Timestamp):
        if pd.isna(raw):
            raise MalformedDateError(raw)
        return raw.date()
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        raise MalformedDateError(raw)

    text = raw.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise MalformedDateError(raw)


def _canonical_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """Upper-case and strip keys so 'Close ' and 'CLOSE' resolve alike."""
    return {str(key).strip().upper(): value for key, value in row.items()}


def normalize_bar(row: Mapping[str, Any]) -> PriceBar:
    """Convert one raw row into a PriceBar."""
    canonical = _canonical_row(row)
    prices = {name: parse_price(canonical.get(name), field=name) for name in PRICE_FIELDS}
    return PriceBar(
        date=parse_date(canonical.get("DATE")),
        open=prices["OPEN"],
        high=prices["HIGH"],
        low=prices["LOW"],
        close=prices["CLOSE"],
    )


def normalize_bars(rows: Iterable[Mapping[str, Any]] | pd.DataFrame) -> list[PriceBar]:
    """
    Normalize raw rows into PriceBars ordered oldest-first.

    Args:
        rows: Row mappings with DATE/OPEN/HIGH/LOW/CLOSE fields, or a DataFrame
            with those columns. Input order does not matter.

    Returns:
        Bars sorted by date ascending, one per trading date.

    Raises:
        EmptySeriesError: No rows.
        MalformedPriceError: A price field is not a valid positive number.
        MalformedDateError: A date field cannot be parsed.
        DuplicateDateError: Two rows share a trading date.
    """
    if isinstance(rows, pd.DataFrame):
        records: list[Mapping[str, Any]] = rows.to_dict(orient="records")
    else:
        records = list(rows)

    if not records:
        raise EmptySeriesError()

    bars = [normalize_bar(row) for row in records]
    descending = len(bars) > 1 and bars[0].date > bars[-1].date
    bars.sort(key=lambda bar: bar.date)
    for previous, bar in zip(bars, bars[1:]):
        if bar.date == previous.date:
            raise DuplicateDateError(bar.date)

    logger.debug(
        "Bars normalized",
        count=len(bars),
        first=bars[0].date.isoformat(),
        last=bars[-1].date.isoformat(),
        reversed_input=descending,
    )
    return bars
