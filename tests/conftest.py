"""Shared test fixtures and helpers for ladder backtester tests."""

import logging
from datetime import date, timedelta
from decimal import Decimal

import numpy as np
import pytest
import structlog

from ladder_backtester.core.config import LadderConfig
from ladder_backtester.core.normalizer import PriceBar

START = date(2024, 1, 1)


def day(i: int) -> date:
    return START + timedelta(days=i)


def make_bar(i: int, open_: str, high: str, low: str, close: str) -> PriceBar:
    """Bar on day `i` from string prices."""
    return PriceBar(
        date=day(i),
        open=Decimal(open_),
        high=Decimal(high),
        low=Decimal(low),
        close=Decimal(close),
    )


def flat_bar(i: int, price: str) -> PriceBar:
    return make_bar(i, price, price, price, price)


def make_bars(rows: list[tuple[str, str, str, str]]) -> list[PriceBar]:
    """Consecutive daily bars from (open, high, low, close) tuples."""
    return [make_bar(i, *row) for i, row in enumerate(rows)]


def make_random_walk(
    n: int = 250,
    start_price: float = 1000.0,
    volatility: float = 0.03,
    seed: int = 42,
) -> list[PriceBar]:
    """Synthetic daily bars with a realistic random walk."""
    rng = np.random.RandomState(seed)
    closes = [start_price]
    for _ in range(n - 1):
        closes.append(closes[-1] * (1 + rng.normal(0, volatility)))

    bars = []
    for i, close in enumerate(closes):
        open_price = closes[i - 1] if i > 0 else close
        high = max(open_price, close) * (1 + abs(rng.normal(0, volatility / 2)))
        low = min(open_price, close) * (1 - abs(rng.normal(0, volatility / 2)))
        bars.append(PriceBar(
            date=day(i),
            open=Decimal(f"{open_price:.2f}"),
            high=Decimal(f"{high:.2f}"),
            low=Decimal(f"{low:.2f}"),
            close=Decimal(f"{close:.2f}"),
        ))
    return bars


def raw_rows(bars: list[PriceBar]) -> list[dict[str, str]]:
    """Exchange-export style rows (grouped digits, dd-Mon-yyyy), newest first."""
    rows = []
    for bar in reversed(bars):
        rows.append({
            "DATE": bar.date.strftime("%d-%b-%Y"),
            "OPEN": f"{bar.open:,.2f}",
            "HIGH": f"{bar.high:,.2f}",
            "LOW": f"{bar.low:,.2f}",
            "CLOSE": f"{bar.close:,.2f}",
        })
    return rows


@pytest.fixture
def config():
    return LadderConfig()


@pytest.fixture
def random_walk_bars():
    return make_random_walk()


@pytest.fixture(autouse=True)
def reset_logging():
    """Restore default logging after tests that call setup_logging()."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if type(handler).__module__.startswith("_pytest"):
            continue
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.WARNING)
