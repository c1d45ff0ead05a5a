"""
Error taxonomy for the ladder backtester.

Input errors (malformed prices/dates, duplicate dates, empty series, missing
columns) abort the run. InternalLoopLimitExceeded is never raised by the
engine: instances are attached to the result for each bar whose cascade hit
the pass cap.
"""

from datetime import date
from typing import Any


class BacktestError(Exception):
    """Base class for all ladder backtester errors."""


class MalformedPriceError(BacktestError, ValueError):
    """A price field could not be parsed into a positive finite number."""

    def __init__(self, field: str, raw: Any, reason: str = "unparseable price") -> None:
        self.field = field
        self.raw = raw
        self.reason = reason
        super().__init__(f"{reason} in {field}: {raw!r}")


class MalformedDateError(BacktestError, ValueError):
    """A date field could not be parsed into a calendar day."""

    def __init__(self, raw: Any) -> None:
        self.raw = raw
        super().__init__(f"unparseable date: {raw!r}")


class EmptySeriesError(BacktestError, ValueError):
    """The price series contains no bars."""

    def __init__(self, message: str = "price series is empty") -> None:
        super().__init__(message)


class MissingColumnsError(BacktestError, ValueError):
    """Input table lacks one of the required OHLC/date columns."""

    def __init__(self, missing: set[str]) -> None:
        self.missing = missing
        super().__init__(f"Missing columns: {sorted(missing)}")


class InternalLoopLimitExceeded(BacktestError, RuntimeWarning):
    """A bar's sell/buy cascade was still producing actions at the pass cap."""

    def __init__(self, bar_date: date, passes: int, actions: int) -> None:
        self.bar_date = bar_date
        self.passes = passes
        self.actions = actions
        super().__init__(
            f"pass limit of {passes} reached on {bar_date.isoformat()} after {actions} actions"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.bar_date.isoformat(),
            "passes": self.passes,
            "actions": self.actions,
        }


class DuplicateDateError(BacktestError, ValueError):
    """Two rows carry the same trading date."""

    def __init__(self, day: date) -> None:
        self.date = day
        super().__init__(f"duplicate bar date: {day.isoformat()}")
