"""Core ladder components — config, normalizer, ledger, reference state, errors."""

from ladder_backtester.core.config import (
    DEFAULT_ESCALATION_TABLE,
    LadderConfig,
)
from ladder_backtester.core.errors import (
    BacktestError,
    DuplicateDateError,
    EmptySeriesError,
    InternalLoopLimitExceeded,
    MalformedDateError,
    MalformedPriceError,
    MissingColumnsError,
)
from ladder_backtester.core.ledger import (
    Position,
    PositionLedger,
)
from ladder_backtester.core.normalizer import (
    PriceBar,
    normalize_bar,
    normalize_bars,
    parse_date,
    parse_price,
)
from ladder_backtester.core.reference import (
    ReferenceChange,
    ReferenceEvent,
    ReferenceMode,
    ReferenceState,
)

__all__ = [
    "DEFAULT_ESCALATION_TABLE",
    "LadderConfig",
    "BacktestError",
    "DuplicateDateError",
    "EmptySeriesError",
    "InternalLoopLimitExceeded",
    "MalformedDateError",
    "MalformedPriceError",
    "MissingColumnsError",
    "Position",
    "PositionLedger",
    "PriceBar",
    "normalize_bar",
    "normalize_bars",
    "parse_date",
    "parse_price",
    "ReferenceChange",
    "ReferenceEvent",
    "ReferenceMode",
    "ReferenceState",
]
