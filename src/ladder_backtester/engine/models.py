"""
Ladder backtesting data models — transactions, run state, results.

Defines:
- Trade side enum
- Append-only transaction record
- Per-run simulation state threaded through process_bar()
- Results summary consumed by reporters
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from ladder_backtester.core.config import LadderConfig
from ladder_backtester.core.errors import InternalLoopLimitExceeded
from ladder_backtester.core.ledger import Position, PositionLedger
from ladder_backtester.core.normalizer import PriceBar
from ladder_backtester.core.reference import ReferenceState


# =============================================================================
# Enums
# =============================================================================


class TradeSide(str, Enum):
    """Transaction side."""

    BUY = "BUY"
    SELL = "SELL"


# =============================================================================
# Transaction
# =============================================================================


@dataclass(frozen=True)
class Transaction:
    """
    Single executed action. Never mutated after creation.

    SELL records carry the matched lot and realized profit; BUY records
    carry the threshold the new lot will sell at.
    """

    date: date
    side: TradeSide
    price: Decimal
    shares: int
    amount: Decimal
    threshold_used: Decimal
    matched_entry_price: Decimal | None = None
    matched_entry_date: date | None = None
    profit: Decimal | None = None
    gap_down: bool = False

    @classmethod
    def buy(
        cls,
        day: date,
        price: Decimal,
        shares: int,
        threshold: Decimal,
        gap_down: bool = False,
    ) -> "Transaction":
        return cls(
            date=day,
            side=TradeSide.BUY,
            price=price,
            shares=shares,
            amount=price * shares,
            threshold_used=threshold,
            gap_down=gap_down,
        )

    @classmethod
    def sell(cls, day: date, price: Decimal, lot: Position) -> "Transaction":
        amount = price * lot.shares
        return cls(
            date=day,
            side=TradeSide.SELL,
            price=price,
            shares=lot.shares,
            amount=amount,
            threshold_used=lot.threshold,
            matched_entry_price=lot.entry_price,
            matched_entry_date=lot.entry_date,
            profit=amount - lot.shares * lot.entry_price,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "date": self.date.isoformat(),
            "side": self.side.value,
            "price": str(self.price),
            "shares": self.shares,
            "amount": str(self.amount),
            "threshold_used": str(self.threshold_used),
        }
        if self.side == TradeSide.SELL:
            d["matched_entry_price"] = str(self.matched_entry_price)
            d["matched_entry_date"] = self.matched_entry_date.isoformat() if self.matched_entry_date else None
            d["profit"] = str(self.profit)
        else:
            d["gap_down"] = self.gap_down
        return d


# =============================================================================
# Simulation State
# =============================================================================


@dataclass
class SimulationState:
    """Everything one run mutates. Not shared across runs."""

    config: LadderConfig
    ledger: PositionLedger = field(default_factory=PositionLedger)
    reference: ReferenceState = field(default_factory=ReferenceState)
    transactions: list[Transaction] = field(default_factory=list)
    trading_date: date | None = None
    bought_today: list[Decimal] = field(default_factory=list)
    loop_limit_events: list[InternalLoopLimitExceeded] = field(default_factory=list)
    first_date: date | None = None
    last_bar: PriceBar | None = None
    bars_processed: int = 0

    def start_day(self, day: date) -> None:
        """Clear the per-day executed-price set when the calendar day changes."""
        if self.trading_date != day:
            self.trading_date = day
            self.bought_today = []

    def bought_level_today(self, price: Decimal) -> bool:
        tolerance = self.config.level_tolerance
        return any(abs(p - price) < tolerance for p in self.bought_today)


# =============================================================================
# Results Summary
# =============================================================================


@dataclass
class ResultsSummary:
    """
    Final valuation of a run. total_profit is realized-only; unrealized P/L
    on open lots is reported separately and never folded in.
    """

    total_invested: Decimal = Decimal("0")
    total_realized: Decimal = Decimal("0")
    current_value: Decimal = Decimal("0")
    total_value: Decimal = Decimal("0")
    total_profit: Decimal = Decimal("0")
    profit_percentage: Decimal = Decimal("0")
    annualized_roi: Decimal = Decimal("0")
    total_unrealized_pnl: Decimal = Decimal("0")

    transactions: list[Transaction] = field(default_factory=list)
    remaining_positions: list[Position] = field(default_factory=list)
    total_trades: int = 0
    buy_count: int = 0
    sell_count: int = 0

    first_date: date | None = None
    last_date: date | None = None
    current_price: Decimal = Decimal("0")
    final_reference: Decimal = Decimal("0")
    bars_processed: int = 0

    recovery_resets: int = 0
    falling_market_resets: int = 0
    loop_limit_events: list[InternalLoopLimitExceeded] = field(default_factory=list)

    @property
    def loop_limit_exceeded(self) -> bool:
        return bool(self.loop_limit_events)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (without transaction and lot lists)."""
        return {
            "total_invested": round(float(self.total_invested), 2),
            "total_realized": round(float(self.total_realized), 2),
            "current_value": round(float(self.current_value), 2),
            "total_value": round(float(self.total_value), 2),
            "total_profit": round(float(self.total_profit), 2),
            "profit_percentage": round(float(self.profit_percentage), 4),
            "annualized_roi": round(float(self.annualized_roi), 4),
            "total_unrealized_pnl": round(float(self.total_unrealized_pnl), 2),
            "total_trades": self.total_trades,
            "buy_count": self.buy_count,
            "sell_count": self.sell_count,
            "open_lots": len(self.remaining_positions),
            "first_date": self.first_date.isoformat() if self.first_date else None,
            "last_date": self.last_date.isoformat() if self.last_date else None,
            "current_price": round(float(self.current_price), 2),
            "final_reference": round(float(self.final_reference), 4),
            "bars_processed": self.bars_processed,
            "recovery_resets": self.recovery_resets,
            "falling_market_resets": self.falling_market_resets,
            "loop_limit_exceeded": self.loop_limit_exceeded,
            "loop_limit_events": [e.to_dict() for e in self.loop_limit_events],
        }
