"""
PositionLedger — Owns the set of currently open lots.

Responsibilities:
- Open/close lots
- Entry-price ordered access (sells are evaluated lowest entry first)
- Ladder level lookup within a price tolerance
- Same-day lock: a lot is never sellable on its entry date
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from ladder_backtester.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Position:
    """One open purchase. Its threshold is fixed at buy time."""

    entry_price: Decimal
    shares: int
    entry_date: date
    threshold: Decimal

    @property
    def key(self) -> tuple[Decimal, date]:
        return (self.entry_price, self.entry_date)

    @property
    def sell_target(self) -> Decimal:
        return self.entry_price * (1 + self.threshold)

    @property
    def cost(self) -> Decimal:
        return self.entry_price * self.shares

    def market_value(self, price: Decimal) -> Decimal:
        return price * self.shares

    def unrealized_pnl(self, price: Decimal) -> Decimal:
        return self.market_value(price) - self.cost

    def is_locked_on(self, day: date) -> bool:
        """Same-day round trips are forbidden."""
        return self.entry_date == day

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry_price": str(self.entry_price),
            "shares": self.shares,
            "entry_date": self.entry_date.isoformat(),
            "threshold": str(self.threshold),
            "sell_target": str(self.sell_target),
        }


class PositionLedger:
    """
    Stores open lots. Level uniqueness is the caller's responsibility:
    check has_level() before open().
    """

    def __init__(self) -> None:
        self._lots: list[Position] = []

    def __len__(self) -> int:
        return len(self._lots)

    def __bool__(self) -> bool:
        return bool(self._lots)

    @property
    def count(self) -> int:
        return len(self._lots)

    def open(self, entry_price: Decimal, shares: int, entry_date: date, threshold: Decimal) -> Position:
        """Add a lot and return it."""
        lot = Position(
            entry_price=entry_price,
            shares=shares,
            entry_date=entry_date,
            threshold=threshold,
        )
        self._lots.append(lot)
        logger.debug(
            "Lot opened",
            entry_price=str(entry_price),
            shares=shares,
            entry_date=entry_date.isoformat(),
            threshold=str(threshold),
            open_lots=len(self._lots),
        )
        return lot

    def close(self, lot: Position) -> Position:
        """Remove a lot (matched by entry price and date) and return it."""
        for i, held in enumerate(self._lots):
            if held.key == lot.key:
                removed = self._lots.pop(i)
                logger.debug(
                    "Lot closed",
                    entry_price=str(removed.entry_price),
                    entry_date=removed.entry_date.isoformat(),
                    open_lots=len(self._lots),
                )
                return removed
        raise KeyError(f"lot not held: {lot.entry_price} @ {lot.entry_date.isoformat()}")

    def all(self) -> list[Position]:
        return list(self._lots)

    def sorted_ascending(self) -> list[Position]:
        """Lots ordered by entry price, lowest first."""
        return sorted(self._lots, key=lambda lot: lot.entry_price)

    def lowest_priced(self) -> Position | None:
        ordered = self.sorted_ascending()
        return ordered[0] if ordered else None

    def lowest_sellable(self, day: date) -> Position | None:
        """Lowest-entry lot not bought on `day`; locked lots are skipped."""
        for lot in self.sorted_ascending():
            if not lot.is_locked_on(day):
                return lot
        return None

    def has_level(self, price: Decimal, tolerance: Decimal = Decimal("0.01")) -> bool:
        """Whether an open lot sits within `tolerance` of `price`."""
        return any(abs(lot.entry_price - price) < tolerance for lot in self._lots)

    def total_cost(self) -> Decimal:
        return sum((lot.cost for lot in self._lots), Decimal("0"))
