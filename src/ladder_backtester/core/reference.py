"""
ReferenceState — The single reference price and its bar-level transitions.

The reference is the last price at which something happened: every buy,
every sell, and two mode-driven resets applied at the start of a bar,
before any action is evaluated:

- Recovery: no open lots and the close rallies past
  reference x recovery_rally_multiplier -> reference := bar high.
  Lets the ladder chase a rising market it has fully exited.
- Falling market: lots open and the close drops below
  reference x falling_market_drop_multiplier -> reference := bar close.
  Re-anchors the buy ladder after a sharp drop.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from ladder_backtester.core.config import LadderConfig
from ladder_backtester.core.normalizer import PriceBar
from ladder_backtester.logging import get_logger

logger = get_logger(__name__)


class ReferenceMode(str, Enum):
    """Persistent reference mode."""

    NORMAL = "normal"
    RECOVERY = "recovery"


class ReferenceEvent(str, Enum):
    """What moved the reference."""

    SEED = "seed"
    BUY = "buy"
    SELL = "sell"
    RECOVERY_RESET = "recovery_reset"
    FALLING_MARKET_RESET = "falling_market_reset"


@dataclass(frozen=True)
class ReferenceChange:
    """One reference mutation, for the audit trail."""

    date: date
    event: ReferenceEvent
    old_price: Decimal
    new_price: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "event": self.event.value,
            "old_price": str(self.old_price),
            "new_price": str(self.new_price),
        }


@dataclass
class ReferenceState:
    """Reference price plus the recovery / falling-market state machine."""

    price: Decimal = Decimal("0")
    mode: ReferenceMode = ReferenceMode.NORMAL
    history: list[ReferenceChange] = field(default_factory=list)

    def _move(self, day: date, event: ReferenceEvent, new_price: Decimal) -> None:
        self.history.append(ReferenceChange(day, event, self.price, new_price))
        self.price = new_price

    def seed(self, day: date, price: Decimal) -> None:
        self.mode = ReferenceMode.NORMAL
        self._move(day, ReferenceEvent.SEED, price)

    def on_buy(self, day: date, price: Decimal) -> None:
        self.mode = ReferenceMode.NORMAL
        self._move(day, ReferenceEvent.BUY, price)

    def on_sell(self, day: date, price: Decimal) -> None:
        self._move(day, ReferenceEvent.SELL, price)

    def apply_bar_transitions(
        self,
        bar: PriceBar,
        open_lots: int,
        config: LadderConfig,
    ) -> ReferenceEvent | None:
        """
        Apply the start-of-bar mode transitions.

        Returns the reset that fired, or None.
        """
        if open_lots == 0:
            rally_level = self.price * config.recovery_rally_multiplier
            if bar.close > rally_level and bar.close > self.price:
                old = self.price
                self.mode = ReferenceMode.RECOVERY
                self._move(bar.date, ReferenceEvent.RECOVERY_RESET, bar.high)
                logger.debug(
                    "Recovery reset",
                    date=bar.date.isoformat(),
                    close=str(bar.close),
                    old_reference=str(old),
                    new_reference=str(bar.high),
                )
                return ReferenceEvent.RECOVERY_RESET
            return None

        drop_level = self.price * config.falling_market_drop_multiplier
        if bar.close < drop_level:
            old = self.price
            self._move(bar.date, ReferenceEvent.FALLING_MARKET_RESET, bar.close)
            logger.debug(
                "Falling-market reset",
                date=bar.date.isoformat(),
                close=str(bar.close),
                old_reference=str(old),
                open_lots=open_lots,
            )
            return ReferenceEvent.FALLING_MARKET_RESET
        return None

    def buy_target(self, open_lots: int, config: LadderConfig) -> tuple[Decimal, Decimal]:
        """(threshold, trigger price) for the next buy at the current lot count."""
        threshold = config.threshold_for(open_lots)
        return threshold, self.price * (1 - threshold)

    def count(self, event: ReferenceEvent) -> int:
        return sum(1 for change in self.history if change.event == event)
