"""
LadderBacktestSimulator — Core dynamic-reference ladder engine.

Composes:
- PositionLedger: open lots, entry-price ordering, same-day lock
- ReferenceState: reference price, recovery / falling-market resets
- ResultsAggregator: final valuation

Per bar:
1. Start-of-bar reference transitions (recovery, falling market)
2. Cascade of passes, each a sell pass then a buy pass, until a pass
   produces no action or the per-bar pass cap is hit
"""

import time
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import Any

import pandas as pd

from ladder_backtester.core.config import LadderConfig
from ladder_backtester.core.errors import EmptySeriesError, InternalLoopLimitExceeded
from ladder_backtester.core.normalizer import PriceBar, normalize_bars
from ladder_backtester.engine.aggregator import ResultsAggregator
from ladder_backtester.engine.models import ResultsSummary, SimulationState, Transaction
from ladder_backtester.logging import get_logger, log_context

logger = get_logger(__name__)


class LadderBacktestSimulator:
    """
    Runs the ladder strategy over daily bars.

    Usage:
        simulator = LadderBacktestSimulator(LadderConfig())
        summary = simulator.run(bars)

    Or bar by bar:
        state = simulator.seed(bars[0])
        for bar in bars:
            simulator.process_bar(state, bar)
    """

    def __init__(self, config: LadderConfig | None = None) -> None:
        self.config = config or LadderConfig()
        self.aggregator = ResultsAggregator(self.config)

    def run(self, bars: Sequence[PriceBar], symbol: str | None = None) -> ResultsSummary:
        """Simulate over normalized bars (oldest first) and aggregate."""
        if not bars:
            raise EmptySeriesError()

        with log_context(symbol=symbol or "unknown"):
            start_time = time.perf_counter()
            logger.info(
                "Starting ladder backtest",
                bars=len(bars),
                first=bars[0].date.isoformat(),
                last=bars[-1].date.isoformat(),
                fixed_notional=str(self.config.fixed_notional),
                max_open_lots=self.config.max_open_lots,
            )

            state = self.seed(bars[0])
            for bar in bars:
                self.process_bar(state, bar)

            summary = self.aggregator.summarize(state)

            logger.info(
                "Backtest completed",
                bars=summary.bars_processed,
                trades=summary.total_trades,
                open_lots=len(summary.remaining_positions),
                total_profit=round(float(summary.total_profit), 2),
                loop_limit_hits=len(summary.loop_limit_events),
                duration_s=round(time.perf_counter() - start_time, 4),
            )
        return summary

    def run_rows(
        self,
        rows: Iterable[Mapping[str, Any]] | pd.DataFrame,
        symbol: str | None = None,
    ) -> ResultsSummary:
        """Normalize raw exported rows (any order), then run."""
        return self.run(normalize_bars(rows), symbol=symbol)

    # =========================================================================
    # State transitions
    # =========================================================================

    def seed(self, first_bar: PriceBar) -> SimulationState:
        """Fresh run state holding the unconditional opening buy at the first open."""
        state = SimulationState(config=self.config)
        price = first_bar.open
        threshold = self.config.base_threshold
        shares = self._shares_for(price)

        state.start_day(first_bar.date)
        state.first_date = first_bar.date
        state.ledger.open(price, shares, first_bar.date, threshold)
        state.transactions.append(Transaction.buy(first_bar.date, price, shares, threshold))
        state.bought_today.append(price)
        state.reference.seed(first_bar.date, price)

        logger.debug(
            "Seed buy",
            date=first_bar.date.isoformat(),
            price=str(price),
            shares=shares,
        )
        return state

    def process_bar(self, state: SimulationState, bar: PriceBar) -> SimulationState:
        """
        Advance the state by one bar.

        Applies the reference transitions, then alternates sell and buy
        passes until one pass does nothing. Hitting the pass cap records an
        InternalLoopLimitExceeded on the state and stops this bar only.
        """
        state.start_day(bar.date)
        if state.first_date is None:
            state.first_date = bar.date

        state.reference.apply_bar_transitions(bar, len(state.ledger), self.config)

        max_passes = self.config.max_passes_per_bar
        actions = 0
        for _ in range(max_passes):
            acted = self._sell_pass(state, bar)
            if self._buy_pass(state, bar):
                acted += 1
            if acted == 0:
                break
            actions += acted
        else:
            event = InternalLoopLimitExceeded(bar.date, max_passes, actions)
            state.loop_limit_events.append(event)
            logger.warning(
                "Pass limit reached",
                date=bar.date.isoformat(),
                passes=max_passes,
                actions=actions,
                open_lots=len(state.ledger),
                reference=str(state.reference.price),
            )

        state.last_bar = bar
        state.bars_processed += 1
        return state

    # =========================================================================
    # Passes
    # =========================================================================

    def _sell_pass(self, state: SimulationState, bar: PriceBar) -> int:
        """Sell lowest-entry eligible lots while their targets are reached."""
        sold = 0
        while True:
            lot = state.ledger.lowest_sellable(bar.date)
            if lot is None:
                break
            target = lot.sell_target
            if bar.high < target:
                break

            state.ledger.close(lot)
            txn = Transaction.sell(bar.date, target, lot)
            state.transactions.append(txn)
            state.reference.on_sell(bar.date, target)
            sold += 1

            logger.debug(
                "Sell executed",
                date=bar.date.isoformat(),
                price=str(target),
                entry_price=str(lot.entry_price),
                shares=lot.shares,
                profit=str(txn.profit),
            )
        return sold

    def _buy_pass(self, state: SimulationState, bar: PriceBar) -> bool:
        """Buy one lot if the reference-derived trigger was reached."""
        open_lots = len(state.ledger)
        if open_lots >= self.config.max_open_lots:
            return False

        threshold, target = state.reference.buy_target(open_lots, self.config)
        if bar.low > target:
            return False

        # Whole range below the trigger: the trigger never traded, fill at close
        gap_down = target > bar.high
        price = bar.close if gap_down else target

        if state.ledger.has_level(price, self.config.level_tolerance) or state.bought_level_today(price):
            logger.debug(
                "Buy skipped, level taken",
                date=bar.date.isoformat(),
                price=str(price),
            )
            return False

        shares = self._shares_for(price)
        state.ledger.open(price, shares, bar.date, threshold)
        state.transactions.append(Transaction.buy(bar.date, price, shares, threshold, gap_down=gap_down))
        state.bought_today.append(price)
        state.reference.on_buy(bar.date, price)

        logger.debug(
            "Buy executed",
            date=bar.date.isoformat(),
            price=str(price),
            shares=shares,
            threshold=str(threshold),
            gap_down=gap_down,
            open_lots=len(state.ledger),
        )
        return True

    def _shares_for(self, price: Decimal) -> int:
        return int(self.config.fixed_notional // price)


def process_bar(state: SimulationState, bar: PriceBar) -> SimulationState:
    """Advance `state` by one bar using its own config."""
    return LadderBacktestSimulator(state.config).process_bar(state, bar)


def run_backtest(
    bars: Sequence[PriceBar],
    config: LadderConfig | None = None,
    symbol: str | None = None,
) -> ResultsSummary:
    """One-shot convenience wrapper around LadderBacktestSimulator.run()."""
    return LadderBacktestSimulator(config).run(bars, symbol=symbol)
