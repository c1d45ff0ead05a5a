"""
ResultsAggregator — Folds final lots and transaction history into a summary.

Pure: the same (lots, transactions, last close, dates) always yields the
same ResultsSummary.
"""

from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from ladder_backtester.core.config import LadderConfig
from ladder_backtester.core.ledger import Position
from ladder_backtester.core.reference import ReferenceEvent
from ladder_backtester.engine.models import ResultsSummary, SimulationState, TradeSide, Transaction
from ladder_backtester.logging import get_logger

logger = get_logger(__name__)

DAYS_PER_YEAR = Decimal("365")
ZERO = Decimal("0")


class ResultsAggregator:
    """Computes realized and mark-to-market figures for a finished run."""

    def __init__(self, config: LadderConfig | None = None) -> None:
        self.config = config or LadderConfig()

    def aggregate(
        self,
        positions: Sequence[Position],
        transactions: Sequence[Transaction],
        last_close: Decimal,
        first_date: date | None = None,
        last_date: date | None = None,
    ) -> ResultsSummary:
        """
        Build the summary.

        Args:
            positions: Lots still open after the last bar.
            transactions: Full transaction history, in execution order.
            last_close: Close of the final bar, used to mark open lots.
            first_date: First bar date (defaults to first transaction date).
            last_date: Last bar date (defaults to last transaction date).
        """
        buys = [t for t in transactions if t.side == TradeSide.BUY]
        sells = [t for t in transactions if t.side == TradeSide.SELL]

        total_invested = sum((t.amount for t in buys), ZERO)
        total_realized = sum((t.amount for t in sells), ZERO)
        current_value = sum((lot.market_value(last_close) for lot in positions), ZERO)
        total_value = total_realized + current_value
        total_profit = sum((t.profit or ZERO for t in sells), ZERO)
        total_unrealized = sum((lot.unrealized_pnl(last_close) for lot in positions), ZERO)

        profit_percentage = total_profit / total_invested * 100 if total_invested > 0 else ZERO

        if first_date is None and transactions:
            first_date = transactions[0].date
        if last_date is None and transactions:
            last_date = transactions[-1].date

        annualized_roi = self.annualized_roi(total_profit, first_date, last_date)

        return ResultsSummary(
            total_invested=total_invested,
            total_realized=total_realized,
            current_value=current_value,
            total_value=total_value,
            total_profit=total_profit,
            profit_percentage=profit_percentage,
            annualized_roi=annualized_roi,
            total_unrealized_pnl=total_unrealized,
            transactions=list(transactions),
            remaining_positions=sorted(positions, key=lambda lot: lot.entry_price),
            total_trades=len(transactions),
            buy_count=len(buys),
            sell_count=len(sells),
            first_date=first_date,
            last_date=last_date,
            current_price=last_close,
        )

    def annualized_roi(
        self,
        total_profit: Decimal,
        first_date: date | None,
        last_date: date | None,
    ) -> Decimal:
        """(profit / years) x 100 / normalization base; 0 for a zero-length span."""
        if first_date is None or last_date is None:
            return ZERO
        years = Decimal((last_date - first_date).days) / DAYS_PER_YEAR
        if years <= 0:
            return ZERO
        return total_profit / years * 100 / self.config.roi_normalization_base

    def summarize(self, state: SimulationState) -> ResultsSummary:
        """Aggregate a finished simulation state, including run metadata."""
        if state.last_bar is None:
            return ResultsSummary()

        summary = self.aggregate(
            positions=state.ledger.all(),
            transactions=state.transactions,
            last_close=state.last_bar.close,
            first_date=state.first_date,
            last_date=state.last_bar.date,
        )
        summary.final_reference = state.reference.price
        summary.bars_processed = state.bars_processed
        summary.recovery_resets = state.reference.count(ReferenceEvent.RECOVERY_RESET)
        summary.falling_market_resets = state.reference.count(ReferenceEvent.FALLING_MARKET_RESET)
        summary.loop_limit_events = list(state.loop_limit_events)

        logger.debug(
            "Results aggregated",
            total_profit=str(summary.total_profit),
            current_value=str(summary.current_value),
            open_lots=len(summary.remaining_positions),
        )
        return summary
