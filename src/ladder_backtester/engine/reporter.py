"""
LadderBacktestReporter — Report generation and export.

Generates:
- Open-position report with per-lot sell targets and unrealized P/L
- Transaction history rows with escalation badges
- Plain-text, JSON and YAML renderings of a ResultsSummary
"""

import json
from decimal import Decimal
from typing import Any

import yaml

from ladder_backtester.core.config import LadderConfig
from ladder_backtester.engine.models import ResultsSummary, TradeSide
from ladder_backtester.logging import LoggerMixin


def _money(value: Decimal) -> str:
    return f"{value:,.2f}"


class LadderBacktestReporter(LoggerMixin):
    """Builds reports from a finished run."""

    def __init__(self, config: LadderConfig | None = None) -> None:
        self.config = config or LadderConfig()

    def threshold_badge(self, threshold: Decimal) -> str:
        """'' for the base threshold, '10% Dip' style label for escalated ones."""
        if threshold <= self.config.base_threshold:
            return ""
        return f"{(threshold * 100).normalize():f}% Dip"

    def open_positions_report(self, summary: ResultsSummary) -> dict[str, Any]:
        """Per-lot valuation at the final close, plus totals."""
        price = summary.current_price
        rows = []
        for lot in summary.remaining_positions:
            rows.append({
                "entry_date": lot.entry_date.isoformat(),
                "entry_price": round(float(lot.entry_price), 2),
                "threshold": float(lot.threshold),
                "badge": self.threshold_badge(lot.threshold),
                "sell_target": round(float(lot.sell_target), 2),
                "shares": lot.shares,
                "invested": round(float(lot.cost), 2),
                "current_value": round(float(lot.market_value(price)), 2),
                "unrealized_pnl": round(float(lot.unrealized_pnl(price)), 2),
            })

        total_invested = sum((lot.cost for lot in summary.remaining_positions), Decimal("0"))
        return {
            "current_price": round(float(price), 2),
            "positions": rows,
            "total_invested": round(float(total_invested), 2),
            "total_current_value": round(float(summary.current_value), 2),
            "total_unrealized_pnl": round(float(summary.total_unrealized_pnl), 2),
        }

    def transaction_rows(self, summary: ResultsSummary) -> list[dict[str, Any]]:
        rows = []
        for txn in summary.transactions:
            row = txn.to_dict()
            row["badge"] = self.threshold_badge(txn.threshold_used)
            rows.append(row)
        return rows

    def build_report(self, summary: ResultsSummary, symbol: str | None = None) -> dict[str, Any]:
        report: dict[str, Any] = {"symbol": symbol} if symbol else {}
        report["summary"] = summary.to_dict()
        report["transactions"] = self.transaction_rows(summary)
        report["open_positions"] = self.open_positions_report(summary)
        self.logger.info(
            "Report generated",
            symbol=symbol,
            transactions=len(report["transactions"]),
            open_lots=len(summary.remaining_positions),
        )
        return report

    def export_json(self, summary: ResultsSummary, symbol: str | None = None) -> str:
        return json.dumps(self.build_report(summary, symbol), indent=2)

    def export_yaml(self, summary: ResultsSummary, symbol: str | None = None) -> str:
        return yaml.safe_dump(
            self.build_report(summary, symbol), default_flow_style=False, sort_keys=False,
        )

    def render_text(self, summary: ResultsSummary, symbol: str | None = None) -> str:
        """Console report: summary cards, transaction history, open positions."""
        lines = []
        title = f"Ladder backtest: {symbol}" if symbol else "Ladder backtest"
        lines.append("=" * 80)
        lines.append(title)
        lines.append("=" * 80)
        period = "n/a"
        if summary.first_date and summary.last_date:
            period = f"{summary.first_date.isoformat()} to {summary.last_date.isoformat()}"
        lines.append(f"  Period:          {period} ({summary.bars_processed} bars)")
        lines.append(f"  Total invested:  {_money(summary.total_invested)}")
        lines.append(f"  Total realized:  {_money(summary.total_realized)}")
        lines.append(f"  Holdings value:  {_money(summary.current_value)}")
        lines.append(f"  Total value:     {_money(summary.total_value)}")
        lines.append(
            f"  Total profit:    {_money(summary.total_profit)} "
            f"({summary.profit_percentage:.2f}%)"
        )
        lines.append(f"  Annualized ROI:  {summary.annualized_roi:.2f}%")
        lines.append(
            f"  Trades:          {summary.total_trades} "
            f"({summary.buy_count} buys, {summary.sell_count} sells)"
        )
        if summary.loop_limit_exceeded:
            dates = ", ".join(e.bar_date.isoformat() for e in summary.loop_limit_events)
            lines.append(f"  Pass limit hit:  {dates}")

        lines.append("")
        lines.append("Transactions")
        lines.append("─" * 80)
        for txn in summary.transactions:
            badge = self.threshold_badge(txn.threshold_used)
            line = (
                f"  {txn.date.isoformat()}  {txn.side.value:4s}  "
                f"{_money(txn.price):>12s}  x{txn.shares:<6d} {_money(txn.amount):>14s}"
            )
            if txn.side == TradeSide.SELL:
                line += f"  bought@{_money(txn.matched_entry_price)}  P/L {_money(txn.profit)}"
            elif txn.gap_down:
                line += "  gap-down fill"
            if badge:
                line += f"  [{badge}]"
            lines.append(line)

        if summary.remaining_positions:
            report = self.open_positions_report(summary)
            lines.append("")
            lines.append(f"Open positions (current price {report['current_price']:,.2f})")
            lines.append("─" * 80)
            for row in report["positions"]:
                badge = f"  [{row['badge']}]" if row["badge"] else ""
                lines.append(
                    f"  {row['entry_date']}  entry {row['entry_price']:>12,.2f}  "
                    f"target {row['sell_target']:>12,.2f}  x{row['shares']:<6d} "
                    f"P/L {row['unrealized_pnl']:>12,.2f}{badge}"
                )
            lines.append(
                f"  Invested {report['total_invested']:,.2f}  "
                f"Value {report['total_current_value']:,.2f}  "
                f"Unrealized {report['total_unrealized_pnl']:,.2f}"
            )

        return "\n".join(lines)
