"""Tests for LadderBacktestReporter."""

import json
from decimal import Decimal

import pytest
import yaml

from ladder_backtester.core.config import LadderConfig
from ladder_backtester.engine.reporter import LadderBacktestReporter
from ladder_backtester.engine.simulator import LadderBacktestSimulator
from tests.conftest import make_bars


@pytest.fixture
def reporter():
    return LadderBacktestReporter()


@pytest.fixture
def ladder_summary():
    bars = make_bars([
        ("100", "100", "100", "100"),
        ("100", "100", "94", "95"),
        ("95", "95", "90", "90.25"),
        ("90", "90", "81", "82"),
        ("82", "82", "64", "66"),
        ("66", "66", "60", "60"),
    ])
    return LadderBacktestSimulator().run(bars)


@pytest.fixture
def round_trip_summary():
    bars = make_bars([
        ("100", "100", "100", "100"),
        ("100", "105", "100", "104"),
        ("100", "100", "99.75", "100"),
    ])
    return LadderBacktestSimulator().run(bars)


class TestThresholdBadge:

    def test_base_threshold_has_no_badge(self, reporter):
        assert reporter.threshold_badge(Decimal("0.05")) == ""

    def test_escalated_badges(self, reporter):
        assert reporter.threshold_badge(Decimal("0.10")) == "10% Dip"
        assert reporter.threshold_badge(Decimal("0.20")) == "20% Dip"
        assert reporter.threshold_badge(Decimal("0.125")) == "12.5% Dip"


class TestOpenPositionsReport:

    def test_rows_sorted_with_targets(self, reporter, ladder_summary):
        report = reporter.open_positions_report(ladder_summary)
        rows = report["positions"]

        assert report["current_price"] == 60.0
        assert len(rows) == 5
        assert rows[0]["entry_price"] == 64.98
        assert [row["entry_price"] for row in rows[2:]] == [90.25, 95.0, 100.0]
        assert rows[0]["badge"] == "20% Dip"
        assert rows[1]["badge"] == "10% Dip"
        assert rows[-1]["badge"] == ""
        assert rows[-1]["sell_target"] == 105.0
        assert rows[-1]["unrealized_pnl"] == -4000.0

    def test_totals(self, reporter, ladder_summary):
        report = reporter.open_positions_report(ladder_summary)
        invested = sum(lot.cost for lot in ladder_summary.remaining_positions)
        assert report["total_invested"] == round(float(invested), 2)
        assert report["total_current_value"] == round(float(ladder_summary.current_value), 2)
        assert report["total_unrealized_pnl"] < 0

    def test_no_open_lots(self, reporter):
        summary = LadderBacktestSimulator().run(make_bars([
            ("100", "100", "100", "100"),
            ("100", "105", "100", "104"),
        ]))
        report = reporter.open_positions_report(summary)
        assert report["positions"] == []
        assert report["total_unrealized_pnl"] == 0.0


class TestExports:

    def test_transaction_rows(self, reporter, round_trip_summary):
        rows = reporter.transaction_rows(round_trip_summary)
        assert [row["side"] for row in rows] == ["BUY", "SELL", "BUY"]
        assert Decimal(rows[1]["profit"]) == Decimal("500")
        assert rows[1]["matched_entry_date"] == "2024-01-01"
        assert all(row["badge"] == "" for row in rows)

    def test_json(self, reporter, round_trip_summary):
        data = json.loads(reporter.export_json(round_trip_summary, symbol="ACME"))
        assert data["symbol"] == "ACME"
        assert data["summary"]["total_profit"] == 500.0
        assert len(data["transactions"]) == 3
        assert len(data["open_positions"]["positions"]) == 1

    def test_yaml(self, reporter, round_trip_summary):
        data = yaml.safe_load(reporter.export_yaml(round_trip_summary))
        assert "symbol" not in data
        assert data["summary"]["sell_count"] == 1
        assert data["open_positions"]["positions"][0]["entry_price"] == 99.75

    def test_report_is_json_serializable_with_loop_events(self, reporter):
        bars = make_bars([
            ("100", "100", "100", "100"),
            ("100", "100", "50", "85"),
        ])
        summary = LadderBacktestSimulator(LadderConfig(max_passes_per_bar=2)).run(bars)
        data = json.loads(reporter.export_json(summary))
        assert data["summary"]["loop_limit_exceeded"] is True
        assert data["summary"]["loop_limit_events"][0]["date"] == "2024-01-02"


class TestRenderText:

    def test_sections(self, reporter, ladder_summary):
        text = reporter.render_text(ladder_summary, symbol="ACME")
        assert "ACME" in text
        assert "Transactions" in text
        assert "Open positions" in text
        assert "[20% Dip]" in text
        assert "10,000.00" in text

    def test_sell_line(self, reporter, round_trip_summary):
        text = reporter.render_text(round_trip_summary)
        assert "bought@100.00" in text
        assert "P/L 500.00" in text
