"""Tests for PositionLedger."""

from datetime import date
from decimal import Decimal

import pytest

from ladder_backtester.core.ledger import Position, PositionLedger

D1 = date(2024, 1, 1)
D2 = date(2024, 1, 2)
T5 = Decimal("0.05")


class TestPosition:

    def test_sell_target(self):
        lot = Position(Decimal("100"), 100, D1, T5)
        assert lot.sell_target == Decimal("105")

    def test_escalated_sell_target(self):
        lot = Position(Decimal("81.225"), 123, D1, Decimal("0.10"))
        assert lot.sell_target == Decimal("89.3475")

    def test_valuation(self):
        lot = Position(Decimal("100"), 100, D1, T5)
        assert lot.cost == Decimal("10000")
        assert lot.market_value(Decimal("90")) == Decimal("9000")
        assert lot.unrealized_pnl(Decimal("90")) == Decimal("-1000")

    def test_to_dict(self):
        d = Position(Decimal("100"), 100, D1, T5).to_dict()
        assert d["entry_date"] == "2024-01-01"
        assert Decimal(d["sell_target"]) == Decimal("105")

    def test_same_day_lock(self):
        lot = Position(Decimal("100"), 100, D1, T5)
        assert lot.is_locked_on(D1)
        assert not lot.is_locked_on(D2)


class TestPositionLedger:

    def test_open_and_count(self):
        ledger = PositionLedger()
        assert not ledger
        ledger.open(Decimal("100"), 100, D1, T5)
        ledger.open(Decimal("95"), 105, D1, T5)
        assert len(ledger) == 2
        assert ledger.count == 2

    def test_sorted_ascending(self):
        ledger = PositionLedger()
        for price in ["100", "90.25", "95"]:
            ledger.open(Decimal(price), 100, D1, T5)
        prices = [lot.entry_price for lot in ledger.sorted_ascending()]
        assert prices == [Decimal("90.25"), Decimal("95"), Decimal("100")]
        assert ledger.lowest_priced().entry_price == Decimal("90.25")

    def test_lowest_sellable_skips_same_day_lots(self):
        ledger = PositionLedger()
        ledger.open(Decimal("100"), 100, D1, T5)
        ledger.open(Decimal("90"), 111, D2, T5)
        assert ledger.lowest_priced().entry_price == Decimal("90")
        assert ledger.lowest_sellable(D2).entry_price == Decimal("100")
        assert ledger.lowest_sellable(D1).entry_price == Decimal("90")

    def test_lowest_sellable_none_when_all_locked(self):
        ledger = PositionLedger()
        ledger.open(Decimal("100"), 100, D1, T5)
        assert ledger.lowest_sellable(D1) is None
        assert PositionLedger().lowest_sellable(D1) is None

    def test_close_returns_lot(self):
        ledger = PositionLedger()
        lot = ledger.open(Decimal("100"), 100, D1, T5)
        other = ledger.open(Decimal("95"), 105, D1, T5)
        removed = ledger.close(lot)
        assert removed == lot
        assert ledger.all() == [other]

    def test_close_unknown_lot(self):
        ledger = PositionLedger()
        with pytest.raises(KeyError):
            ledger.close(Position(Decimal("100"), 100, D1, T5))

    def test_has_level_tolerance(self):
        ledger = PositionLedger()
        ledger.open(Decimal("95.00"), 105, D1, T5)
        assert ledger.has_level(Decimal("95.005"))
        assert ledger.has_level(Decimal("94.995"))
        assert not ledger.has_level(Decimal("95.01"))
        assert not ledger.has_level(Decimal("94.5"))

    def test_ledger_does_not_enforce_uniqueness(self):
        ledger = PositionLedger()
        ledger.open(Decimal("95"), 105, D1, T5)
        ledger.open(Decimal("95"), 105, D2, T5)
        assert len(ledger) == 2

    def test_all_is_a_copy(self):
        ledger = PositionLedger()
        ledger.open(Decimal("100"), 100, D1, T5)
        ledger.all().clear()
        assert len(ledger) == 1

    def test_total_cost(self):
        ledger = PositionLedger()
        ledger.open(Decimal("100"), 100, D1, T5)
        ledger.open(Decimal("95"), 105, D2, T5)
        assert ledger.total_cost() == Decimal("19975")
