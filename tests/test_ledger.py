"""
Tests for TaxLotLedger bookkeeping.

Validates that:
1. add_lot rejects bad quantities, prices and future dates
2. close_lots closes whole lots in place and splits partial ones
3. A stale plan is rejected without modifying anything
4. Reads and snapshots are copies, not live references
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from lotwise.core.exceptions import InvalidInputError, LotAlreadyClosedError, LotNotFoundError
from lotwise.core.lots.ledger import LedgerState, TaxLotLedger
from lotwise.core.lots.models import CostBasisMethod, LotConsumption
from lotwise.core.lots.selector import CostBasisSelector

JAN = datetime(2024, 1, 2, tzinfo=timezone.utc)
JUN = datetime(2024, 6, 3, tzinfo=timezone.utc)


def _plan(ledger, asset_id, quantity, method=CostBasisMethod.FIFO):
    return CostBasisSelector().select(ledger.open_lots(asset_id), quantity, method)


class TestAddLot:
    """Tests for lot creation."""

    def test_add_lot_assigns_id_and_sequence(self, ledger):
        first = ledger.add_lot("aapl", 10, 100, JAN)
        second = ledger.add_lot("aapl", 5, "150.50", JUN)

        assert first.id != second.id
        assert second.sequence > first.sequence
        assert second.purchase_price == Decimal("150.50")
        assert first.is_open

    def test_open_lots_in_creation_order(self, ledger):
        late = ledger.add_lot("aapl", 1, 100, JUN)
        early = ledger.add_lot("aapl", 1, 100, JAN)

        assert [lot.id for lot in ledger.open_lots("aapl")] == [late.id, early.id]

    @pytest.mark.parametrize("quantity,price", [(0, 100), (-1, 100), (10, 0), (10, -5)])
    def test_rejects_non_positive_values(self, ledger, quantity, price):
        with pytest.raises(InvalidInputError):
            ledger.add_lot("aapl", quantity, price, JAN)

    def test_rejects_future_purchase_date(self, ledger, clock):
        with pytest.raises(InvalidInputError, match="future"):
            ledger.add_lot("aapl", 1, 100, clock() + timedelta(days=1))

    def test_purchase_at_now_is_allowed(self, ledger, clock):
        lot = ledger.add_lot("aapl", 1, 100, clock())
        assert lot.purchase_date == clock()

    def test_returned_lot_is_a_copy(self, ledger):
        lot = ledger.add_lot("aapl", 10, 100, JAN)
        lot.quantity = Decimal("999")

        assert ledger.open_quantity("aapl") == Decimal("10")


class TestCloseLots:
    """Tests for applying consumption plans."""

    def test_full_close(self, ledger):
        lot = ledger.add_lot("aapl", 10, 100, JAN)
        sale_date = JAN + timedelta(days=100)

        closed = ledger.close_lots(_plan(ledger, "aapl", 10), sale_date, 120)

        assert closed == [lot.id]
        stored = ledger.get_lot(lot.id)
        assert not stored.is_open
        assert stored.sale_price == Decimal("120")
        assert stored.realized_gain == Decimal("200")
        assert stored.realized_gain_percent == Decimal("20")
        assert stored.holding_period_days == 100
        assert ledger.open_lots("aapl") == []

    def test_partial_close_splits_lot(self, ledger):
        lot = ledger.add_lot("aapl", 10, 100, JAN)

        closed = ledger.close_lots(_plan(ledger, "aapl", 4), JUN, 90)

        remaining = ledger.open_lots("aapl")
        assert len(remaining) == 1
        assert remaining[0].id == lot.id
        assert remaining[0].quantity == Decimal("6")

        part = ledger.get_lot(closed[0])
        assert part.parent_lot_id == lot.id
        assert part.quantity == Decimal("4")
        assert part.realized_gain == Decimal("-40")
        assert part.purchase_date == lot.purchase_date

    def test_stale_plan_is_rejected(self, ledger):
        ledger.add_lot("aapl", 10, 100, JAN)
        plan = _plan(ledger, "aapl", 5)
        ledger.close_lots(_plan(ledger, "aapl", 3), JUN, 110)

        with pytest.raises(LotAlreadyClosedError):
            ledger.close_lots(plan, JUN, 110)

    def test_stale_plan_changes_nothing(self, ledger):
        ledger.add_lot("aapl", 5, 100, JAN)
        ledger.add_lot("aapl", 5, 120, JUN)
        plan = _plan(ledger, "aapl", 8)  # both lots
        ledger.close_lots(_plan(ledger, "aapl", 10, CostBasisMethod.LIFO)[:1], JUN, 130)

        before = ledger.snapshot()
        with pytest.raises(LotAlreadyClosedError):
            ledger.close_lots(plan, JUN, 130)

        after = ledger.snapshot()
        assert [(l.id, l.quantity, l.sale_date) for l in after.lots] == [
            (l.id, l.quantity, l.sale_date) for l in before.lots
        ]

    def test_unknown_lot(self, ledger):
        plan = [
            LotConsumption(
                lot_id="missing",
                quantity=Decimal("1"),
                purchase_price=Decimal("1"),
                purchase_date=JAN,
                lot_quantity=Decimal("1"),
            )
        ]
        with pytest.raises(LotNotFoundError):
            ledger.close_lots(plan, JUN, 1)


class TestSnapshot:
    """Tests for snapshot() and from_state()."""

    def test_snapshot_is_independent(self, ledger):
        ledger.add_lot("aapl", 10, 100, JAN)
        state = ledger.snapshot()
        state.lots[0].quantity = Decimal("1")

        assert ledger.open_quantity("aapl") == Decimal("10")

    def test_from_state_continues_sequence(self, clock):
        original = TaxLotLedger(clock=clock)
        original.add_lot("aapl", 1, 100, JAN)
        last = original.add_lot("aapl", 1, 100, JAN)

        restored = TaxLotLedger.from_state(original.snapshot(), clock=clock)
        new = restored.add_lot("aapl", 1, 100, JUN)

        assert new.sequence > last.sequence
        assert restored.open_quantity("aapl") == Decimal("3")

    def test_state_helpers(self, ledger):
        ledger.add_lot("aapl", 10, 100, JAN)
        ledger.add_lot("msft", 2, 300, JAN)
        ledger.close_lots(_plan(ledger, "aapl", 4), JUN, 110)

        state = ledger.snapshot()
        assert isinstance(state, LedgerState)
        assert len(state.lots_for("aapl")) == 1
        assert len(state.lots_for("aapl", include_closed=True)) == 2
        assert len(state.open_lots()) == 2
        assert sorted(ledger.asset_ids()) == ["aapl", "msft"]
