"""
Tests for recording sales through the engine.

Covers the realized gain record fields, method selection, specific
identification, validation, and persistence after each change.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from lotwise.core.engine import CostBasisEngine
from lotwise.core.exceptions import (
    AssetNotFoundError,
    InvalidInputError,
    LotNotFoundError,
)
from lotwise.core.lots.models import CostBasisMethod


def day(year, month, dom):
    return datetime(year, month, dom, tzinfo=timezone.utc)


class TestRecordPurchase:

    def test_unknown_asset(self, engine):
        with pytest.raises(AssetNotFoundError) as exc_info:
            engine.record_purchase("nope", 1, 100)
        assert exc_info.value.asset_id == "nope"

    def test_defaults_to_now(self, engine, clock):
        lot = engine.record_purchase("aapl", 1, 100)
        assert lot.purchase_date == clock()

    def test_future_date_rejected(self, engine, clock):
        with pytest.raises(InvalidInputError):
            engine.record_purchase("aapl", 1, 100, clock() + timedelta(days=3))

    def test_saves_after_purchase(self, engine, repository):
        engine.record_purchase("aapl", 1, 100)
        assert repository.save_count == 1
        assert len(repository.state.lots) == 1


class TestRecordSale:

    def test_record_fields(self, engine):
        engine.record_purchase("aapl", 10, 100, day(2023, 1, 1))
        record = engine.record_sale("aapl", "aapl", 4, 125, day(2023, 4, 11))

        assert record.asset_id == "aapl"
        assert record.symbol == "AAPL"
        assert record.quantity == Decimal("4")
        assert record.sale_price == Decimal("125")
        assert record.cost_basis == Decimal("400")
        assert record.proceeds == Decimal("500")
        assert record.realized_gain == Decimal("100")
        assert record.realized_gain_percent == Decimal("25")
        assert record.holding_period == 100
        assert record.is_long_term is False
        assert record.tax_year == 2023
        assert record.method is CostBasisMethod.FIFO

    def test_symbol_defaults_to_registry(self, engine):
        engine.record_purchase("msft", 1, 300, day(2023, 1, 1))
        record = engine.record_sale("msft", None, 1, 310, day(2023, 2, 1))
        assert record.symbol == "MSFT"

    def test_weighted_holding_period(self, engine):
        engine.record_purchase("aapl", 3, 100, day(2023, 1, 1))
        engine.record_purchase("aapl", 1, 100, day(2023, 4, 11))
        sale = day(2023, 4, 11) + timedelta(days=100)

        record = engine.record_sale("aapl", "AAPL", 4, 100, sale)

        # (3 * 200 + 1 * 100) / 4
        assert record.holding_period == pytest.approx(175.0)

    def test_loss_percent(self, engine):
        engine.record_purchase("aapl", 2, 200, day(2023, 1, 1))
        record = engine.record_sale("aapl", "AAPL", 2, 150, day(2023, 6, 1))

        assert record.realized_gain == Decimal("-100")
        assert record.realized_gain_percent == Decimal("-25")

    @pytest.mark.parametrize("price", [0, -10])
    def test_non_positive_price(self, engine, price):
        engine.record_purchase("aapl", 1, 100, day(2023, 1, 1))
        with pytest.raises(InvalidInputError):
            engine.record_sale("aapl", "AAPL", 1, price, day(2023, 6, 1))

    def test_sale_before_purchase(self, engine):
        engine.record_purchase("aapl", 1, 100, day(2023, 6, 1))
        with pytest.raises(InvalidInputError, match="precedes"):
            engine.record_sale("aapl", "AAPL", 1, 110, day(2023, 5, 1))
        assert engine.holding_quantity("aapl") == 1

    def test_unknown_asset(self, engine):
        with pytest.raises(AssetNotFoundError):
            engine.record_sale("nope", "NOPE", 1, 100)

    def test_saves_after_sale(self, engine, repository):
        engine.record_purchase("aapl", 1, 100, day(2023, 1, 1))
        engine.record_sale("aapl", "AAPL", 1, 110, day(2023, 6, 1))

        assert repository.save_count == 2
        assert len(repository.state.records) == 1


class TestMethods:

    @pytest.fixture
    def lots(self, engine):
        first = engine.record_purchase("aapl", 5, 100, day(2023, 1, 1))
        second = engine.record_purchase("aapl", 5, 120, day(2023, 2, 1))
        third = engine.record_purchase("aapl", 5, 140, day(2023, 3, 1))
        return first, second, third

    def test_default_method_is_used(self, engine, lots):
        engine.set_default_method("lifo")
        record = engine.record_sale("aapl", "AAPL", 5, 150, day(2023, 6, 1))

        assert engine.default_method is CostBasisMethod.LIFO
        assert record.method is CostBasisMethod.LIFO
        assert record.cost_basis == Decimal("700")

    def test_invalid_default_method(self, engine):
        with pytest.raises(InvalidInputError):
            engine.set_default_method("HIFO")

    def test_specific_id(self, engine, lots):
        first, second, third = lots
        record = engine.record_sale(
            "aapl", "AAPL", 7, 150, day(2023, 6, 1),
            method=CostBasisMethod.SPECIFIC_ID,
            specific_lot_ids=[second.id, third.id],
        )

        assert record.cost_basis == Decimal("5") * 120 + Decimal("2") * 140
        remaining = {lot.id: lot.quantity for lot in engine.lots("aapl")}
        assert remaining == {first.id: Decimal("5"), third.id: Decimal("3")}

    def test_specific_id_split_lot_keeps_id(self, engine, lots):
        first, _, _ = lots
        record = engine.record_sale(
            "aapl", "AAPL", 2, 150, day(2023, 6, 1),
            method="SPECIFIC_ID", specific_lot_ids=[first.id],
        )

        closed = engine.ledger.get_lot(record.tax_lot_ids[0])
        assert closed.parent_lot_id == first.id
        assert engine.ledger.get_lot(first.id).quantity == Decimal("3")

    def test_specific_id_without_ids(self, engine, lots):
        with pytest.raises(InvalidInputError):
            engine.record_sale("aapl", "AAPL", 1, 150, method="SPECIFIC_ID")

    def test_specific_id_closed_lot(self, engine, lots):
        first, _, _ = lots
        engine.record_sale("aapl", "AAPL", 5, 150, day(2023, 6, 1))  # FIFO closes first

        with pytest.raises(LotNotFoundError) as exc_info:
            engine.record_sale(
                "aapl", "AAPL", 1, 150, day(2023, 6, 2),
                method="SPECIFIC_ID", specific_lot_ids=[first.id],
            )
        assert exc_info.value.lot_id == first.id


class TestQueries:

    def test_realized_gains_by_year(self, engine):
        engine.record_purchase("aapl", 10, 100, day(2022, 1, 1))
        engine.record_sale("aapl", "AAPL", 1, 110, day(2023, 1, 1))
        engine.record_sale("aapl", "AAPL", 1, 110, day(2024, 1, 1))

        assert len(engine.realized_gains()) == 2
        assert [r.tax_year for r in engine.realized_gains(2023)] == [2023]
        assert engine.realized_gains(2021) == []

    def test_lots_unknown_asset(self, engine):
        with pytest.raises(AssetNotFoundError):
            engine.lots("nope")

    def test_engine_loads_from_repository(self, engine, registry, repository, clock):
        engine.record_purchase("aapl", 10, 100, day(2023, 1, 1))
        engine.record_sale("aapl", "AAPL", 4, 120, day(2023, 6, 1))

        reloaded = CostBasisEngine(registry, repository=repository, clock=clock)

        assert reloaded.holding_quantity("aapl") == Decimal("6")
        assert len(reloaded.realized_gains(2023)) == 1
