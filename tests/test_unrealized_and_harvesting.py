"""Tests for unrealized gains, harvesting suggestions and attribution."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from lotwise.core.engine import CostBasisEngine
from lotwise.core.tax.harvesting import TaxLossHarvestingAdvisor


def day(year, month, dom):
    return datetime(year, month, dom, tzinfo=timezone.utc)


class FailingPriceSource:
    def current_price(self, symbol):
        raise ConnectionError("quote service down")

    def historical_returns(self, symbol, period):
        raise ConnectionError("quote service down")


class TestUnrealizedGains:

    def test_aggregates_open_lots(self, engine, clock):
        engine.record_purchase("aapl", 10, 100, clock() - timedelta(days=100))
        engine.record_purchase("aapl", 10, 140, clock() - timedelta(days=300))

        snapshots = engine.calculate_unrealized_gains()

        assert len(snapshots) == 1
        snap = snapshots[0]
        assert snap.symbol == "AAPL"
        assert snap.quantity == Decimal("20")
        assert snap.cost_basis == Decimal("2400")
        assert snap.current_price == Decimal("150")
        assert snap.current_value == Decimal("3000")
        assert snap.unrealized_gain == Decimal("600")
        assert snap.unrealized_gain_percent == Decimal("25")
        assert snap.holding_period == pytest.approx(200.0)
        assert snap.is_long_term is False

    def test_excludes_closed_quantity(self, engine):
        engine.record_purchase("aapl", 10, 100, day(2024, 1, 2))
        engine.record_sale("aapl", "AAPL", 6, 120, day(2024, 3, 1))

        snap = engine.calculate_unrealized_gains()[0]
        assert snap.quantity == Decimal("4")
        assert snap.cost_basis == Decimal("400")

    def test_assets_without_price_are_skipped(self, engine, prices):
        engine.record_purchase("aapl", 1, 100, day(2024, 1, 2))
        engine.record_purchase("msft", 1, 100, day(2024, 1, 2))
        del prices.prices["MSFT"]

        snapshots = engine.calculate_unrealized_gains()
        assert [s.symbol for s in snapshots] == ["AAPL"]

    def test_price_lookup_failure_is_not_fatal(self, registry, clock):
        engine = CostBasisEngine(registry, price_source=FailingPriceSource(), clock=clock)
        engine.record_purchase("aapl", 1, 100, day(2024, 1, 2))

        assert engine.calculate_unrealized_gains() == []

    def test_no_positions(self, engine):
        assert engine.calculate_unrealized_gains() == []


class TestHarvesting:

    def test_only_short_term_losses_ranked_by_size(self, engine, prices, clock):
        # MSFT: short-term loss of 500; KO: short-term loss of 100
        engine.record_purchase("msft", 10, 350, clock() - timedelta(days=30))
        engine.record_purchase("ko", 10, 70, clock() - timedelta(days=30))
        # AAPL: long-term loss, excluded
        engine.record_purchase("aapl", 10, 200, clock() - timedelta(days=400))

        suggestions = engine.suggest_tax_loss_harvesting()

        assert [s.symbol for s in suggestions] == ["MSFT", "KO"]
        assert suggestions[0].current_loss == Decimal("500")
        assert suggestions[0].current_loss_percent == pytest.approx(Decimal("500") / Decimal("3500") * 100)
        assert "500.00" in suggestions[0].suggested_action

    def test_gains_are_not_suggested(self, engine, clock):
        engine.record_purchase("aapl", 10, 100, clock() - timedelta(days=30))
        assert engine.suggest_tax_loss_harvesting() == []

    def test_advisor_on_empty_input(self):
        assert TaxLossHarvestingAdvisor().suggest([]) == []


class TestAttribution:

    def test_contribution_sorted_by_magnitude(self, engine):
        engine.record_purchase("aapl", 10, 100, day(2024, 1, 2))  # value 1500, +50%
        engine.record_purchase("msft", 10, 250, day(2024, 1, 2))  # value 3000, +20%

        contributions = engine.calculate_performance_attribution()

        assert [c.symbol for c in contributions] == ["AAPL", "MSFT"]
        aapl, msft = contributions
        assert aapl.weight_percent == pytest.approx(100 / 3)
        assert msft.weight_percent == pytest.approx(200 / 3)
        assert aapl.contribution_percent == pytest.approx(50 / 3)
        assert msft.contribution_percent == pytest.approx(40 / 3)
        assert aapl.return_amount == pytest.approx(500.0)
