"""
Collaborator interfaces consumed by the engine.

The engine never talks to a network or a database directly. Market data,
dividend history, the asset registry, and storage are injected through the
protocols below. Simple in-memory implementations are provided for tests,
the CLI, and callers that already hold the data.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional, Protocol, Sequence, runtime_checkable

from lotwise.core.lots.ledger import LedgerState
from lotwise.core.lots.models import to_decimal, to_naive_utc


@dataclass(frozen=True)
class Asset:
    """Registry entry for a tradable asset."""

    id: str
    symbol: str
    name: str = ""

    @property
    def display_name(self) -> str:
        return self.name or self.symbol


@dataclass(frozen=True)
class DividendEvent:
    """One dividend distribution, per share."""

    amount: Decimal
    ex_date: datetime
    pay_date: Optional[datetime] = None
    qualified: bool = False
    tax_withheld: Decimal = Decimal("0")  # Per share


@runtime_checkable
class PriceSource(Protocol):
    def current_price(self, symbol: str) -> Optional[Decimal]:
        """Latest price, or None when unavailable."""
        ...

    def historical_returns(self, symbol: str, period: str) -> Sequence[float]:
        """Periodic fractional returns over the period, oldest first."""
        ...


@runtime_checkable
class DividendSource(Protocol):
    def events(self, symbol: str, since: datetime) -> Sequence[DividendEvent]:
        """Dividend events with ex_date on or after `since`."""
        ...


@runtime_checkable
class AssetRegistry(Protocol):
    def get(self, asset_id: str) -> Optional[Asset]:
        ...

    def all(self) -> list[Asset]:
        ...


@runtime_checkable
class LedgerRepository(Protocol):
    def load(self) -> LedgerState:
        ...

    def save(self, state: LedgerState) -> None:
        ...


class StaticPriceSource:
    """Price source backed by dictionaries."""

    def __init__(
        self,
        prices: Optional[Mapping[str, object]] = None,
        returns: Optional[Mapping[str, Mapping[str, Sequence[float]]]] = None,
    ):
        self.prices = {k.upper(): to_decimal(v) for k, v in (prices or {}).items()}
        # symbol -> period -> returns
        self.returns = {k.upper(): dict(v) for k, v in (returns or {}).items()}

    def set_price(self, symbol: str, price) -> None:
        self.prices[symbol.upper()] = to_decimal(price)

    def set_returns(self, symbol: str, period: str, returns: Sequence[float]) -> None:
        self.returns.setdefault(symbol.upper(), {})[period] = list(returns)

    def current_price(self, symbol: str) -> Optional[Decimal]:
        return self.prices.get(symbol.upper())

    def historical_returns(self, symbol: str, period: str) -> Sequence[float]:
        return list(self.returns.get(symbol.upper(), {}).get(period, []))


class StaticDividendSource:
    """Dividend source backed by a dictionary of symbol -> events."""

    def __init__(self, events: Optional[Mapping[str, Sequence[DividendEvent]]] = None):
        self._events = {k.upper(): list(v) for k, v in (events or {}).items()}

    def add(self, symbol: str, event: DividendEvent) -> None:
        self._events.setdefault(symbol.upper(), []).append(event)

    def events(self, symbol: str, since: datetime) -> Sequence[DividendEvent]:
        cutoff = to_naive_utc(since)
        return [
            e for e in self._events.get(symbol.upper(), [])
            if to_naive_utc(e.ex_date) >= cutoff
        ]


class InMemoryAssetRegistry:
    """Asset registry held in a dictionary."""

    def __init__(self, assets: Optional[Sequence[Asset]] = None):
        self._assets = {a.id: a for a in (assets or [])}

    def add(self, asset_id: str, symbol: str, name: str = "") -> Asset:
        asset = Asset(id=asset_id, symbol=symbol.upper(), name=name)
        self._assets[asset_id] = asset
        return asset

    def get(self, asset_id: str) -> Optional[Asset]:
        return self._assets.get(asset_id)

    def all(self) -> list[Asset]:
        return list(self._assets.values())


class InMemoryRepository:
    """Repository that keeps the last saved state in memory."""

    def __init__(self, state: Optional[LedgerState] = None):
        self.state = state or LedgerState()
        self.save_count = 0

    def load(self) -> LedgerState:
        return LedgerState(lots=list(self.state.lots), records=list(self.state.records))

    def save(self, state: LedgerState) -> None:
        self.state = state
        self.save_count += 1
