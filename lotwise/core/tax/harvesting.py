"""
Tax-loss harvesting suggestions.

Only short-term unrealized losses are suggested: under US rules short-term
losses offset short-term gains first. This is a fixed assumption of the
advisor, not a setting.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from lotwise.core.lots.models import UnrealizedGainSnapshot


@dataclass(frozen=True)
class HarvestingRecommendation:
    asset_id: str
    symbol: str
    current_loss: Decimal  # Positive magnitude
    current_loss_percent: Decimal  # Positive magnitude
    suggested_action: str


class TaxLossHarvestingAdvisor:
    """Ranks short-term unrealized losses, largest first."""

    def suggest(
        self, snapshots: Iterable[UnrealizedGainSnapshot]
    ) -> list[HarvestingRecommendation]:
        recommendations = []
        for snap in snapshots:
            if snap.unrealized_gain >= 0 or snap.is_long_term:
                continue
            loss = abs(snap.unrealized_gain)
            recommendations.append(
                HarvestingRecommendation(
                    asset_id=snap.asset_id,
                    symbol=snap.symbol,
                    current_loss=loss,
                    current_loss_percent=abs(snap.unrealized_gain_percent),
                    suggested_action=f"Consider selling to realize {loss:.2f} loss",
                )
            )
        recommendations.sort(key=lambda r: r.current_loss, reverse=True)
        return recommendations
