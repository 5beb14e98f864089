"""Tax lot bookkeeping, lot selection and gain calculation."""

from lotwise.core.lots.gains import RealizedGainCalculator, UnrealizedGainCalculator
from lotwise.core.lots.ledger import LedgerState, TaxLotLedger
from lotwise.core.lots.models import (
    CostBasisMethod,
    LotConsumption,
    RealizedGainRecord,
    TaxLot,
    UnrealizedGainSnapshot,
)
from lotwise.core.lots.selector import CostBasisSelector

__all__ = [
    # Models
    "CostBasisMethod",
    "LotConsumption",
    "RealizedGainRecord",
    "TaxLot",
    "UnrealizedGainSnapshot",
    # Components
    "CostBasisSelector",
    "LedgerState",
    "RealizedGainCalculator",
    "TaxLotLedger",
    "UnrealizedGainCalculator",
]
