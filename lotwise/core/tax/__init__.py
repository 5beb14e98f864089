"""Tax-year reporting and tax-loss harvesting."""

from lotwise.core.tax.harvesting import HarvestingRecommendation, TaxLossHarvestingAdvisor
from lotwise.core.tax.report import (
    AssetGainSummary,
    Form1099BRow,
    NoWashSaleAdjustment,
    TaxReport,
    TaxReportGenerator,
    WashSaleHook,
)

__all__ = [
    "AssetGainSummary",
    "Form1099BRow",
    "HarvestingRecommendation",
    "NoWashSaleAdjustment",
    "TaxLossHarvestingAdvisor",
    "TaxReport",
    "TaxReportGenerator",
    "WashSaleHook",
]
