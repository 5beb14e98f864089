"""Portfolio performance and risk analytics."""

from lotwise.core.performance.analyzer import (
    AssetContribution,
    BenchmarkComparison,
    PerformanceMetrics,
    PortfolioPerformanceAnalyzer,
)

__all__ = [
    "AssetContribution",
    "BenchmarkComparison",
    "PerformanceMetrics",
    "PortfolioPerformanceAnalyzer",
]
