"""
Lotwise - cost-basis accounting and portfolio performance engine.

Turns a stream of buy/sell events into tax lots, realized and unrealized
gains, tax-year reports, and risk-adjusted performance metrics.
"""

__version__ = "0.1.0"
