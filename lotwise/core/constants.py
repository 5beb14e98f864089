"""
Central threshold constants.

Holding-period boundaries and period tables are defined here as the single
source of truth. Import from this module instead of hardcoding values.
"""

# --- Holding period ---
LONG_TERM_THRESHOLD_DAYS = 365  # > 365 days: long-term (365 exactly is short-term)

# --- Dividend annualization ---
DIVIDEND_WINDOW_DAYS = 365
DAYS_PER_MONTH = 30  # Months of dividend history are counted in 30-day blocks
MONTHS_PER_YEAR = 12

# --- Performance periods ---
# Years per reporting period. "ALL" is a fixed estimate used when the true
# portfolio inception date is unknown.
PERIOD_YEARS = {
    "1D": 1 / 365,
    "1W": 1 / 52,
    "1M": 1 / 12,
    "3M": 0.25,
    "6M": 0.5,
    "1Y": 1.0,
    "5Y": 5.0,
    "ALL": 10.0,
}
DEFAULT_PERIOD = "1Y"

# --- Value at Risk ---
VAR_CONFIDENCE_LEVELS = (0.95, 0.99)

# Minimum paired observations for any ratio or dispersion metric
MIN_OBSERVATIONS = 2
