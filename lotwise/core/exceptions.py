"""
Custom exceptions for Lotwise.

Provides a hierarchy of exceptions for ledger, selection and input errors.
All are raised to the caller; none are swallowed inside the engine.
"""

from decimal import Decimal


class LotwiseError(Exception):
    """Base exception for all Lotwise errors."""

    pass


class ConfigurationError(LotwiseError):
    """Raised when configuration values are missing or invalid."""

    pass


class InvalidInputError(LotwiseError, ValueError):
    """
    Raised for non-positive quantities or prices, future-dated purchases,
    and unknown cost basis methods.
    """

    pass


class AssetNotFoundError(LotwiseError):
    """Raised when an asset id is not present in the asset registry."""

    def __init__(self, asset_id: str):
        self.asset_id = asset_id
        super().__init__(f"Asset not found: {asset_id}")


class LotNotFoundError(LotwiseError):
    """
    Raised when a specific-identification sale names a lot that does not
    exist for the asset or has already been closed.
    """

    def __init__(self, lot_id: str, reason: str = "not found"):
        self.lot_id = lot_id
        super().__init__(f"Tax lot {lot_id} {reason}")


class InsufficientLotsError(LotwiseError):
    """
    Raised when a sale quantity exceeds the open quantity available.

    The shortfall is the amount that could not be covered.
    """

    def __init__(self, asset_id: str, requested: Decimal, available: Decimal):
        self.asset_id = asset_id
        self.requested = requested
        self.available = available
        self.shortfall = requested - available
        super().__init__(
            f"Insufficient open lots for {asset_id}. "
            f"Need {requested}, have {available} (short {self.shortfall})"
        )


class LotAlreadyClosedError(LotwiseError):
    """
    Raised by the ledger when asked to close a lot that is no longer open,
    or to consume more than a lot's remaining quantity.

    Signals that the consumption plan is stale (another sale got there first).
    """

    def __init__(self, lot_id: str):
        self.lot_id = lot_id
        super().__init__(f"Tax lot {lot_id} is already closed or was modified")
