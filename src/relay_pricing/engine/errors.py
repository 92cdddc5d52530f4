"""Error types raised by the pricing engine and its services."""
from typing import Optional


class PricingError(ValueError):
    """Base exception for all pricing input and configuration failures."""

    kind = "pricing_error"


class InvalidQuantity(PricingError):
    """Raised when an asset count is not a positive integer."""

    kind = "invalid_quantity"

    def __init__(self, asset_count, reason: str = "must be a positive integer"):
        self.asset_count = asset_count
        super().__init__(f"Invalid asset count {asset_count!r}: {reason}")


class InvalidProrationInput(PricingError):
    """Raised when a proration request cannot be computed."""

    kind = "invalid_proration_input"


class InvalidDaysRemaining(InvalidProrationInput):
    """Raised when days remaining falls outside the billing cycle."""

    kind = "invalid_days_remaining"

    def __init__(self, days_remaining, cycle_length: int):
        self.days_remaining = days_remaining
        self.cycle_length = cycle_length
        super().__init__(
            f"Days remaining {days_remaining!r} must be an integer between 0 and {cycle_length}"
        )


class InvalidCycle(InvalidProrationInput):
    """Raised for a billing cycle other than monthly or annual."""

    kind = "invalid_cycle"

    def __init__(self, billing_cycle):
        self.billing_cycle = billing_cycle
        super().__init__(
            f"Billing cycle {billing_cycle!r} is not supported (expected 'monthly' or 'annual')"
        )


class TierTableError(PricingError):
    """Raised when the tier configuration breaks the table invariants."""

    kind = "tier_table_error"


class AssetCountChangeError(PricingError):
    """Raised when a requested asset count change is not allowed."""

    kind = "asset_count_change_rejected"

    def __init__(self, reason: str, message: str, context: Optional[dict] = None):
        self.reason = reason
        self.context = context or {}
        super().__init__(message)
