"""
Data models for the pricing engine.

Quotes are frozen dataclasses: they are derived on demand, never mutated,
and safe to cache or share between callers. All money is in integer minor
units (pence).
"""
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Optional

from .errors import InvalidCycle


class BillingCycle(str, Enum):
    """Recurring subscription period."""
    MONTHLY = "monthly"
    ANNUAL = "annual"

    @property
    def length_days(self) -> int:
        # Fixed approximation of the period length, not the calendar month
        return 365 if self is BillingCycle.ANNUAL else 30

    @classmethod
    def parse(cls, value) -> 'BillingCycle':
        """Accept a BillingCycle or its string value."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidCycle(value)


class ProrationDirection(str, Enum):
    CHARGE = "charge"
    CREDIT = "credit"
    NONE = "none"


@dataclass(frozen=True)
class TierBreakdownLine:
    """The single row of a whole-count pricing breakdown."""
    tier_index: int
    tier_number: int
    range_label: str
    unit_price_minor_units: int
    quantity: int
    subtotal_minor_units: int


@dataclass(frozen=True)
class PotentialSavings:
    """What the customer would save at the start of the next cheaper tier."""
    next_tier_threshold: int
    savings_amount_minor_units: int
    savings_per_asset_minor_units: int


@dataclass(frozen=True)
class PricingQuote:
    """Price of an asset count under the tier table."""
    asset_count: int
    matched_tier_index: int
    unit_price_minor_units: int
    total_minor_units: int
    tier_breakdown: tuple[TierBreakdownLine, ...]
    potential_savings: Optional[PotentialSavings] = None

    @property
    def next_tier_threshold(self) -> Optional[int]:
        return self.potential_savings.next_tier_threshold if self.potential_savings else None

    @property
    def savings_if_upgraded(self) -> Optional[int]:
        return self.potential_savings.savings_amount_minor_units if self.potential_savings else None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["tier_breakdown"] = list(data["tier_breakdown"])
        return data


@dataclass(frozen=True)
class ProrationQuote:
    """Prorated charge or credit for a mid-cycle change."""
    old_total_minor_units: int
    new_total_minor_units: int
    billing_cycle: BillingCycle
    billing_cycle_length_days: int
    days_remaining_in_period: int
    delta_minor_units: int
    prorated_minor_units: int
    direction: ProrationDirection
    prorated_percentage: int

    @property
    def requires_transaction(self) -> bool:
        """False when the billing provider has nothing to do."""
        return self.direction is not ProrationDirection.NONE

    def to_dict(self) -> dict:
        data = asdict(self)
        data["billing_cycle"] = self.billing_cycle.value
        data["direction"] = self.direction.value
        return data
