"""
Pricing Engine - Tiered volume pricing and mid-cycle proration.

This is the single authoritative implementation used by the checkout,
subscription change and pricing preview paths:
- PricingCalculator: whole-count tiered quote for an asset count
- ProrationCalculator: prorated charge/credit between two quotes

Both calculators are pure. They hold no mutable state, perform no I/O and
return immutable quotes, so concurrent callers need no coordination.
"""
import math
from functools import lru_cache
from typing import Optional

from .errors import InvalidDaysRemaining, InvalidQuantity
from .models import (
    BillingCycle,
    PotentialSavings,
    PricingQuote,
    ProrationDirection,
    ProrationQuote,
    TierBreakdownLine,
)
from .tier_table import TierTable


def divide_round_half_away(numerator: int, denominator: int) -> int:
    """
    Integer division rounded half away from zero.

    This is the only rounding rule used for money: 2.5 -> 3, -2.5 -> -3.
    """
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    quotient, remainder = divmod(abs(numerator), denominator)
    if remainder * 2 >= denominator:
        quotient += 1
    return quotient if numerator >= 0 else -quotient


def validate_asset_count(asset_count, max_asset_count: Optional[int] = None) -> int:
    """Return the count unchanged or raise InvalidQuantity."""
    if isinstance(asset_count, bool) or not isinstance(asset_count, int):
        if isinstance(asset_count, float) and not math.isfinite(asset_count):
            raise InvalidQuantity(asset_count, "must be a finite integer")
        raise InvalidQuantity(asset_count, "must be an integer")
    if asset_count < 1:
        raise InvalidQuantity(asset_count, "must be at least 1")
    if max_asset_count is not None and asset_count > max_asset_count:
        raise InvalidQuantity(asset_count, f"exceeds the maximum of {max_asset_count}")
    return asset_count


class PricingCalculator:
    """
    Quotes an asset count against the tier table.

    Pricing is whole-count: every asset is billed at the rate of the single
    tier the total count falls into. It is not graduated, so a count of 60
    is 60 x the 51-100 rate rather than 25 + 25 + 10 at three rates.
    """

    def __init__(
        self,
        tier_table: Optional[TierTable] = None,
        max_asset_count: Optional[int] = None,
        cache_size: int = 0,
    ):
        self.tier_table = tier_table or TierTable.default()
        self.max_asset_count = max_asset_count
        self.cache_size = cache_size
        if cache_size > 0:
            self._quote = lru_cache(maxsize=cache_size)(self._build_quote)
        else:
            self._quote = self._build_quote

    def compute_quote(self, asset_count: int) -> PricingQuote:
        """
        Price an asset count.

        Raises:
            InvalidQuantity: count is not an integer, below 1, or above the
                configured maximum.
        """
        validate_asset_count(asset_count, self.max_asset_count)
        return self._quote(asset_count)

    def _build_quote(self, asset_count: int) -> PricingQuote:
        index = self.tier_table.find_index(asset_count)
        tier = self.tier_table[index]
        total = asset_count * tier.unit_price_minor_units

        breakdown = (
            TierBreakdownLine(
                tier_index=index,
                tier_number=index + 1,
                range_label=tier.range_label,
                unit_price_minor_units=tier.unit_price_minor_units,
                quantity=asset_count,
                subtotal_minor_units=total,
            ),
        )

        return PricingQuote(
            asset_count=asset_count,
            matched_tier_index=index,
            unit_price_minor_units=tier.unit_price_minor_units,
            total_minor_units=total,
            tier_breakdown=breakdown,
            potential_savings=self._potential_savings(index),
        )

    def _potential_savings(self, index: int) -> Optional[PotentialSavings]:
        tier = self.tier_table[index]
        next_tier = self.tier_table.next_tier(index)
        if next_tier is None or tier.upper_bound is None:
            return None

        per_asset = tier.unit_price_minor_units - next_tier.unit_price_minor_units
        # A later tier that is not cheaper offers nothing
        if per_asset <= 0:
            return None

        threshold = tier.upper_bound + 1
        return PotentialSavings(
            next_tier_threshold=threshold,
            savings_amount_minor_units=per_asset * threshold,
            savings_per_asset_minor_units=per_asset,
        )

    def cache_info(self):
        """lru_cache statistics, or None when caching is off."""
        if hasattr(self._quote, 'cache_info'):
            return self._quote.cache_info()
        return None


class ProrationCalculator:
    """
    Prorates the difference between two full-period totals.

    Cycle lengths are the fixed 30 (monthly) and 365 (annual) days rather
    than the calendar length of the current period. The result is rounded
    once, half away from zero, on the minor-unit integer.
    """

    def compute_proration(
        self,
        old_quote: PricingQuote,
        new_quote: PricingQuote,
        billing_cycle,
        days_remaining: int,
    ) -> ProrationQuote:
        """
        Raises:
            InvalidCycle: billing_cycle is not monthly or annual.
            InvalidDaysRemaining: days_remaining is not an int in [0, cycle length].
        """
        cycle = BillingCycle.parse(billing_cycle)
        cycle_length = cycle.length_days

        if (
            isinstance(days_remaining, bool)
            or not isinstance(days_remaining, int)
            or not 0 <= days_remaining <= cycle_length
        ):
            raise InvalidDaysRemaining(days_remaining, cycle_length)

        delta = new_quote.total_minor_units - old_quote.total_minor_units
        prorated = divide_round_half_away(delta * days_remaining, cycle_length)

        if prorated > 0:
            direction = ProrationDirection.CHARGE
        elif prorated < 0:
            direction = ProrationDirection.CREDIT
        else:
            direction = ProrationDirection.NONE

        return ProrationQuote(
            old_total_minor_units=old_quote.total_minor_units,
            new_total_minor_units=new_quote.total_minor_units,
            billing_cycle=cycle,
            billing_cycle_length_days=cycle_length,
            days_remaining_in_period=days_remaining,
            delta_minor_units=delta,
            prorated_minor_units=prorated,
            direction=direction,
            prorated_percentage=divide_round_half_away(days_remaining * 100, cycle_length),
        )
