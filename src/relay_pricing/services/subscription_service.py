"""
Subscription Service - Plans asset count changes and usage projections.

Works from a snapshot of the external subscription record. Nothing here
charges, credits or persists anything; callers hand the resulting quotes to
the billing provider.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import structlog

from ..engine.billing_period import days_remaining_in_period, period_progress
from ..engine.errors import AssetCountChangeError
from ..engine.models import BillingCycle, PricingQuote, ProrationQuote
from ..engine.pricing_engine import (
    PricingCalculator,
    ProrationCalculator,
    divide_round_half_away,
    validate_asset_count,
)

logger = structlog.get_logger(__name__)


@dataclass
class SubscriptionSnapshot:
    """Subscription fields read from the external store."""
    current_asset_count: int
    billing_cycle: str
    current_period_start: datetime
    current_period_end: datetime
    asset_limit: int
    active_asset_count: int = 0
    billing_customer_id: Optional[str] = None  # None for free subscriptions

    @property
    def is_free(self) -> bool:
        return not self.billing_customer_id


@dataclass(frozen=True)
class AssetCountChange:
    """A validated change, ready for the billing provider."""
    old_asset_count: int
    new_asset_count: int
    old_quote: PricingQuote
    new_quote: PricingQuote
    proration: Optional[ProrationQuote]  # None for free subscriptions

    @property
    def is_upgrade(self) -> bool:
        return self.new_asset_count > self.old_asset_count


@dataclass(frozen=True)
class UsageSummary:
    """Current billing projection for a subscription."""
    asset_count: int
    quote: PricingQuote
    days_remaining: int
    days_used: int
    period_length_days: int
    accrued_minor_units: int


class SubscriptionService:
    """Applies subscription rules before pricing a change."""

    def __init__(
        self,
        calculator: PricingCalculator,
        proration_calculator: Optional[ProrationCalculator] = None,
    ):
        self.calculator = calculator
        self.proration_calculator = proration_calculator or ProrationCalculator()

    def plan_asset_count_change(
        self,
        snapshot: SubscriptionSnapshot,
        new_asset_count: int,
        now: datetime,
    ) -> AssetCountChange:
        """
        Validate and price a change of subscribed asset count.

        Check order: valid quantity, free-plan limit, active assets, unchanged.

        Raises:
            InvalidQuantity: new count is not a positive integer
            AssetCountChangeError: the change breaks a subscription rule
            InvalidCycle: the stored billing cycle is unknown
        """
        validate_asset_count(new_asset_count, self.calculator.max_asset_count)
        old_count = snapshot.current_asset_count

        if snapshot.is_free and new_asset_count > snapshot.asset_limit:
            logger.info(
                "asset_count_change_rejected",
                reason="limit_exceeded",
                requested=new_asset_count,
                asset_limit=snapshot.asset_limit,
            )
            raise AssetCountChangeError(
                "limit_exceeded",
                f"Asset limit exceeded. Free subscriptions are limited to "
                f"{snapshot.asset_limit} assets.",
                {"asset_limit": snapshot.asset_limit, "requested": new_asset_count},
            )

        if new_asset_count < snapshot.active_asset_count:
            logger.info(
                "asset_count_change_rejected",
                reason="below_active_assets",
                requested=new_asset_count,
                active_assets=snapshot.active_asset_count,
            )
            raise AssetCountChangeError(
                "below_active_assets",
                f"Cannot set asset count below active assets. You currently have "
                f"{snapshot.active_asset_count} active assets.",
                {
                    "min_allowed": snapshot.active_asset_count,
                    "active_assets": snapshot.active_asset_count,
                    "requested": new_asset_count,
                },
            )

        if new_asset_count == old_count:
            raise AssetCountChangeError(
                "unchanged",
                "Asset count hasn't changed",
                {"requested": new_asset_count},
            )

        cycle = BillingCycle.parse(snapshot.billing_cycle)
        old_quote = self.calculator.compute_quote(old_count)
        new_quote = self.calculator.compute_quote(new_asset_count)

        proration = None
        if not snapshot.is_free:
            days_remaining = days_remaining_in_period(snapshot.current_period_end, now, cycle)
            proration = self.proration_calculator.compute_proration(
                old_quote, new_quote, cycle, days_remaining
            )
            logger.info(
                "asset_count_change_planned",
                old_asset_count=old_count,
                new_asset_count=new_asset_count,
                days_remaining=days_remaining,
                prorated_minor_units=proration.prorated_minor_units,
                direction=proration.direction.value,
            )

        return AssetCountChange(
            old_asset_count=old_count,
            new_asset_count=new_asset_count,
            old_quote=old_quote,
            new_quote=new_quote,
            proration=proration,
        )

    def current_usage(self, snapshot: SubscriptionSnapshot, now: datetime) -> UsageSummary:
        """Project the current period's charge and how much has accrued so far."""
        cycle = BillingCycle.parse(snapshot.billing_cycle)
        quote = self.calculator.compute_quote(snapshot.current_asset_count)
        days_used, total_days = period_progress(
            snapshot.current_period_start, snapshot.current_period_end, now
        )

        accrued = 0
        if total_days > 0:
            accrued = divide_round_half_away(quote.total_minor_units * days_used, total_days)

        return UsageSummary(
            asset_count=snapshot.current_asset_count,
            quote=quote,
            days_remaining=days_remaining_in_period(snapshot.current_period_end, now, cycle),
            days_used=days_used,
            period_length_days=total_days,
            accrued_minor_units=accrued,
        )
