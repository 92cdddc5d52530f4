"""
Pricing API - FastAPI router for quotes, proration, checkout totals
and subscription asset count changes.
"""
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, StrictInt
from pydantic.alias_generators import to_camel

from ..engine import AssetCountChangeError, PricingError, PricingQuote
from ..services.subscription_service import SubscriptionSnapshot
from .state import (
    calculator,
    checkout_service,
    proration_calculator,
    subscription_service,
    tier_table,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/pricing", tags=["pricing"])


class CamelModel(BaseModel):
    """Base model with camelCase JSON field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Pydantic models for API
# Request counts are StrictInt: 10.0, "10" and true are not asset counts.
class PreviewRequest(CamelModel):
    """Request model for a pricing preview."""
    asset_count: StrictInt


class TierBreakdownResponse(CamelModel):
    tier_index: int
    tier_number: int
    range_label: str
    unit_price_minor_units: int
    quantity: int
    subtotal_minor_units: int


class SavingsResponse(CamelModel):
    next_tier_threshold: int
    savings_amount_minor_units: int
    savings_per_asset_minor_units: int


class PreviewResponse(CamelModel):
    """Response model for a pricing preview."""
    asset_count: int
    estimated_monthly_total_minor_units: int
    tier_breakdown: list[TierBreakdownResponse]
    potential_savings: Optional[SavingsResponse] = None


class ProrationRequest(CamelModel):
    """Request model for a proration."""
    old_asset_count: StrictInt
    new_asset_count: StrictInt
    billing_cycle: str
    days_remaining: StrictInt


class ProrationResponse(CamelModel):
    delta_minor_units: int
    prorated_minor_units: int
    direction: str
    days_remaining: int
    billing_cycle_length_days: int
    prorated_percentage: int


class CheckoutRequest(CamelModel):
    asset_count: StrictInt
    billing_cycle: str = "monthly"


class CheckoutResponse(CamelModel):
    asset_count: int
    billing_cycle: str
    monthly_total_minor_units: int
    annual_gross_minor_units: int
    annual_discount_percent: int
    annual_discount_minor_units: int
    amount_due_minor_units: int
    tier_breakdown: list[TierBreakdownResponse]


class TierResponse(CamelModel):
    tier_index: int
    tier_number: int
    label: str
    range_label: str
    lower_bound: int
    upper_bound: Optional[int]
    unit_price_minor_units: int


class SubscriptionRequest(CamelModel):
    """Subscription record as held by the subscription store."""
    current_asset_count: StrictInt
    billing_cycle: str
    current_period_start: datetime
    current_period_end: datetime
    asset_limit: StrictInt
    active_asset_count: StrictInt = 0
    billing_customer_id: Optional[str] = None

    def to_snapshot(self) -> SubscriptionSnapshot:
        return SubscriptionSnapshot(
            current_asset_count=self.current_asset_count,
            billing_cycle=self.billing_cycle,
            current_period_start=self.current_period_start,
            current_period_end=self.current_period_end,
            asset_limit=self.asset_limit,
            active_asset_count=self.active_asset_count,
            billing_customer_id=self.billing_customer_id,
        )


class AssetCountChangeRequest(CamelModel):
    subscription: SubscriptionRequest
    new_asset_count: StrictInt
    as_of: Optional[datetime] = None  # defaults to now


class AssetCountChangeResponse(CamelModel):
    old_asset_count: int
    new_asset_count: int
    is_upgrade: bool
    old_total_minor_units: int
    new_total_minor_units: int
    tier_breakdown: list[TierBreakdownResponse]
    proration: Optional[ProrationResponse] = None  # None for free subscriptions


class UsageRequest(CamelModel):
    subscription: SubscriptionRequest
    as_of: Optional[datetime] = None


class UsageResponse(CamelModel):
    asset_count: int
    estimated_amount_minor_units: int
    tier_breakdown: list[TierBreakdownResponse]
    days_remaining: int
    days_used: int
    period_length_days: int
    accrued_minor_units: int


def _reject(error: PricingError, endpoint: str) -> HTTPException:
    """Translate an engine error into a 400 response."""
    logger.info("pricing_request_rejected", endpoint=endpoint, error=error.kind, message=str(error))
    detail = {"error": error.kind, "message": str(error)}
    if isinstance(error, AssetCountChangeError):
        detail["reason"] = error.reason
        detail["context"] = error.context
    return HTTPException(status_code=400, detail=detail)


def _proration_response(result) -> ProrationResponse:
    return ProrationResponse(
        delta_minor_units=result.delta_minor_units,
        prorated_minor_units=result.prorated_minor_units,
        direction=result.direction.value,
        days_remaining=result.days_remaining_in_period,
        billing_cycle_length_days=result.billing_cycle_length_days,
        prorated_percentage=result.prorated_percentage,
    )


def _as_of(moment: Optional[datetime]) -> datetime:
    return moment or datetime.now(timezone.utc)


def _breakdown(quote: PricingQuote) -> list[TierBreakdownResponse]:
    return [
        TierBreakdownResponse(
            tier_index=line.tier_index,
            tier_number=line.tier_number,
            range_label=line.range_label,
            unit_price_minor_units=line.unit_price_minor_units,
            quantity=line.quantity,
            subtotal_minor_units=line.subtotal_minor_units,
        )
        for line in quote.tier_breakdown
    ]


# Endpoints

@router.get("/tiers", response_model=list[TierResponse])
async def list_tiers():
    """List the volume pricing tiers."""
    return [TierResponse(**record) for record in tier_table.to_records()]


@router.post("/preview", response_model=PreviewResponse, response_model_exclude_none=True)
async def pricing_preview(request: PreviewRequest):
    """Quote an asset count with tier breakdown and next-tier savings."""
    try:
        quote = calculator.compute_quote(request.asset_count)
    except PricingError as e:
        raise _reject(e, "preview")

    savings = None
    if quote.potential_savings:
        savings = SavingsResponse(
            next_tier_threshold=quote.potential_savings.next_tier_threshold,
            savings_amount_minor_units=quote.potential_savings.savings_amount_minor_units,
            savings_per_asset_minor_units=quote.potential_savings.savings_per_asset_minor_units,
        )

    return PreviewResponse(
        asset_count=quote.asset_count,
        estimated_monthly_total_minor_units=quote.total_minor_units,
        tier_breakdown=_breakdown(quote),
        potential_savings=savings,
    )


@router.post("/proration", response_model=ProrationResponse)
async def proration(request: ProrationRequest):
    """Prorate a mid-cycle asset count change."""
    try:
        old_quote = calculator.compute_quote(request.old_asset_count)
        new_quote = calculator.compute_quote(request.new_asset_count)
        result = proration_calculator.compute_proration(
            old_quote, new_quote, request.billing_cycle, request.days_remaining
        )
    except PricingError as e:
        raise _reject(e, "proration")

    return _proration_response(result)


@router.post("/checkout-summary", response_model=CheckoutResponse)
async def checkout_summary(request: CheckoutRequest):
    """Amount due at checkout for a monthly or annual subscription."""
    try:
        summary = checkout_service.summarize(request.asset_count, request.billing_cycle)
    except PricingError as e:
        raise _reject(e, "checkout-summary")

    return CheckoutResponse(
        asset_count=summary.asset_count,
        billing_cycle=summary.billing_cycle.value,
        monthly_total_minor_units=summary.monthly_total_minor_units,
        annual_gross_minor_units=summary.annual_gross_minor_units,
        annual_discount_percent=summary.annual_discount_percent,
        annual_discount_minor_units=summary.annual_discount_minor_units,
        amount_due_minor_units=summary.amount_due_minor_units,
        tier_breakdown=_breakdown(summary.quote),
    )


@router.post("/asset-count-change", response_model=AssetCountChangeResponse)
async def asset_count_change(request: AssetCountChangeRequest):
    """Validate and price a change of subscribed asset count."""
    try:
        change = subscription_service.plan_asset_count_change(
            request.subscription.to_snapshot(), request.new_asset_count, _as_of(request.as_of)
        )
    except PricingError as e:
        raise _reject(e, "asset-count-change")

    return AssetCountChangeResponse(
        old_asset_count=change.old_asset_count,
        new_asset_count=change.new_asset_count,
        is_upgrade=change.is_upgrade,
        old_total_minor_units=change.old_quote.total_minor_units,
        new_total_minor_units=change.new_quote.total_minor_units,
        tier_breakdown=_breakdown(change.new_quote),
        proration=_proration_response(change.proration) if change.proration else None,
    )


@router.post("/usage", response_model=UsageResponse)
async def current_usage(request: UsageRequest):
    """Current period projection for a subscription."""
    try:
        usage = subscription_service.current_usage(
            request.subscription.to_snapshot(), _as_of(request.as_of)
        )
    except PricingError as e:
        raise _reject(e, "usage")

    return UsageResponse(
        asset_count=usage.asset_count,
        estimated_amount_minor_units=usage.quote.total_minor_units,
        tier_breakdown=_breakdown(usage.quote),
        days_remaining=usage.days_remaining,
        days_used=usage.days_used,
        period_length_days=usage.period_length_days,
        accrued_minor_units=usage.accrued_minor_units,
    )
