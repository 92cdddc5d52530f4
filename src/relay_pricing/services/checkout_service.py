"""
Checkout Service - Amount due for a new subscription.

Annual billing is twelve monthly totals less the annual discount. Amounts
stay in integer minor units and the discount is rounded once.
"""
from dataclasses import dataclass

from ..engine.models import BillingCycle, PricingQuote
from ..engine.pricing_engine import PricingCalculator, divide_round_half_away

MONTHS_PER_YEAR = 12


@dataclass(frozen=True)
class CheckoutSummary:
    """What the checkout page shows and sends to the payment provider."""
    asset_count: int
    billing_cycle: BillingCycle
    quote: PricingQuote
    monthly_total_minor_units: int
    annual_gross_minor_units: int
    annual_discount_percent: int
    annual_discount_minor_units: int
    amount_due_minor_units: int

    def to_dict(self) -> dict:
        return {
            "asset_count": self.asset_count,
            "billing_cycle": self.billing_cycle.value,
            "quote": self.quote.to_dict(),
            "monthly_total_minor_units": self.monthly_total_minor_units,
            "annual_gross_minor_units": self.annual_gross_minor_units,
            "annual_discount_percent": self.annual_discount_percent,
            "annual_discount_minor_units": self.annual_discount_minor_units,
            "amount_due_minor_units": self.amount_due_minor_units,
        }


class CheckoutService:
    """Builds checkout summaries on top of the pricing calculator."""

    def __init__(self, calculator: PricingCalculator, annual_discount_percent: int = 20):
        if not 0 <= annual_discount_percent <= 100:
            raise ValueError(f"annual_discount_percent must be between 0 and 100, got {annual_discount_percent}")
        self.calculator = calculator
        self.annual_discount_percent = annual_discount_percent

    def summarize(self, asset_count: int, billing_cycle) -> CheckoutSummary:
        """
        Price a checkout for the given count and cycle.

        Raises:
            InvalidQuantity: invalid asset count
            InvalidCycle: billing cycle is not monthly or annual
        """
        cycle = BillingCycle.parse(billing_cycle)
        quote = self.calculator.compute_quote(asset_count)

        monthly = quote.total_minor_units
        gross = monthly * MONTHS_PER_YEAR
        discount = divide_round_half_away(gross * self.annual_discount_percent, 100)

        if cycle is BillingCycle.ANNUAL:
            amount_due = gross - discount
        else:
            amount_due = monthly

        return CheckoutSummary(
            asset_count=asset_count,
            billing_cycle=cycle,
            quote=quote,
            monthly_total_minor_units=monthly,
            annual_gross_minor_units=gross,
            annual_discount_percent=self.annual_discount_percent,
            annual_discount_minor_units=discount,
            amount_due_minor_units=amount_due,
        )
