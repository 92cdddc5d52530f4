"""
Shared API state - calculators and services built once from settings.
"""
from ..config.settings import get_settings
from ..engine import PricingCalculator, ProrationCalculator, load_tier_table
from ..services.checkout_service import CheckoutService
from ..services.subscription_service import SubscriptionService

settings = get_settings()

tier_table = load_tier_table(settings.pricing_tiers_csv, required=settings.pricing_tiers_csv_required)

calculator = PricingCalculator(
    tier_table,
    max_asset_count=settings.max_asset_count,
    cache_size=settings.quote_cache_size,
)
proration_calculator = ProrationCalculator()
checkout_service = CheckoutService(calculator, settings.annual_discount_percent)
subscription_service = SubscriptionService(calculator, proration_calculator)
