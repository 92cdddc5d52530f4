"""Engine subpackage - tier table, pricing and proration calculators."""
from .errors import (
    AssetCountChangeError,
    InvalidCycle,
    InvalidDaysRemaining,
    InvalidProrationInput,
    InvalidQuantity,
    PricingError,
    TierTableError,
)
from .models import (
    BillingCycle,
    PotentialSavings,
    PricingQuote,
    ProrationDirection,
    ProrationQuote,
    TierBreakdownLine,
)
from .pricing_engine import PricingCalculator, ProrationCalculator
from .tier_table import PricingTier, TierTable, load_tier_table

__all__ = [
    'PricingCalculator', 'ProrationCalculator',
    'PricingTier', 'TierTable', 'load_tier_table',
    'BillingCycle', 'ProrationDirection',
    'PricingQuote', 'ProrationQuote', 'TierBreakdownLine', 'PotentialSavings',
    'PricingError', 'InvalidQuantity', 'InvalidProrationInput',
    'InvalidDaysRemaining', 'InvalidCycle', 'TierTableError', 'AssetCountChangeError',
]
