import os
import sys
from datetime import datetime, timezone

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from relay_pricing.engine import PricingCalculator, ProrationCalculator, TierTable


@pytest.fixture
def tier_table():
    return TierTable.default()


@pytest.fixture
def calculator(tier_table):
    return PricingCalculator(tier_table)


@pytest.fixture
def proration_calculator():
    return ProrationCalculator()


@pytest.fixture
def now():
    return datetime(2025, 3, 16, 12, 0, tzinfo=timezone.utc)
