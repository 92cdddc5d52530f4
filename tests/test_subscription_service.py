from datetime import timedelta

import pytest

from relay_pricing.engine import (
    AssetCountChangeError,
    InvalidCycle,
    InvalidQuantity,
    ProrationDirection,
)
from relay_pricing.services.subscription_service import (
    SubscriptionService,
    SubscriptionSnapshot,
)


@pytest.fixture
def service(calculator, proration_calculator):
    return SubscriptionService(calculator, proration_calculator)


@pytest.fixture
def paid_snapshot(now):
    return SubscriptionSnapshot(
        current_asset_count=50,
        billing_cycle="monthly",
        current_period_start=now - timedelta(days=15),
        current_period_end=now + timedelta(days=15),
        asset_limit=50,
        active_asset_count=40,
        billing_customer_id="cus_123",
    )


@pytest.fixture
def free_snapshot(now):
    return SubscriptionSnapshot(
        current_asset_count=5,
        billing_cycle="monthly",
        current_period_start=now - timedelta(days=5),
        current_period_end=now + timedelta(days=25),
        asset_limit=10,
        active_asset_count=3,
    )


def test_paid_upgrade_is_prorated(service, paid_snapshot, now):
    """Days remaining come from the stored period end."""
    change = service.plan_asset_count_change(paid_snapshot, 60, now)

    assert change.is_upgrade
    assert change.old_quote.total_minor_units == 22450
    assert change.new_quote.total_minor_units == 23940
    assert change.proration.days_remaining_in_period == 15
    assert change.proration.prorated_minor_units == 745
    assert change.proration.direction is ProrationDirection.CHARGE


def test_paid_downgrade_is_credit(service, paid_snapshot, now):
    change = service.plan_asset_count_change(paid_snapshot, 45, now)

    assert not change.is_upgrade
    assert change.proration.direction is ProrationDirection.CREDIT


def test_below_active_assets_rejected(service, paid_snapshot, now):
    with pytest.raises(AssetCountChangeError) as exc_info:
        service.plan_asset_count_change(paid_snapshot, 30, now)
    assert exc_info.value.reason == "below_active_assets"
    assert exc_info.value.context["min_allowed"] == 40


def test_unchanged_rejected(service, paid_snapshot, now):
    with pytest.raises(AssetCountChangeError) as exc_info:
        service.plan_asset_count_change(paid_snapshot, 50, now)
    assert exc_info.value.reason == "unchanged"


def test_invalid_count_rejected(service, paid_snapshot, now):
    with pytest.raises(InvalidQuantity):
        service.plan_asset_count_change(paid_snapshot, 0, now)


def test_free_subscription_limit(service, free_snapshot, now):
    with pytest.raises(AssetCountChangeError) as exc_info:
        service.plan_asset_count_change(free_snapshot, 11, now)
    assert exc_info.value.reason == "limit_exceeded"
    assert exc_info.value.context["asset_limit"] == 10


def test_free_subscription_change_has_no_proration(service, free_snapshot, now):
    change = service.plan_asset_count_change(free_snapshot, 8, now)

    assert change.proration is None
    assert change.new_quote.total_minor_units == 8 * 499


def test_unknown_stored_cycle(service, paid_snapshot, now):
    paid_snapshot.billing_cycle = "weekly"
    with pytest.raises(InvalidCycle):
        service.plan_asset_count_change(paid_snapshot, 60, now)


def test_current_usage(service, paid_snapshot, now):
    paid_snapshot.current_period_start = now - timedelta(days=10)
    paid_snapshot.current_period_end = now + timedelta(days=20)

    usage = service.current_usage(paid_snapshot, now)

    assert usage.asset_count == 50
    assert usage.quote.total_minor_units == 22450
    assert usage.days_remaining == 20
    assert usage.days_used == 10
    assert usage.period_length_days == 30
    # 22450 * 10 / 30 = 7483.33
    assert usage.accrued_minor_units == 7483
