import pytest
from fastapi.testclient import TestClient

from relay_pricing.api.main import app


@pytest.fixture(scope="module")
def client():
    return TestClient(app)


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "online"


def test_system_status(client):
    body = client.get("/system/status").json()
    assert body["engine_active"] is True
    assert body["tier_count"] == 4


def test_list_tiers(client):
    tiers = client.get("/api/pricing/tiers").json()

    assert [t["rangeLabel"] for t in tiers] == ["1-25", "26-50", "51-100", "101+"]
    assert tiers[0]["unitPriceMinorUnits"] == 499
    assert tiers[-1]["upperBound"] is None


def test_preview(client):
    response = client.post("/api/pricing/preview", json={"assetCount": 10})
    assert response.status_code == 200

    body = response.json()
    assert body["assetCount"] == 10
    assert body["estimatedMonthlyTotalMinorUnits"] == 4990
    assert body["tierBreakdown"] == [{
        "tierIndex": 0,
        "tierNumber": 1,
        "rangeLabel": "1-25",
        "unitPriceMinorUnits": 499,
        "quantity": 10,
        "subtotalMinorUnits": 4990,
    }]
    assert body["potentialSavings"] == {
        "nextTierThreshold": 26,
        "savingsAmountMinorUnits": 1300,
        "savingsPerAssetMinorUnits": 50,
    }


def test_preview_top_tier_omits_savings(client):
    body = client.post("/api/pricing/preview", json={"assetCount": 250}).json()
    assert body["estimatedMonthlyTotalMinorUnits"] == 87250
    assert "potentialSavings" not in body


@pytest.mark.parametrize("count", [0, -5])
def test_preview_rejects_non_positive(client, count):
    response = client.post("/api/pricing/preview", json={"assetCount": count})
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_quantity"


def test_preview_rejects_non_integer_body(client):
    response = client.post("/api/pricing/preview", json={"assetCount": "many"})
    assert response.status_code == 422


@pytest.mark.parametrize("count", [10.0, "10", True])
def test_preview_rejects_coercible_counts(client, count):
    """Floats, numeric strings and booleans are not asset counts."""
    response = client.post("/api/pricing/preview", json={"assetCount": count})
    assert response.status_code == 422


def test_proration(client):
    response = client.post("/api/pricing/proration", json={
        "oldAssetCount": 50,
        "newAssetCount": 60,
        "billingCycle": "monthly",
        "daysRemaining": 15,
    })
    assert response.status_code == 200
    assert response.json() == {
        "deltaMinorUnits": 1490,
        "proratedMinorUnits": 745,
        "direction": "charge",
        "daysRemaining": 15,
        "billingCycleLengthDays": 30,
        "proratedPercentage": 50,
    }


def test_proration_rejects_unknown_cycle(client):
    response = client.post("/api/pricing/proration", json={
        "oldAssetCount": 50,
        "newAssetCount": 60,
        "billingCycle": "weekly",
        "daysRemaining": 5,
    })
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_cycle"


def test_proration_rejects_days_outside_cycle(client):
    response = client.post("/api/pricing/proration", json={
        "oldAssetCount": 50,
        "newAssetCount": 60,
        "billingCycle": "monthly",
        "daysRemaining": 31,
    })
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_days_remaining"


def test_checkout_summary_annual(client):
    response = client.post("/api/pricing/checkout-summary", json={
        "assetCount": 10,
        "billingCycle": "annual",
    })
    assert response.status_code == 200

    body = response.json()
    assert body["monthlyTotalMinorUnits"] == 4990
    assert body["annualGrossMinorUnits"] == 59880
    assert body["annualDiscountMinorUnits"] == 11976
    assert body["amountDueMinorUnits"] == 47904
    assert body["tierBreakdown"][0]["rangeLabel"] == "1-25"


def test_checkout_summary_defaults_to_monthly(client):
    body = client.post("/api/pricing/checkout-summary", json={"assetCount": 60}).json()
    assert body["billingCycle"] == "monthly"
    assert body["amountDueMinorUnits"] == 23940


@pytest.mark.parametrize("days", [15.0, "15", True])
def test_proration_rejects_coercible_days(client, days):
    response = client.post("/api/pricing/proration", json={
        "oldAssetCount": 50,
        "newAssetCount": 60,
        "billingCycle": "monthly",
        "daysRemaining": days,
    })
    assert response.status_code == 422


def test_checkout_summary_rejects_boolean_count(client):
    response = client.post("/api/pricing/checkout-summary", json={"assetCount": True})
    assert response.status_code == 422


AS_OF = "2025-03-16T12:00:00Z"


@pytest.fixture
def paid_subscription():
    return {
        "currentAssetCount": 50,
        "billingCycle": "monthly",
        "currentPeriodStart": "2025-03-01T12:00:00Z",
        "currentPeriodEnd": "2025-03-31T12:00:00Z",
        "assetLimit": 50,
        "activeAssetCount": 40,
        "billingCustomerId": "cus_123",
    }


@pytest.fixture
def free_subscription():
    return {
        "currentAssetCount": 5,
        "billingCycle": "monthly",
        "currentPeriodStart": "2025-03-11T12:00:00Z",
        "currentPeriodEnd": "2025-04-10T12:00:00Z",
        "assetLimit": 10,
        "activeAssetCount": 3,
    }


def test_asset_count_change_paid_upgrade(client, paid_subscription):
    """Days remaining come from the stored period end."""
    response = client.post("/api/pricing/asset-count-change", json={
        "subscription": paid_subscription,
        "newAssetCount": 60,
        "asOf": AS_OF,
    })
    assert response.status_code == 200

    body = response.json()
    assert body["isUpgrade"] is True
    assert body["oldTotalMinorUnits"] == 22450
    assert body["newTotalMinorUnits"] == 23940
    assert body["tierBreakdown"][0]["rangeLabel"] == "51-100"
    assert body["proration"]["daysRemaining"] == 15
    assert body["proration"]["proratedMinorUnits"] == 745
    assert body["proration"]["direction"] == "charge"


def test_asset_count_change_below_active_assets(client, paid_subscription):
    response = client.post("/api/pricing/asset-count-change", json={
        "subscription": paid_subscription,
        "newAssetCount": 30,
        "asOf": AS_OF,
    })
    assert response.status_code == 400

    detail = response.json()["detail"]
    assert detail["error"] == "asset_count_change_rejected"
    assert detail["reason"] == "below_active_assets"
    assert detail["context"]["min_allowed"] == 40


def test_asset_count_change_unchanged(client, paid_subscription):
    response = client.post("/api/pricing/asset-count-change", json={
        "subscription": paid_subscription,
        "newAssetCount": 50,
        "asOf": AS_OF,
    })
    assert response.status_code == 400
    assert response.json()["detail"]["reason"] == "unchanged"


def test_asset_count_change_free_limit(client, free_subscription):
    response = client.post("/api/pricing/asset-count-change", json={
        "subscription": free_subscription,
        "newAssetCount": 11,
        "asOf": AS_OF,
    })
    assert response.status_code == 400
    assert response.json()["detail"]["reason"] == "limit_exceeded"


def test_asset_count_change_free_has_no_proration(client, free_subscription):
    response = client.post("/api/pricing/asset-count-change", json={
        "subscription": free_subscription,
        "newAssetCount": 8,
        "asOf": AS_OF,
    })
    assert response.status_code == 200
    assert response.json()["proration"] is None


def test_asset_count_change_rejects_invalid_count(client, paid_subscription):
    response = client.post("/api/pricing/asset-count-change", json={
        "subscription": paid_subscription,
        "newAssetCount": 0,
        "asOf": AS_OF,
    })
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_quantity"


def test_asset_count_change_rejects_coercible_snapshot_count(client, paid_subscription):
    paid_subscription["currentAssetCount"] = "50"
    response = client.post("/api/pricing/asset-count-change", json={
        "subscription": paid_subscription,
        "newAssetCount": 60,
        "asOf": AS_OF,
    })
    assert response.status_code == 422


def test_usage(client, paid_subscription):
    paid_subscription["currentPeriodStart"] = "2025-03-06T12:00:00Z"
    paid_subscription["currentPeriodEnd"] = "2025-04-05T12:00:00Z"

    response = client.post("/api/pricing/usage", json={
        "subscription": paid_subscription,
        "asOf": AS_OF,
    })
    assert response.status_code == 200

    body = response.json()
    assert body["estimatedAmountMinorUnits"] == 22450
    assert body["daysUsed"] == 10
    assert body["daysRemaining"] == 20
    assert body["periodLengthDays"] == 30
    assert body["accruedMinorUnits"] == 7483


def test_usage_rejects_unknown_cycle(client, paid_subscription):
    paid_subscription["billingCycle"] = "weekly"
    response = client.post("/api/pricing/usage", json={"subscription": paid_subscription})
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_cycle"
