"""
Tests for plans, feature gating and the config endpoint.
"""

import pytest

from ledgerly.app.models.config_entry import ConfigEntry
from ledgerly.app.models.enums import SubscriptionPlan
from ledgerly.app.services.subscriptions import (
    SubscriptionService, PLAN_FEATURES, feature_enabled, minimum_plan_for,
    minimum_plan_for_customers, parse_plan
)


def test_feature_enabled_rules():
    assert feature_enabled({"pwaInstall": True}, "pwaInstall") is True
    assert feature_enabled({"pwaInstall": False}, "pwaInstall") is False
    assert feature_enabled({"maxCustomers": None}, "maxCustomers") is True
    assert feature_enabled({"maxCustomers": 5}, "maxCustomers") is True
    assert feature_enabled({"maxCustomers": 0}, "maxCustomers") is False
    assert feature_enabled({"pwaInstall": True}, "teleport") is False


def test_minimum_plan_for_customers():
    assert minimum_plan_for_customers(SubscriptionPlan.FREE, 6) == SubscriptionPlan.BASIC
    assert minimum_plan_for_customers(SubscriptionPlan.FREE, 101) == SubscriptionPlan.PRO
    assert minimum_plan_for_customers(SubscriptionPlan.PRO, 501) == SubscriptionPlan.ENTERPRISE
    assert minimum_plan_for_customers(SubscriptionPlan.ENTERPRISE, 10**6) is None


def test_plan_table():
    assert PLAN_FEATURES[SubscriptionPlan.FREE]["maxCustomers"] == 5
    assert PLAN_FEATURES[SubscriptionPlan.ENTERPRISE]["maxCustomers"] is None
    assert minimum_plan_for("dataExport") == SubscriptionPlan.BASIC
    assert minimum_plan_for("smsReminders") == SubscriptionPlan.PRO
    assert minimum_plan_for("whiteLabel") == SubscriptionPlan.ENTERPRISE
    assert minimum_plan_for("teleport") is None
    assert parse_plan("pro") == SubscriptionPlan.PRO
    assert parse_plan("platinum") is None


@pytest.mark.asyncio
async def test_has_feature_follows_plan(db_session, merchant):
    _, user_id = merchant

    assert await SubscriptionService.has_feature(db_session, user_id, "pwaInstall") is False
    assert await SubscriptionService.is_paid_plan(db_session, user_id) is False

    await SubscriptionService.update_plan(db_session, user_id, SubscriptionPlan.PRO)

    assert await SubscriptionService.has_feature(db_session, user_id, "pwaInstall") is True
    assert await SubscriptionService.has_feature(db_session, user_id, "unknownFeature") is False
    assert await SubscriptionService.is_paid_plan(db_session, user_id) is True
    assert await SubscriptionService.get_customer_limit(db_session, user_id) == 500


@pytest.mark.asyncio
async def test_feature_override_from_config(db_session, merchant):
    _, user_id = merchant
    db_session.add(ConfigEntry(key="plans.free.features", value={"pwaInstall": True, "bogus": True}))
    await db_session.commit()

    features = await SubscriptionService.get_plan_features(db_session, SubscriptionPlan.FREE)
    assert features["pwaInstall"] is True
    assert "bogus" not in features
    assert await SubscriptionService.has_feature(db_session, user_id, "pwaInstall") is True


@pytest.mark.asyncio
async def test_subscription_created_on_first_access(db_session, client):
    response = await client.post("/api/auth/register", json={
        "email": "fresh@test.com", "password": "password123"
    })
    user_id = response.json()["user_id"]

    subscription = await SubscriptionService.get_subscription(db_session, user_id)
    again = await SubscriptionService.get_subscription(db_session, user_id)
    assert subscription.id == again.id
    assert subscription.plan == SubscriptionPlan.FREE


@pytest.mark.asyncio
async def test_sms_quota(db_session, merchant):
    _, user_id = merchant

    # Free plan has no SMS quota
    assert await SubscriptionService.increment_sms_usage(db_session, user_id) is False

    await SubscriptionService.update_plan(db_session, user_id, SubscriptionPlan.PRO)
    assert await SubscriptionService.get_sms_usage(db_session, user_id) == {"used": 0, "limit": 100}

    subscription = await SubscriptionService.get_subscription(db_session, user_id)
    subscription.sms_used = 99
    await db_session.commit()

    assert await SubscriptionService.increment_sms_usage(db_session, user_id) is True
    assert await SubscriptionService.increment_sms_usage(db_session, user_id) is False
    assert await SubscriptionService.get_sms_usage(db_session, user_id) == {"used": 100, "limit": 100}

    await SubscriptionService.update_plan(db_session, user_id, SubscriptionPlan.BASIC)
    assert (await SubscriptionService.get_sms_usage(db_session, user_id))["limit"] == 0


@pytest.mark.asyncio
async def test_subscription_endpoints(client, merchant):
    headers, _ = merchant

    response = await client.get("/api/subscription", headers=headers)
    assert response.status_code == 200
    subscription = response.json()["subscription"]
    assert subscription["plan"] == "free"
    assert subscription["features"]["pwaInstall"] is False

    response = await client.patch("/api/subscription", json={"plan": "enterprise"}, headers=headers)
    assert response.status_code == 200
    subscription = response.json()["subscription"]
    assert subscription["plan"] == "enterprise"
    assert subscription["sms_limit"] == 100
    assert subscription["features"]["maxCustomers"] is None

    response = await client.post("/api/subscription", json={"action": "cancel"}, headers=headers)
    assert response.json()["subscription"]["cancel_at_period_end"] is True

    response = await client.post("/api/subscription", json={"action": "reactivate"}, headers=headers)
    assert response.json()["subscription"]["cancel_at_period_end"] is False

    response = await client.patch("/api/subscription", json={"plan": "platinum"}, headers=headers)
    assert response.status_code == 422

    response = await client.get("/api/subscription/sms-usage", headers=headers)
    assert response.json() == {"used": 0, "limit": 100}


@pytest.mark.asyncio
async def test_config_requires_auth(client):
    response = await client.get("/api/config", params={"plan": "free"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_config_plan_lookup(client, merchant):
    headers, _ = merchant

    response = await client.get("/api/config", params={"plan": "free"}, headers=headers)
    assert response.status_code == 200
    config = response.json()["config"]
    assert config["customerLimit"] == 5
    assert config["features"]["dataExport"] is False

    response = await client.get("/api/config", params={"plan": "enterprise"}, headers=headers)
    assert response.json()["config"]["customerLimit"] is None

    response = await client.get("/api/config", params={"plan": "platinum"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_BAD_REQUEST"


@pytest.mark.asyncio
async def test_config_key_and_prefix(client, merchant, db_session):
    headers, _ = merchant
    db_session.add_all([
        ConfigEntry(key="app.support_email", value="help@ledgerly.app"),
        ConfigEntry(key="app.min_version", value="2.1.0"),
        ConfigEntry(key="apps_disabled", value=True),
    ])
    await db_session.commit()

    response = await client.get("/api/config", params={"key": "app.support_email"}, headers=headers)
    assert response.json() == {"value": "help@ledgerly.app"}

    response = await client.get("/api/config", params={"key": "missing"}, headers=headers)
    assert response.json() == {"value": None}

    response = await client.get("/api/config", params={"prefix": "app."}, headers=headers)
    assert response.json() == {"configs": {
        "app.min_version": "2.1.0",
        "app.support_email": "help@ledgerly.app",
    }}

    response = await client.get("/api/config", headers=headers)
    assert response.status_code == 400
