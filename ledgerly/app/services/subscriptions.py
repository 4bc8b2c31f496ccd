"""
Subscription Service.

Plan lookup and feature gating. Feature access is a static table keyed by
plan; the `config` table may override individual entries per plan without
a deploy.
"""

import json
import logging
from typing import Any, Dict, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerly.app.models.config_entry import ConfigEntry
from ledgerly.app.models.enums import SubscriptionPlan, SubscriptionStatus
from ledgerly.app.models.subscription import Subscription
from ledgerly.app.services.audit import log_event, AuditAction

logger = logging.getLogger(__name__)


# maxCustomers: None means unlimited
PLAN_FEATURES: Dict[SubscriptionPlan, Dict[str, Any]] = {
    SubscriptionPlan.FREE: {
        "maxCustomers": 5,
        "unlimitedTransactions": True,
        "offlineMode": True,
        "basicReports": True,
        "advancedReports": False,
        "smsReminders": False,
        "emailSupport": True,
        "prioritySupport": False,
        "dataExport": False,
        "multiUserAccess": False,
        "apiAccess": False,
        "customIntegrations": False,
        "whiteLabel": False,
        "pwaInstall": False,
        "themeChange": False,
        "customFields": False,
    },
    SubscriptionPlan.BASIC: {
        "maxCustomers": 100,
        "unlimitedTransactions": True,
        "offlineMode": True,
        "basicReports": True,
        "advancedReports": True,
        "smsReminders": False,
        "emailSupport": True,
        "prioritySupport": False,
        "dataExport": True,
        "multiUserAccess": False,
        "apiAccess": False,
        "customIntegrations": False,
        "whiteLabel": False,
        "pwaInstall": True,
        "themeChange": True,
        "customFields": False,
    },
    SubscriptionPlan.PRO: {
        "maxCustomers": 500,
        "unlimitedTransactions": True,
        "offlineMode": True,
        "basicReports": True,
        "advancedReports": True,
        "smsReminders": True,
        "emailSupport": True,
        "prioritySupport": True,
        "dataExport": True,
        "multiUserAccess": True,
        "apiAccess": True,
        "customIntegrations": True,
        "whiteLabel": False,
        "pwaInstall": True,
        "themeChange": True,
        "customFields": True,
    },
    SubscriptionPlan.ENTERPRISE: {
        "maxCustomers": None,
        "unlimitedTransactions": True,
        "offlineMode": True,
        "basicReports": True,
        "advancedReports": True,
        "smsReminders": True,
        "emailSupport": True,
        "prioritySupport": True,
        "dataExport": True,
        "multiUserAccess": True,
        "apiAccess": True,
        "customIntegrations": True,
        "whiteLabel": True,
        "pwaInstall": True,
        "themeChange": True,
        "customFields": True,
    },
}

FEATURE_NAMES = frozenset(PLAN_FEATURES[SubscriptionPlan.FREE].keys())

SMS_LIMITS: Dict[SubscriptionPlan, int] = {
    SubscriptionPlan.FREE: 0,
    SubscriptionPlan.BASIC: 0,
    SubscriptionPlan.PRO: 100,
    SubscriptionPlan.ENTERPRISE: 100,
}


def feature_enabled(features: Dict[str, Any], feature: str) -> bool:
    """
    Resolve one entry of a feature table to an access decision.

    Numeric entries (maxCustomers) grant access when unlimited (None) or
    positive; unknown features are denied.
    """
    if feature not in features:
        return False

    value = features[feature]
    if feature == "maxCustomers":
        return value is None or value > 0
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value > 0
    return False


def minimum_plan_for(feature: str) -> Optional[SubscriptionPlan]:
    """Cheapest plan whose static table enables the feature."""
    for plan in SubscriptionPlan:
        if feature_enabled(PLAN_FEATURES[plan], feature):
            return plan
    return None


def minimum_plan_for_customers(current: SubscriptionPlan, needed: int) -> Optional[SubscriptionPlan]:
    """Cheapest plan above `current` whose static table allows `needed` customers."""
    plans = list(SubscriptionPlan)
    for plan in plans[plans.index(current) + 1:]:
        limit = PLAN_FEATURES[plan]["maxCustomers"]
        if limit is None or limit >= needed:
            return plan
    return None


def _parse_config_value(value: Any) -> Any:
    # Values written by hand may be JSON strings
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


class SubscriptionService:

    @staticmethod
    async def get_config_value(db: AsyncSession, key: str) -> Any:
        result = await db.execute(select(ConfigEntry.value).where(ConfigEntry.key == key))
        return _parse_config_value(result.scalar_one_or_none())

    @staticmethod
    async def get_config_prefix(db: AsyncSession, prefix: str) -> Dict[str, Any]:
        result = await db.execute(
            select(ConfigEntry.key, ConfigEntry.value)
            .where(ConfigEntry.key.startswith(prefix, autoescape=True))
            .order_by(ConfigEntry.key)
        )
        return {key: _parse_config_value(value) for key, value in result.all()}

    @staticmethod
    async def get_plan_features(db: AsyncSession, plan: SubscriptionPlan) -> Dict[str, Any]:
        """
        Feature table for a plan.

        Starts from PLAN_FEATURES and applies the `plans.<plan>.features`
        config override, ignoring keys that are not known features.
        """
        features = dict(PLAN_FEATURES[plan])

        override = await SubscriptionService.get_config_value(db, f"plans.{plan.value}.features")
        if isinstance(override, dict):
            features.update({k: v for k, v in override.items() if k in FEATURE_NAMES})
        elif override is not None:
            logger.warning("Ignoring malformed feature override for plan %s", plan.value)

        return features

    @staticmethod
    async def get_plan_customer_limit(db: AsyncSession, plan: SubscriptionPlan) -> Optional[int]:
        """Customer limit for a plan, None when unlimited."""
        override = await SubscriptionService.get_config_value(db, f"plans.{plan.value}.customer_limit")
        if isinstance(override, int) and not isinstance(override, bool):
            return override
        features = await SubscriptionService.get_plan_features(db, plan)
        return features["maxCustomers"]

    @staticmethod
    async def get_subscription(db: AsyncSession, user_id: int) -> Subscription:
        """
        Get the user's subscription.

        Creates a free subscription when none exists yet.
        """
        result = await db.execute(select(Subscription).where(Subscription.user_id == user_id))
        subscription = result.scalar_one_or_none()
        if subscription:
            return subscription

        return await SubscriptionService.create_free_subscription(db, user_id)

    @staticmethod
    async def create_free_subscription(db: AsyncSession, user_id: int) -> Subscription:
        subscription = Subscription(
            user_id=user_id,
            plan=SubscriptionPlan.FREE,
            status=SubscriptionStatus.ACTIVE,
            sms_limit=SMS_LIMITS[SubscriptionPlan.FREE],
            sms_used=0,
            cancel_at_period_end=False,
        )
        db.add(subscription)
        try:
            await db.commit()
        except IntegrityError:
            # Another request created it first
            await db.rollback()
            result = await db.execute(select(Subscription).where(Subscription.user_id == user_id))
            return result.scalar_one()

        await db.refresh(subscription)
        logger.info("Created free subscription for user %s", user_id)
        return subscription

    @staticmethod
    async def update_plan(
        db: AsyncSession,
        user_id: int,
        plan: SubscriptionPlan,
        actor_email: Optional[str] = None
    ) -> Subscription:
        """Switch plan; the SMS quota follows the plan."""
        subscription = await SubscriptionService.get_subscription(db, user_id)
        previous = subscription.plan

        subscription.plan = plan
        subscription.sms_limit = SMS_LIMITS[plan]
        await db.commit()
        await db.refresh(subscription)

        if previous != plan:
            logger.info("User %s changed plan %s -> %s", user_id, previous.value, plan.value)
            await log_event(
                db=db,
                action=AuditAction.PLAN_CHANGED,
                actor_id=user_id,
                actor_email=actor_email,
                metadata={"from": previous.value, "to": plan.value},
            )

        return subscription

    @staticmethod
    async def has_feature(db: AsyncSession, user_id: int, feature: str) -> bool:
        subscription = await SubscriptionService.get_subscription(db, user_id)
        features = await SubscriptionService.get_plan_features(db, subscription.plan)
        return feature_enabled(features, feature)

    @staticmethod
    async def get_customer_limit(db: AsyncSession, user_id: int) -> Optional[int]:
        subscription = await SubscriptionService.get_subscription(db, user_id)
        return await SubscriptionService.get_plan_customer_limit(db, subscription.plan)

    @staticmethod
    async def is_paid_plan(db: AsyncSession, user_id: int) -> bool:
        subscription = await SubscriptionService.get_subscription(db, user_id)
        return subscription.plan != SubscriptionPlan.FREE

    @staticmethod
    async def increment_sms_usage(db: AsyncSession, user_id: int) -> bool:
        """
        Count one sent SMS.

        Returns False without counting when the quota is used up.
        """
        subscription = await SubscriptionService.get_subscription(db, user_id)
        if subscription.sms_used >= subscription.sms_limit:
            return False

        subscription.sms_used = subscription.sms_used + 1
        await db.commit()
        return True

    @staticmethod
    async def get_sms_usage(db: AsyncSession, user_id: int) -> Dict[str, int]:
        subscription = await SubscriptionService.get_subscription(db, user_id)
        return {"used": subscription.sms_used, "limit": subscription.sms_limit}

    @staticmethod
    async def set_cancel_at_period_end(
        db: AsyncSession,
        user_id: int,
        cancel: bool,
        actor_email: Optional[str] = None
    ) -> Subscription:
        """Cancel at period end (cancel=True) or reactivate (cancel=False)."""
        subscription = await SubscriptionService.get_subscription(db, user_id)
        subscription.cancel_at_period_end = cancel
        await db.commit()
        await db.refresh(subscription)

        await log_event(
            db=db,
            action=AuditAction.SUBSCRIPTION_CANCELED if cancel else AuditAction.SUBSCRIPTION_REACTIVATED,
            actor_id=user_id,
            actor_email=actor_email,
            metadata={"plan": subscription.plan.value},
        )
        return subscription

    @staticmethod
    async def cancel_at_period_end(db: AsyncSession, user_id: int, actor_email: Optional[str] = None) -> Subscription:
        return await SubscriptionService.set_cancel_at_period_end(db, user_id, True, actor_email)

    @staticmethod
    async def reactivate(db: AsyncSession, user_id: int, actor_email: Optional[str] = None) -> Subscription:
        return await SubscriptionService.set_cancel_at_period_end(db, user_id, False, actor_email)


def parse_plan(value: Union[str, SubscriptionPlan, None]) -> Optional[SubscriptionPlan]:
    """Plan from a query/body value, None when it is not a known plan."""
    if isinstance(value, SubscriptionPlan):
        return value
    try:
        return SubscriptionPlan(value)
    except ValueError:
        return None
