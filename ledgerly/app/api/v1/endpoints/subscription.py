"""
Subscription API Endpoints.

Current plan with its feature table, plan changes and cancellation.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from ledgerly.app.db.session import get_db
from ledgerly.app.core.dependencies import get_current_user
from ledgerly.app.models.subscription import Subscription
from ledgerly.app.schemas.subscription import (
    SubscriptionResponse, SubscriptionEnvelope, PlanUpdate, SubscriptionAction, SmsUsageResponse
)
from ledgerly.app.services.subscriptions import SubscriptionService

router = APIRouter(prefix="/subscription", tags=["Subscription"])


async def _envelope(db: AsyncSession, subscription: Subscription) -> SubscriptionEnvelope:
    features = await SubscriptionService.get_plan_features(db, subscription.plan)
    response = SubscriptionResponse.model_validate(subscription)
    response.features = features
    return SubscriptionEnvelope(subscription=response)


@router.get("", response_model=SubscriptionEnvelope)
async def get_subscription(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Current subscription. A free one is created on first access."""
    subscription = await SubscriptionService.get_subscription(db, current_user["user_id"])
    return await _envelope(db, subscription)


@router.patch("", response_model=SubscriptionEnvelope)
async def change_plan(
    plan_data: PlanUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    subscription = await SubscriptionService.update_plan(
        db, current_user["user_id"], plan_data.plan, current_user.get("sub")
    )
    return await _envelope(db, subscription)


@router.post("", response_model=SubscriptionEnvelope)
async def subscription_action(
    action_data: SubscriptionAction,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Cancel at the end of the period, or undo a pending cancellation."""
    if action_data.action == "cancel":
        subscription = await SubscriptionService.cancel_at_period_end(
            db, current_user["user_id"], current_user.get("sub")
        )
    else:
        subscription = await SubscriptionService.reactivate(
            db, current_user["user_id"], current_user.get("sub")
        )
    return await _envelope(db, subscription)


@router.get("/sms-usage", response_model=SmsUsageResponse)
async def get_sms_usage(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    usage = await SubscriptionService.get_sms_usage(db, current_user["user_id"])
    return SmsUsageResponse(**usage)
