"""
Configuration API Endpoints.

Read access to the `config` table: plan configuration, a single key, or
every key under a prefix.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from ledgerly.app.db.session import get_db
from ledgerly.app.core.dependencies import get_current_user
from ledgerly.app.core.exceptions import InvalidRequestError
from ledgerly.app.models.enums import SubscriptionPlan
from ledgerly.app.schemas.subscription import PlanConfig, PlanConfigResponse
from ledgerly.app.services.subscriptions import SubscriptionService, parse_plan

router = APIRouter(prefix="/config", tags=["Config"])


@router.get("")
async def get_config(
    plan: Optional[str] = Query(None),
    key: Optional[str] = Query(None, max_length=200),
    prefix: Optional[str] = Query(None, max_length=200),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Exactly one lookup per request, checked in order plan, key, prefix.

    Raises:
        InvalidRequestError: unknown plan, or no lookup parameter given
    """
    if plan is not None:
        parsed = parse_plan(plan)
        if parsed is None:
            raise InvalidRequestError(
                "Invalid plan. Must be one of: " + ", ".join(p.value for p in SubscriptionPlan),
                details={"plan": plan},
            )
        features = await SubscriptionService.get_plan_features(db, parsed)
        limit = await SubscriptionService.get_plan_customer_limit(db, parsed)
        return PlanConfigResponse(config=PlanConfig(customer_limit=limit, features=features))

    if key is not None:
        return {"value": await SubscriptionService.get_config_value(db, key)}

    if prefix is not None:
        return {"configs": await SubscriptionService.get_config_prefix(db, prefix)}

    raise InvalidRequestError("Provide one of the query parameters: plan, key or prefix.")
