"""
Subscription and plan configuration schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, Literal, Optional
from ledgerly.app.models.enums import SubscriptionPlan, SubscriptionStatus


class SubscriptionResponse(BaseModel):
    id: int
    user_id: int
    plan: SubscriptionPlan
    status: SubscriptionStatus
    sms_limit: int
    sms_used: int
    current_period_start: Optional[datetime]
    current_period_end: Optional[datetime]
    cancel_at_period_end: bool
    created_at: datetime
    updated_at: datetime
    features: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        from_attributes = True


class SubscriptionEnvelope(BaseModel):
    subscription: SubscriptionResponse


class PlanUpdate(BaseModel):
    plan: SubscriptionPlan


class SubscriptionAction(BaseModel):
    action: Literal["cancel", "reactivate"]


class SmsUsageResponse(BaseModel):
    used: int
    limit: int


class PlanConfig(BaseModel):
    customer_limit: Optional[int] = Field(..., alias="customerLimit", description="None means unlimited")
    features: Dict[str, Any]

    class Config:
        populate_by_name = True


class PlanConfigResponse(BaseModel):
    config: PlanConfig
