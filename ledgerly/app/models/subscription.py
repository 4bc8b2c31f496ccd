"""
Subscription database model.

One subscription per user. Feature access is derived from the plan
(see services.subscriptions.PLAN_FEATURES), not stored here.
"""

from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from ledgerly.app.db.session import Base
from ledgerly.app.models.enums import SubscriptionPlan, SubscriptionStatus


def _values(enum_cls):
    return [member.value for member in enum_cls]


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, unique=True, index=True)

    plan = Column(
        Enum(SubscriptionPlan, values_callable=_values, name="subscription_plan"),
        default=SubscriptionPlan.FREE,
        nullable=False,
    )
    status = Column(
        Enum(SubscriptionStatus, values_callable=_values, name="subscription_status"),
        default=SubscriptionStatus.ACTIVE,
        nullable=False,
    )

    # SMS reminder quota
    sms_limit = Column(Integer, default=0, nullable=False)
    sms_used = Column(Integer, default=0, nullable=False)

    # Billing period
    current_period_start = Column(DateTime(timezone=True), nullable=True)
    current_period_end = Column(DateTime(timezone=True), nullable=True)
    cancel_at_period_end = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Subscription(user_id={self.user_id}, plan='{self.plan.value}', status='{self.status.value}')>"
