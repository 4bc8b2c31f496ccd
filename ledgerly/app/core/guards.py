"""
Plan guards for subscription-based access control.

Provides dependencies for protecting endpoints behind plan features.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from ledgerly.app.core.dependencies import get_current_user
from ledgerly.app.core.exceptions import FeatureNotAvailableError
from ledgerly.app.db.session import get_db
from ledgerly.app.services.subscriptions import SubscriptionService, minimum_plan_for


def require_feature(feature: str):
    """
    Dependency factory for feature-based access control.

    Usage:
        @router.post("/export")
        async def export(current_user: dict = Depends(require_feature("dataExport"))):
            ...

    Args:
        feature: Key of the plan feature table (e.g. "dataExport")

    Returns:
        FastAPI dependency function that validates the user's plan

    Raises:
        FeatureNotAvailableError 403 if the plan does not include the feature
    """
    async def feature_checker(
        current_user: dict = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
    ) -> dict:
        if not await SubscriptionService.has_feature(db, current_user["user_id"], feature):
            upgrade = minimum_plan_for(feature)
            raise FeatureNotAvailableError(feature, upgrade.value if upgrade else None)

        return current_user

    return feature_checker
