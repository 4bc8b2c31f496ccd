"""
User profile service.
"""

from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerly.app.core.config import settings
from ledgerly.app.models.user_profile import UserProfile


class UserProfileService:

    @staticmethod
    async def get_profile(db: AsyncSession, user_id: int) -> UserProfile:
        """Get the user's profile, creating it with defaults on first access."""
        result = await db.execute(select(UserProfile).where(UserProfile.id == user_id))
        profile = result.scalar_one_or_none()
        if profile:
            return profile

        profile = UserProfile(
            id=user_id,
            currency=settings.default_currency,
            language=settings.default_language,
            onboarding_completed=False,
        )
        db.add(profile)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            result = await db.execute(select(UserProfile).where(UserProfile.id == user_id))
            return result.scalar_one()

        await db.refresh(profile)
        return profile

    @staticmethod
    async def update_profile(db: AsyncSession, user_id: int, changes: Dict[str, Any]) -> UserProfile:
        profile = await UserProfileService.get_profile(db, user_id)

        for field, value in changes.items():
            # currency and language are NOT NULL
            if value is None and field in ("currency", "language", "onboarding_completed"):
                continue
            setattr(profile, field, value)

        await db.commit()
        await db.refresh(profile)
        return profile

    @staticmethod
    async def get_currency(db: AsyncSession, user_id: int) -> str:
        """Profile currency without creating a profile."""
        result = await db.execute(select(UserProfile.currency).where(UserProfile.id == user_id))
        return result.scalar_one_or_none() or settings.default_currency

    @staticmethod
    async def get_language(db: AsyncSession, user_id: int) -> str:
        result = await db.execute(select(UserProfile.language).where(UserProfile.id == user_id))
        return result.scalar_one_or_none() or settings.default_language
