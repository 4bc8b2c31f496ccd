"""
User Profile API Endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from ledgerly.app.db.session import get_db
from ledgerly.app.core.dependencies import get_current_user
from ledgerly.app.schemas.user_profile import UserProfileUpdate, UserProfileResponse
from ledgerly.app.services.user_profiles import UserProfileService

router = APIRouter(prefix="/user-profiles", tags=["User Profiles"])


@router.get("", response_model=UserProfileResponse)
async def get_profile(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """The merchant's profile, created with default currency and language on first access."""
    profile = await UserProfileService.get_profile(db, current_user["user_id"])
    return UserProfileResponse.model_validate(profile)


@router.patch("", response_model=UserProfileResponse)
async def update_profile(
    profile_data: UserProfileUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    profile = await UserProfileService.update_profile(
        db, current_user["user_id"], profile_data.model_dump(exclude_unset=True)
    )
    return UserProfileResponse.model_validate(profile)
