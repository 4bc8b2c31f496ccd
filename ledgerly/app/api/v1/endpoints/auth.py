"""
Authentication API endpoints.

Provides register, login, logout and user info endpoints for the web client.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from ledgerly.app.db.session import get_db
from ledgerly.app.models.user import User
from ledgerly.app.schemas.auth import UserRegister, UserLogin, TokenResponse, UserResponse
from ledgerly.app.core.security import get_password_hash, verify_password
from ledgerly.app.core.jwt import create_access_token
from ledgerly.app.core.dependencies import get_current_user, get_bearer_token
from ledgerly.app.core.exceptions import AuthenticationError
from ledgerly.app.core.token_revocation import revoke_token
from ledgerly.app.services.audit import log_event, AuditAction
from ledgerly.app.services.subscriptions import SubscriptionService
from ledgerly.app.services.user_profiles import UserProfileService

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _client_ip(request: Request):
    return request.client.host if request.client else None


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new merchant.

    Creates the user with an empty profile and a free subscription.
    """
    email = user_data.email.lower()

    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered"
        )

    new_user = User(
        email=email,
        hashed_password=get_password_hash(user_data.password),
        full_name=user_data.full_name,
        is_active=True,
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    await UserProfileService.get_profile(db, new_user.id)
    if user_data.full_name:
        await UserProfileService.update_profile(db, new_user.id, {"full_name": user_data.full_name})
    await SubscriptionService.get_subscription(db, new_user.id)

    await log_event(
        db=db,
        action=AuditAction.USER_REGISTERED,
        actor_id=new_user.id,
        actor_email=new_user.email,
        ip_address=_client_ip(request),
    )

    access_token = create_access_token(data={"sub": new_user.email, "user_id": new_user.id})

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=new_user.id,
        email=new_user.email
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    Logs successful and failed login attempts for security monitoring.
    """
    email = credentials.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        await log_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            actor_id=user.id if user else None,
            actor_email=email,
            metadata={"reason": "Invalid password" if user else "User not found"},
            ip_address=_client_ip(request),
        )
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        await log_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            actor_id=user.id,
            actor_email=user.email,
            metadata={"reason": "Account is inactive"},
            ip_address=_client_ip(request),
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    access_token = create_access_token(data={"sub": user.email, "user_id": user.id})

    await log_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        actor_id=user.id,
        actor_email=user.email,
        ip_address=_client_ip(request),
    )

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=user.id,
        email=user.email
    )


@router.post("/logout")
async def logout(
    current_user: dict = Depends(get_current_user),
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db)
):
    """Revoke the presented token until it would have expired."""
    await revoke_token(token, current_user["user_id"])
    await log_event(
        db=db,
        action=AuditAction.LOGOUT,
        actor_id=current_user["user_id"],
        actor_email=current_user.get("sub"),
    )
    return {"success": True}


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user information.

    Requires valid JWT token in Authorization header.
    """
    result = await db.execute(select(User).where(User.id == current_user["user_id"]))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return UserResponse.model_validate(user)
