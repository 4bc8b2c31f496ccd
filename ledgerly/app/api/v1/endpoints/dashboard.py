"""
Dashboard API Endpoints.
"""

from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from ledgerly.app.db.session import get_db
from ledgerly.app.core.config import settings
from ledgerly.app.core.dependencies import get_current_user
from ledgerly.app.schemas.dashboard import DashboardStats, ActivityItem, OverdueCustomer, OverdueResponse
from ledgerly.app.services.dashboard import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    stats = await DashboardService.get_stats(db, current_user["user_id"])
    return DashboardStats(**stats)


@router.get("/activity", response_model=List[ActivityItem])
async def get_recent_activity(
    limit: int = Query(settings.activity_default_limit),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Most recent transactions. 400 when limit is outside 1..50."""
    activity = await DashboardService.get_recent_activity(db, current_user["user_id"], limit)
    return [ActivityItem(**item) for item in activity]


@router.get("/overdue", response_model=OverdueResponse)
async def get_overdue(
    days: int = Query(30, ge=1, le=3650),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    customers = await DashboardService.get_overdue_customers(db, current_user["user_id"], days)
    return OverdueResponse(customers=[OverdueCustomer(**c) for c in customers])
