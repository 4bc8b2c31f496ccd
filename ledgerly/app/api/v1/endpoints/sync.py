"""
Offline Sync API Endpoints.

Clients upload mutations recorded offline, then ask the server to replay
them. Status counters drive the client's sync indicator.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from ledgerly.app.db.session import get_db
from ledgerly.app.core.dependencies import get_current_user
from ledgerly.app.schemas.sync import (
    SyncEnqueueRequest, SyncEnqueueResponse, SyncItemResponse,
    SyncResultResponse, SyncStatusResponse
)
from ledgerly.app.services.sync import SyncQueueService

router = APIRouter(prefix="/sync", tags=["Sync"])


@router.post("/queue", response_model=SyncEnqueueResponse, status_code=status.HTTP_201_CREATED)
async def enqueue(
    request_data: SyncEnqueueRequest,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    items = await SyncQueueService.enqueue(db, current_user["user_id"], request_data.items)
    return SyncEnqueueResponse(items=[SyncItemResponse.model_validate(i) for i in items])


@router.post("/process", response_model=SyncResultResponse)
async def process_queue(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Replay pending items in client order. Failures are reported per item."""
    result = await SyncQueueService.process_queue(db, current_user["user_id"])
    return SyncResultResponse(**result)


@router.get("/status", response_model=SyncStatusResponse)
async def get_status(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    counts = await SyncQueueService.get_status(db, current_user["user_id"])
    return SyncStatusResponse(**counts)


@router.post("/retry")
async def retry_failed(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    count = await SyncQueueService.retry_failed(db, current_user["user_id"])
    return {"success": True, "retried": count}


@router.delete("/synced")
async def clear_synced(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    count = await SyncQueueService.clear_synced(db, current_user["user_id"])
    return {"success": True, "deleted": count}
