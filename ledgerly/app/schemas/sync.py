"""
Offline sync queue schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional
from ledgerly.app.models.enums import SyncStatus


class SyncItemCreate(BaseModel):
    """
    One mutation recorded by the client while offline.

    action_type is kept as free text: an unknown action is accepted into
    the queue and fails there, so the client sees it in the sync status.
    """
    action_type: str = Field(..., min_length=1, max_length=50)
    payload: Dict[str, Any]
    client_timestamp: datetime
    max_retries: Optional[int] = Field(None, ge=1, le=10)


class SyncEnqueueRequest(BaseModel):
    items: List[SyncItemCreate] = Field(..., min_length=1, max_length=500)


class SyncItemResponse(BaseModel):
    id: int
    action_type: str
    payload: Dict[str, Any]
    status: SyncStatus
    retry_count: int
    max_retries: int
    error_message: Optional[str]
    client_timestamp: datetime
    created_at: datetime
    synced_at: Optional[datetime]

    class Config:
        from_attributes = True


class SyncEnqueueResponse(BaseModel):
    items: List[SyncItemResponse]


class SyncError(BaseModel):
    item_id: int = Field(..., alias="itemId")
    error: str

    class Config:
        populate_by_name = True


class SyncResultResponse(BaseModel):
    """Outcome of one processing run."""
    success: bool
    processed_count: int = Field(..., alias="processedCount")
    failed_count: int = Field(..., alias="failedCount")
    errors: List[SyncError]
    id_map: Dict[str, int] = Field(default_factory=dict, alias="idMap", description="Client temp id -> server id")

    class Config:
        populate_by_name = True


class SyncStatusResponse(BaseModel):
    """Counters behind the sync status indicator."""
    pending_count: int = Field(..., alias="pendingCount")
    syncing_count: int = Field(..., alias="syncingCount")
    failed_count: int = Field(..., alias="failedCount")
    synced_count: int = Field(..., alias="syncedCount")
    oldest_pending_at: Optional[datetime] = Field(None, alias="oldestPendingAt")

    class Config:
        populate_by_name = True
