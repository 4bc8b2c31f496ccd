"""
Sync Queue Model.

Stores mutations a client made while offline until the server replays them.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, Enum, ForeignKey
from sqlalchemy.sql import func
from ledgerly.app.db.session import Base
from ledgerly.app.models.enums import SyncStatus, SyncActionType


class SyncQueueItem(Base):
    """
    Sync queue table.

    Items are replayed per user in (client_timestamp, id) order.
    retry_count grows on every failed attempt; once it reaches
    max_retries the item is parked as FAILED.
    """
    __tablename__ = "sync_queue"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    action_type = Column(String(50), nullable=False)
    payload = Column(JSON, nullable=False)

    status = Column(
        Enum(SyncStatus, values_callable=lambda e: [m.value for m in e], name="sync_status"),
        default=SyncStatus.PENDING,
        nullable=False,
        index=True,
    )
    retry_count = Column(Integer, default=0, nullable=False)
    max_retries = Column(Integer, default=3, nullable=False)
    error_message = Column(Text, nullable=True)

    # When the mutation happened on the device, drives replay order
    client_timestamp = Column(DateTime(timezone=True), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    synced_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def known_action(self) -> bool:
        return self.action_type in {a.value for a in SyncActionType}

    def __repr__(self):
        return f"<SyncQueueItem(id={self.id}, action='{self.action_type}', status='{self.status}')>"
