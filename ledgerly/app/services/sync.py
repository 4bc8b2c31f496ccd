"""
Offline Sync Queue Service.

Clients record mutations while offline and upload them here. Processing
replays a user's pending items in (client_timestamp, id) order through
the customer and transaction services.

Item lifecycle:
    pending -> syncing -> synced
    pending -> syncing -> pending (retry) ... -> failed (max_retries reached)
    syncing -> pending (run interrupted; requeued by the next run)

A create may carry a client-side "temp_id". Once the create is applied
its server id is stored back in the item payload ("server_id"), and any
later item referencing the temp id as customer_id / transaction_id is
rewritten to the server id.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerly.app.core.config import settings
from ledgerly.app.core.exceptions import InvalidRequestError
from ledgerly.app.models.enums import SyncActionType, SyncStatus
from ledgerly.app.models.sync_queue import SyncQueueItem
from ledgerly.app.schemas.customer import CustomerCreate, CustomerUpdate
from ledgerly.app.schemas.sync import SyncItemCreate
from ledgerly.app.schemas.transaction import TransactionCreate, TransactionUpdate
from ledgerly.app.services.customers import CustomerService
from ledgerly.app.services.transactions import TransactionService

logger = logging.getLogger(__name__)

_CREATE_ACTIONS = (SyncActionType.CREATE_CUSTOMER.value, SyncActionType.CREATE_TRANSACTION.value)

# One processor per user at a time (per worker process)
_user_locks: Dict[int, asyncio.Lock] = {}


def _lock_for(user_id: int) -> asyncio.Lock:
    lock = _user_locks.get(user_id)
    if lock is None:
        lock = _user_locks[user_id] = asyncio.Lock()
    return lock


def _resolve_id(value: Any, id_map: Dict[str, int], field: str) -> int:
    """Server id for a payload reference that may be a temp id."""
    if value is None:
        raise InvalidRequestError(f"Missing {field} in sync payload.")
    if str(value) in id_map:
        return id_map[str(value)]
    if isinstance(value, bool):
        raise InvalidRequestError(f"Invalid {field} in sync payload.")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidRequestError(f"Unknown temporary id '{value}' for {field}.")


def _error_text(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc) or exc.__class__.__name__


class SyncQueueService:

    @staticmethod
    async def enqueue(db: AsyncSession, user_id: int, items: List[SyncItemCreate]) -> List[SyncQueueItem]:
        """Store uploaded mutations as pending items."""
        rows = [
            SyncQueueItem(
                user_id=user_id,
                action_type=item.action_type,
                payload=item.payload,
                status=SyncStatus.PENDING,
                retry_count=0,
                max_retries=item.max_retries or settings.sync_max_retries,
                client_timestamp=item.client_timestamp,
            )
            for item in items
        ]
        db.add_all(rows)
        await db.commit()
        for row in rows:
            await db.refresh(row)

        logger.info("Queued %s sync items for user %s", len(rows), user_id)
        return rows

    @staticmethod
    async def _known_temp_ids(db: AsyncSession, user_id: int) -> Dict[str, int]:
        """temp_id -> server id from creates applied in earlier runs."""
        result = await db.execute(
            select(SyncQueueItem.payload).where(
                SyncQueueItem.user_id == user_id,
                SyncQueueItem.status == SyncStatus.SYNCED,
                SyncQueueItem.action_type.in_(_CREATE_ACTIONS),
            )
        )
        id_map = {}
        for payload in result.scalars().all():
            if payload and payload.get("temp_id") is not None and payload.get("server_id") is not None:
                id_map[str(payload["temp_id"])] = payload["server_id"]
        return id_map

    @staticmethod
    async def _dispatch(
        db: AsyncSession,
        user_id: int,
        item: SyncQueueItem,
        id_map: Dict[str, int]
    ) -> Optional[int]:
        """
        Apply one item. Returns the server id created by a create action.

        Raises whatever the target service raises; the caller records it.
        """
        if not item.known_action:
            raise InvalidRequestError(f"Unknown sync action '{item.action_type}'.")

        action = SyncActionType(item.action_type)
        payload = dict(item.payload or {})

        if action == SyncActionType.CREATE_CUSTOMER:
            customer = await CustomerService.create_customer(db, user_id, CustomerCreate.model_validate(payload))
            return customer["id"]

        if action == SyncActionType.UPDATE_CUSTOMER:
            payload["customer_id"] = _resolve_id(payload.get("customer_id"), id_map, "customer_id")
            data = CustomerUpdate.model_validate(payload)
            await CustomerService.update_customer(db, user_id, data.customer_id, data.changes())
            return None

        if action == SyncActionType.DELETE_CUSTOMER:
            customer_id = _resolve_id(payload.get("customer_id"), id_map, "customer_id")
            await CustomerService.archive_customer(db, user_id, customer_id)
            return None

        if action == SyncActionType.CREATE_TRANSACTION:
            payload["customer_id"] = _resolve_id(payload.get("customer_id"), id_map, "customer_id")
            transaction = await TransactionService.create_transaction(
                db, user_id, TransactionCreate.model_validate(payload)
            )
            return transaction["id"]

        if action == SyncActionType.UPDATE_TRANSACTION:
            payload["transaction_id"] = _resolve_id(payload.get("transaction_id"), id_map, "transaction_id")
            if payload.get("customer_id") is not None:
                payload["customer_id"] = _resolve_id(payload["customer_id"], id_map, "customer_id")
            data = TransactionUpdate.model_validate(payload)
            await TransactionService.update_transaction(db, user_id, data.transaction_id, data.changes())
            return None

        transaction_id = _resolve_id(payload.get("transaction_id"), id_map, "transaction_id")
        await TransactionService.delete_transaction(db, user_id, transaction_id)
        return None

    @staticmethod
    async def _record_failure(db: AsyncSession, item: SyncQueueItem, exc: Exception) -> str:
        await db.rollback()
        await db.refresh(item)

        error = _error_text(exc)
        item.retry_count = item.retry_count + 1
        item.error_message = error[:1000]
        item.status = SyncStatus.FAILED if item.retry_count >= item.max_retries else SyncStatus.PENDING
        await db.commit()

        logger.warning(
            "Sync item %s (%s) failed attempt %s/%s: %s",
            item.id, item.action_type, item.retry_count, item.max_retries, error,
        )
        return error

    @staticmethod
    async def process_queue(db: AsyncSession, user_id: int) -> Dict[str, Any]:
        """
        Replay the user's pending items once.

        A failing item is retried on a later run and never stops the rest of
        the batch. Concurrent runs for the same user are serialized, and
        synced items are never picked up again.
        """
        async with _lock_for(user_id):
            # Nothing else is processing this user's queue, so a syncing item
            # belongs to a run that died mid-item
            stale = await db.execute(
                update(SyncQueueItem)
                .where(SyncQueueItem.user_id == user_id, SyncQueueItem.status == SyncStatus.SYNCING)
                .values(status=SyncStatus.PENDING)
            )
            await db.commit()
            if stale.rowcount:
                logger.warning("Requeued %s interrupted sync items for user %s", stale.rowcount, user_id)

            result = await db.execute(
                select(SyncQueueItem)
                .where(SyncQueueItem.user_id == user_id, SyncQueueItem.status == SyncStatus.PENDING)
                .order_by(SyncQueueItem.client_timestamp, SyncQueueItem.id)
            )
            items = result.scalars().all()

            id_map = await SyncQueueService._known_temp_ids(db, user_id)
            new_ids: Dict[str, int] = {}
            processed = 0
            errors: List[Tuple[int, str]] = []

            for item in items:
                # A rollback after an earlier failure expires every loaded row
                await db.refresh(item)
                if item.status != SyncStatus.PENDING:
                    continue
                item.status = SyncStatus.SYNCING
                await db.commit()

                try:
                    server_id = await SyncQueueService._dispatch(db, user_id, item, id_map)
                except Exception as exc:
                    errors.append((item.id, await SyncQueueService._record_failure(db, item, exc)))
                    continue

                temp_id = (item.payload or {}).get("temp_id")
                if server_id is not None and temp_id is not None:
                    id_map[str(temp_id)] = server_id
                    new_ids[str(temp_id)] = server_id
                    item.payload = {**item.payload, "server_id": server_id}

                item.status = SyncStatus.SYNCED
                item.synced_at = datetime.now(timezone.utc)
                item.error_message = None
                await db.commit()
                processed += 1

        if items:
            logger.info(
                "Sync run for user %s: %s synced, %s failed", user_id, processed, len(errors)
            )

        return {
            "success": not errors,
            "processed_count": processed,
            "failed_count": len(errors),
            "errors": [{"item_id": item_id, "error": error} for item_id, error in errors],
            "id_map": new_ids,
        }

    @staticmethod
    async def get_status(db: AsyncSession, user_id: int) -> Dict[str, Any]:
        result = await db.execute(
            select(SyncQueueItem.status, func.count(SyncQueueItem.id))
            .where(SyncQueueItem.user_id == user_id)
            .group_by(SyncQueueItem.status)
        )
        counts = {status: count for status, count in result.all()}

        oldest = await db.execute(
            select(func.min(SyncQueueItem.client_timestamp)).where(
                SyncQueueItem.user_id == user_id,
                SyncQueueItem.status == SyncStatus.PENDING,
            )
        )

        return {
            "pending_count": counts.get(SyncStatus.PENDING, 0),
            "syncing_count": counts.get(SyncStatus.SYNCING, 0),
            "failed_count": counts.get(SyncStatus.FAILED, 0),
            "synced_count": counts.get(SyncStatus.SYNCED, 0),
            "oldest_pending_at": oldest.scalar(),
        }

    @staticmethod
    async def retry_failed(db: AsyncSession, user_id: int) -> int:
        """Put failed items back in the queue with a fresh retry budget."""
        result = await db.execute(
            update(SyncQueueItem)
            .where(SyncQueueItem.user_id == user_id, SyncQueueItem.status == SyncStatus.FAILED)
            .values(status=SyncStatus.PENDING, retry_count=0, error_message=None)
        )
        await db.commit()
        return result.rowcount

    @staticmethod
    async def clear_synced(db: AsyncSession, user_id: int) -> int:
        result = await db.execute(
            delete(SyncQueueItem).where(
                SyncQueueItem.user_id == user_id,
                SyncQueueItem.status == SyncStatus.SYNCED,
            )
        )
        await db.commit()
        return result.rowcount
