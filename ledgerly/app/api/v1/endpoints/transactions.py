"""
Transaction API Endpoints.

Record, edit and remove debts and payments.
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from ledgerly.app.db.session import get_db
from ledgerly.app.core.config import settings
from ledgerly.app.core.dependencies import get_current_user
from ledgerly.app.schemas.transaction import (
    TransactionCreate, TransactionUpdate, TransactionDelete,
    TransactionResponse, TransactionEnvelope, TransactionListResponse
)
from ledgerly.app.services.transactions import TransactionService

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    customer_id: Optional[int] = Query(None, alias="customerId"),
    limit: int = Query(settings.transactions_default_limit, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    start: Optional[datetime] = Query(None, description="Earliest transaction date"),
    end: Optional[datetime] = Query(None, description="Latest transaction date"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List transactions newest first, optionally for one customer."""
    transactions = await TransactionService.get_transactions(
        db, current_user["user_id"], customer_id, limit, offset, start, end
    )
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t) for t in transactions]
    )


@router.post("", response_model=TransactionEnvelope, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    transaction_data: TransactionCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record a debt or payment. 404 when the customer is not the merchant's."""
    transaction = await TransactionService.create_transaction(db, current_user["user_id"], transaction_data)
    return TransactionEnvelope(transaction=TransactionResponse.model_validate(transaction))


@router.patch("", response_model=TransactionEnvelope)
async def update_transaction(
    transaction_data: TransactionUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    transaction = await TransactionService.update_transaction(
        db, current_user["user_id"], transaction_data.transaction_id, transaction_data.changes()
    )
    return TransactionEnvelope(transaction=TransactionResponse.model_validate(transaction))


@router.delete("")
async def delete_transaction(
    delete_data: TransactionDelete,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await TransactionService.delete_transaction(db, current_user["user_id"], delete_data.transaction_id)
    return {"success": True}


@router.get("/{transaction_id}", response_model=TransactionEnvelope)
async def get_transaction(
    transaction_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    transaction = await TransactionService.get_transaction(db, current_user["user_id"], transaction_id)
    return TransactionEnvelope(transaction=TransactionResponse.model_validate(transaction))
