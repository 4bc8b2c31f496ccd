"""
Customer API Endpoints.

Customer directory with balances. Ownership is part of every query, so
another merchant's customer id answers 404 exactly like a missing one.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from ledgerly.app.db.session import get_db
from ledgerly.app.core.dependencies import get_current_user
from ledgerly.app.schemas.customer import (
    CustomerCreate, CustomerUpdate, CustomerDelete, CustomerResponse,
    CustomerEnvelope, CustomerListResponse, CustomerQuota
)
from ledgerly.app.schemas.transaction import TransactionResponse, TransactionListResponse
from ledgerly.app.services.customers import CustomerService
from ledgerly.app.services.subscriptions import SubscriptionService

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    include_archived: bool = Query(False, alias="includeArchived"),
    search: Optional[str] = Query(None, max_length=100),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List the merchant's customers with balances, newest first.

    Also reports plan usage: the limit counts active (non-archived) customers.
    """
    user_id = current_user["user_id"]

    customers = await CustomerService.get_customers(db, user_id, include_archived, search)
    total = await CustomerService.count_customers(db, user_id, include_archived=True)
    used = await CustomerService.count_customers(db, user_id)

    subscription = await SubscriptionService.get_subscription(db, user_id)
    limit = await SubscriptionService.get_plan_customer_limit(db, subscription.plan)

    return CustomerListResponse(
        customers=[CustomerResponse.model_validate(c) for c in customers],
        total_count=total,
        subscription=CustomerQuota(
            plan=subscription.plan.value,
            customer_limit=limit,
            customers_used=used,
            customers_remaining=None if limit is None else max(limit - used, 0),
        ),
    )


@router.post("", response_model=CustomerEnvelope, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_data: CustomerCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a customer. 403 once the plan's customer limit is reached."""
    customer = await CustomerService.create_customer(db, current_user["user_id"], customer_data)
    return CustomerEnvelope(customer=CustomerResponse.model_validate(customer))


@router.patch("", response_model=CustomerEnvelope)
async def update_customer(
    customer_data: CustomerUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    customer = await CustomerService.update_customer(
        db, current_user["user_id"], customer_data.customer_id, customer_data.changes()
    )
    return CustomerEnvelope(customer=CustomerResponse.model_validate(customer))


@router.delete("")
async def delete_customer(
    delete_data: CustomerDelete,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Archive a customer, or remove it with its transactions when hardDelete is set.
    """
    if delete_data.hard_delete:
        await CustomerService.delete_customer(
            db, current_user["user_id"], delete_data.customer_id, current_user.get("sub")
        )
    else:
        await CustomerService.archive_customer(
            db, current_user["user_id"], delete_data.customer_id, current_user.get("sub")
        )
    return {"success": True}


@router.get("/{customer_id}", response_model=CustomerEnvelope)
async def get_customer(
    customer_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    customer = await CustomerService.get_customer(db, current_user["user_id"], customer_id)
    return CustomerEnvelope(customer=CustomerResponse.model_validate(customer))


@router.get("/{customer_id}/transactions", response_model=TransactionListResponse)
async def get_customer_transactions(
    customer_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Full history of one customer, newest first."""
    transactions = await CustomerService.get_customer_transactions(db, current_user["user_id"], customer_id)
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t) for t in transactions]
    )


@router.post("/{customer_id}/restore", response_model=CustomerEnvelope)
async def restore_customer(
    customer_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    customer = await CustomerService.restore_customer(db, current_user["user_id"], customer_id)
    return CustomerEnvelope(customer=CustomerResponse.model_validate(customer))
