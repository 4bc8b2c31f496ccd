"""
Transaction Service.

Debts and payments recorded against a merchant's customers.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerly.app.core.config import settings
from ledgerly.app.core.exceptions import ResourceNotFoundError
from ledgerly.app.models.customer import Customer
from ledgerly.app.models.transaction import Transaction
from ledgerly.app.schemas.transaction import TransactionCreate
from ledgerly.app.services.customers import CustomerService

logger = logging.getLogger(__name__)

# Request field -> column
_UPDATABLE = {
    "customer_id": "customer_id",
    "type": "type",
    "amount": "amount",
    "note": "description",
    "date": "transaction_date",
}


def _to_dict(transaction: Transaction, customer_name: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": transaction.id,
        "customer_id": transaction.customer_id,
        "type": transaction.type,
        "amount": transaction.amount,
        "description": transaction.description,
        "transaction_date": transaction.transaction_date,
        "created_at": transaction.created_at,
        "customer_name": customer_name,
    }


class TransactionService:

    @staticmethod
    async def get_transactions(
        db: AsyncSession,
        user_id: int,
        customer_id: Optional[int] = None,
        limit: int = settings.transactions_default_limit,
        offset: int = 0,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """Transactions with their customer's name, newest first."""
        query = (
            select(Transaction, Customer.name)
            .join(Customer, Customer.id == Transaction.customer_id)
            .where(Transaction.user_id == user_id)
        )
        if customer_id is not None:
            query = query.where(Transaction.customer_id == customer_id)
        if start is not None:
            query = query.where(Transaction.transaction_date >= start)
        if end is not None:
            query = query.where(Transaction.transaction_date <= end)

        query = (
            query.order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await db.execute(query)
        return [_to_dict(txn, name) for txn, name in result.all()]

    @staticmethod
    async def get_owned_transaction(db: AsyncSession, user_id: int, transaction_id: int) -> Transaction:
        result = await db.execute(
            select(Transaction).where(Transaction.id == transaction_id, Transaction.user_id == user_id)
        )
        transaction = result.scalar_one_or_none()
        if not transaction:
            raise ResourceNotFoundError("Transaction", transaction_id)
        return transaction

    @staticmethod
    async def get_transaction(db: AsyncSession, user_id: int, transaction_id: int) -> Dict[str, Any]:
        result = await db.execute(
            select(Transaction, Customer.name)
            .join(Customer, Customer.id == Transaction.customer_id)
            .where(Transaction.id == transaction_id, Transaction.user_id == user_id)
        )
        row = result.first()
        if row is None:
            raise ResourceNotFoundError("Transaction", transaction_id)
        return _to_dict(*row)

    @staticmethod
    async def create_transaction(db: AsyncSession, user_id: int, data: TransactionCreate) -> Dict[str, Any]:
        """
        Record a debt or payment.

        Raises:
            ResourceNotFoundError: the customer is missing or belongs to another user
        """
        customer = await CustomerService.get_owned_customer(db, user_id, data.customer_id)

        transaction = Transaction(
            user_id=user_id,
            customer_id=customer.id,
            type=data.type,
            amount=data.amount,
            description=data.note,
            transaction_date=data.date or datetime.now(timezone.utc),
        )
        db.add(transaction)
        await db.commit()
        await db.refresh(transaction)

        return _to_dict(transaction, customer.name)

    @staticmethod
    async def update_transaction(
        db: AsyncSession,
        user_id: int,
        transaction_id: int,
        changes: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Partial update. Moving to another customer requires owning it."""
        transaction = await TransactionService.get_owned_transaction(db, user_id, transaction_id)

        new_customer_id = changes.get("customer_id")
        if new_customer_id is not None and new_customer_id != transaction.customer_id:
            await CustomerService.get_owned_customer(db, user_id, new_customer_id)

        for field, column in _UPDATABLE.items():
            if field not in changes:
                continue
            value = changes[field]
            # Only the note may be cleared
            if value is None and field != "note":
                continue
            setattr(transaction, column, value)

        await db.commit()
        return await TransactionService.get_transaction(db, user_id, transaction_id)

    @staticmethod
    async def delete_transaction(db: AsyncSession, user_id: int, transaction_id: int) -> None:
        result = await db.execute(
            delete(Transaction).where(Transaction.id == transaction_id, Transaction.user_id == user_id)
        )
        if result.rowcount == 0:
            await db.rollback()
            raise ResourceNotFoundError("Transaction", transaction_id)
        await db.commit()
