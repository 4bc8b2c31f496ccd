"""
Customer Service.

Customer directory of a merchant. Every query carries the owner's
user_id in its predicate, so a foreign id behaves exactly like a missing
one ("Customer not found or access denied.").

Balances are never stored: they are aggregated from the customer's
transactions by customer_balances_query.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func, case, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerly.app.core.exceptions import ResourceNotFoundError, CustomerLimitExceededError
from ledgerly.app.models.customer import Customer
from ledgerly.app.models.enums import TransactionType
from ledgerly.app.models.transaction import Transaction
from ledgerly.app.schemas.customer import CustomerCreate
from ledgerly.app.services.audit import log_event, AuditAction
from ledgerly.app.services.custom_fields import CustomFieldService
from ledgerly.app.services.subscriptions import SubscriptionService, minimum_plan_for_customers

logger = logging.getLogger(__name__)


def _transaction_totals(user_id: int):
    """Per-customer balance, count and last transaction date."""
    signed_amount = case(
        (Transaction.type == TransactionType.DEBT, Transaction.amount),
        else_=-Transaction.amount,
    )
    return (
        select(
            Transaction.customer_id.label("customer_id"),
            func.sum(signed_amount).label("balance"),
            func.count(Transaction.id).label("transaction_count"),
            func.max(Transaction.transaction_date).label("last_transaction_date"),
        )
        .where(Transaction.user_id == user_id)
        .group_by(Transaction.customer_id)
        .subquery()
    )


def customer_balances_query(user_id: int, include_archived: bool = False):
    """
    Customers of a user joined with their transaction totals.

    Rows are (Customer, balance, transaction_count, last_transaction_date);
    customers without transactions get balance 0.
    """
    totals = _transaction_totals(user_id)
    query = (
        select(
            Customer,
            func.coalesce(totals.c.balance, 0),
            func.coalesce(totals.c.transaction_count, 0),
            totals.c.last_transaction_date,
        )
        .outerjoin(totals, totals.c.customer_id == Customer.id)
        .where(Customer.user_id == user_id)
    )
    if not include_archived:
        query = query.where(Customer.is_deleted == False)  # noqa: E712
    return query


def _to_balance(customer: Customer, balance: Any = 0, transaction_count: int = 0, last_transaction_date=None) -> Dict[str, Any]:
    return {
        "id": customer.id,
        "user_id": customer.user_id,
        "name": customer.name,
        "phone": customer.phone,
        "address": customer.address,
        "notes": customer.notes,
        "custom_fields": customer.custom_fields or {},
        "is_deleted": customer.is_deleted,
        "balance": round(float(balance or 0), 2),
        "transaction_count": int(transaction_count or 0),
        "last_transaction_date": last_transaction_date,
        "created_at": customer.created_at,
    }


class CustomerService:

    @staticmethod
    async def get_customers(
        db: AsyncSession,
        user_id: int,
        include_archived: bool = False,
        search: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """List customers with balances, newest first."""
        query = customer_balances_query(user_id, include_archived)

        if search and search.strip():
            term = search.strip().lower()
            query = query.where(
                or_(
                    func.lower(Customer.name).contains(term, autoescape=True),
                    func.lower(Customer.phone).contains(term, autoescape=True),
                )
            )

        query = query.order_by(Customer.created_at.desc(), Customer.id.desc())
        result = await db.execute(query)
        return [_to_balance(*row) for row in result.all()]

    @staticmethod
    async def get_customer(db: AsyncSession, user_id: int, customer_id: int) -> Dict[str, Any]:
        """Customer with balance, archived ones included."""
        result = await db.execute(
            customer_balances_query(user_id, include_archived=True).where(Customer.id == customer_id)
        )
        row = result.first()
        if row is None:
            raise ResourceNotFoundError("Customer", customer_id)
        return _to_balance(*row)

    @staticmethod
    async def get_owned_customer(db: AsyncSession, user_id: int, customer_id: int) -> Customer:
        """Customer row owned by the user, or 404."""
        result = await db.execute(
            select(Customer).where(Customer.id == customer_id, Customer.user_id == user_id)
        )
        customer = result.scalar_one_or_none()
        if not customer:
            raise ResourceNotFoundError("Customer", customer_id)
        return customer

    @staticmethod
    async def count_customers(db: AsyncSession, user_id: int, include_archived: bool = False) -> int:
        query = select(func.count(Customer.id)).where(Customer.user_id == user_id)
        if not include_archived:
            query = query.where(Customer.is_deleted == False)  # noqa: E712
        result = await db.execute(query)
        return result.scalar() or 0

    @staticmethod
    async def ensure_customer_capacity(db: AsyncSession, user_id: int) -> None:
        """
        Check that one more active customer fits the user's plan.

        Raises:
            CustomerLimitExceededError: the plan's limit of active customers is reached
        """
        subscription = await SubscriptionService.get_subscription(db, user_id)
        limit = await SubscriptionService.get_plan_customer_limit(db, subscription.plan)
        if limit is None:
            return

        used = await CustomerService.count_customers(db, user_id)
        if used >= limit:
            logger.info("User %s hit customer limit %s on plan %s", user_id, limit, subscription.plan.value)
            upgrade = minimum_plan_for_customers(subscription.plan, used + 1)
            raise CustomerLimitExceededError(
                subscription.plan.value, limit, used, upgrade.value if upgrade else None
            )

    @staticmethod
    async def create_customer(db: AsyncSession, user_id: int, data: CustomerCreate) -> Dict[str, Any]:
        """
        Create a customer for the user.

        Raises:
            CustomerLimitExceededError: the plan's limit of active customers is reached
            FeatureNotAvailableError: custom field values on a plan without them
            InvalidRequestError: custom field values that fail their definitions
        """
        await CustomerService.ensure_customer_capacity(db, user_id)
        custom_fields = await CustomFieldService.check_customer_values(db, user_id, data.custom_fields)

        customer = Customer(
            user_id=user_id,
            name=data.name,
            phone=data.phone,
            address=data.address,
            notes=data.notes,
            custom_fields=custom_fields,
            is_deleted=False,
        )
        db.add(customer)
        await db.commit()
        await db.refresh(customer)

        return _to_balance(customer)

    @staticmethod
    async def update_customer(
        db: AsyncSession,
        user_id: int,
        customer_id: int,
        changes: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Apply a partial update; unknown keys are ignored."""
        customer = await CustomerService.get_owned_customer(db, user_id, customer_id)

        if "custom_fields" in changes:
            # null clears the values
            customer.custom_fields = await CustomFieldService.check_customer_values(
                db, user_id, changes["custom_fields"]
            )

        for field in ("name", "phone", "address", "notes"):
            if field in changes:
                setattr(customer, field, changes[field])

        await db.commit()
        return await CustomerService.get_customer(db, user_id, customer_id)

    @staticmethod
    async def archive_customer(
        db: AsyncSession,
        user_id: int,
        customer_id: int,
        actor_email: Optional[str] = None
    ) -> Customer:
        """Soft delete. Archiving an archived customer is a no-op."""
        customer = await CustomerService.get_owned_customer(db, user_id, customer_id)
        if customer.is_deleted:
            return customer

        customer.is_deleted = True
        await db.commit()
        await db.refresh(customer)

        await log_event(
            db=db,
            action=AuditAction.CUSTOMER_ARCHIVED,
            actor_id=user_id,
            actor_email=actor_email,
            metadata={"customer_id": customer_id},
        )
        return customer

    @staticmethod
    async def restore_customer(db: AsyncSession, user_id: int, customer_id: int) -> Dict[str, Any]:
        """Undo an archive. A restored customer counts against the plan limit again."""
        customer = await CustomerService.get_owned_customer(db, user_id, customer_id)
        if customer.is_deleted:
            await CustomerService.ensure_customer_capacity(db, user_id)
            customer.is_deleted = False
            await db.commit()
        return await CustomerService.get_customer(db, user_id, customer_id)

    @staticmethod
    async def delete_customer(
        db: AsyncSession,
        user_id: int,
        customer_id: int,
        actor_email: Optional[str] = None
    ) -> None:
        """
        Hard delete: the customer's transactions, then the customer.

        Both deletes commit together; on error the session is rolled back
        and nothing is removed.
        """
        customer = await CustomerService.get_owned_customer(db, user_id, customer_id)

        try:
            result = await db.execute(
                delete(Transaction).where(
                    Transaction.customer_id == customer.id,
                    Transaction.user_id == user_id,
                )
            )
            await db.delete(customer)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception("Hard delete of customer %s failed, rolled back", customer_id)
            raise

        logger.info("User %s deleted customer %s with %s transactions", user_id, customer_id, result.rowcount)
        await log_event(
            db=db,
            action=AuditAction.CUSTOMER_DELETED,
            actor_id=user_id,
            actor_email=actor_email,
            metadata={"customer_id": customer_id, "transactions_removed": result.rowcount},
        )

    @staticmethod
    async def get_customer_transactions(db: AsyncSession, user_id: int, customer_id: int) -> List[Transaction]:
        """Transactions of one customer, newest first."""
        await CustomerService.get_owned_customer(db, user_id, customer_id)

        result = await db.execute(
            select(Transaction)
            .where(Transaction.customer_id == customer_id, Transaction.user_id == user_id)
            .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
        )
        return result.scalars().all()
