"""
Dashboard Service.

Headline numbers, recent activity and overdue debts for the merchant
dashboard. Figures are derived from the same balance aggregation as the
customer list, so both screens always agree.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerly.app.core.config import settings
from ledgerly.app.core.exceptions import InvalidRequestError
from ledgerly.app.models.enums import TransactionType
from ledgerly.app.models.transaction import Transaction
from ledgerly.app.services.customers import CustomerService
from ledgerly.app.services.transactions import TransactionService
from ledgerly.app.services.user_profiles import UserProfileService


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DashboardService:

    @staticmethod
    async def get_stats(db: AsyncSession, user_id: int) -> Dict[str, Any]:
        customers = await CustomerService.get_customers(db, user_id)
        total_debt = sum(c["balance"] for c in customers if c["balance"] > 0)

        collected = await db.execute(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.user_id == user_id,
                Transaction.type == TransactionType.PAYMENT,
            )
        )
        count = await db.execute(
            select(func.count(Transaction.id)).where(Transaction.user_id == user_id)
        )

        return {
            "total_debt": round(total_debt, 2),
            "total_collected": round(float(collected.scalar() or 0), 2),
            "active_customers": len(customers),
            "total_transactions": count.scalar() or 0,
            "currency": await UserProfileService.get_currency(db, user_id),
        }

    @staticmethod
    async def get_recent_activity(
        db: AsyncSession,
        user_id: int,
        limit: int = settings.activity_default_limit
    ) -> List[Dict[str, Any]]:
        """
        Latest transactions with customer names.

        Raises:
            InvalidRequestError: limit outside 1..activity_max_limit
        """
        if limit < 1 or limit > settings.activity_max_limit:
            raise InvalidRequestError(
                f"Invalid limit parameter. Must be between 1 and {settings.activity_max_limit}.",
                details={"limit": limit},
            )

        transactions = await TransactionService.get_transactions(db, user_id, limit=limit)
        return [
            {
                "id": t["id"],
                "customer_id": t["customer_id"],
                "customer_name": t["customer_name"],
                "type": t["type"],
                "amount": t["amount"],
                "date": t["transaction_date"],
            }
            for t in transactions
        ]

    @staticmethod
    async def get_overdue_customers(db: AsyncSession, user_id: int, days: int = 30) -> List[Dict[str, Any]]:
        """Active customers owing money with no transaction in the last `days` days, longest overdue first."""
        now = datetime.now(timezone.utc)
        overdue = []

        for customer in await CustomerService.get_customers(db, user_id):
            last = customer["last_transaction_date"]
            if customer["balance"] <= 0 or last is None:
                continue
            overdue_days = (now - _as_utc(last)).days
            if overdue_days >= days:
                overdue.append({
                    "id": customer["id"],
                    "name": customer["name"],
                    "amount": customer["balance"],
                    "overdue_days": overdue_days,
                })

        overdue.sort(key=lambda c: c["overdue_days"], reverse=True)
        return overdue
