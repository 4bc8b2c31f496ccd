"""
Dashboard schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List
from ledgerly.app.models.enums import TransactionType


class DashboardStats(BaseModel):
    total_debt: float = Field(..., alias="totalDebt", description="Outstanding balance across active customers")
    total_collected: float = Field(..., alias="totalCollected", description="Sum of all payments")
    active_customers: int = Field(..., alias="activeCustomers")
    total_transactions: int = Field(..., alias="totalTransactions")
    currency: str

    class Config:
        populate_by_name = True


class ActivityItem(BaseModel):
    id: int
    customer_id: int = Field(..., alias="customerId")
    customer_name: str = Field(..., alias="customerName")
    type: TransactionType
    amount: float
    date: datetime

    class Config:
        populate_by_name = True


class OverdueCustomer(BaseModel):
    id: int
    name: str
    amount: float
    overdue_days: int = Field(..., alias="overdueDays")

    class Config:
        populate_by_name = True


class OverdueResponse(BaseModel):
    customers: List[OverdueCustomer]
