"""
Transaction Pydantic schemas.
"""

from decimal import Decimal
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from ledgerly.app.models.enums import TransactionType

MAX_AMOUNT = Decimal("999999999")


class TransactionCreate(BaseModel):
    """Schema for recording a debt or a payment."""
    customer_id: int = Field(..., alias="customerId")
    type: TransactionType = Field(..., description="debt or payment")
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT, decimal_places=2)
    note: Optional[str] = Field(None, max_length=500)
    date: Optional[datetime] = Field(None, description="Defaults to now")

    class Config:
        str_strip_whitespace = True
        populate_by_name = True


class TransactionUpdate(BaseModel):
    """Schema for editing a transaction. Only sent fields change."""
    transaction_id: int = Field(..., alias="transactionId")
    customer_id: Optional[int] = Field(None, alias="customerId")
    type: Optional[TransactionType] = None
    amount: Optional[Decimal] = Field(None, gt=0, le=MAX_AMOUNT, decimal_places=2)
    note: Optional[str] = Field(None, max_length=500)
    date: Optional[datetime] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"transaction_id"})

    class Config:
        str_strip_whitespace = True
        populate_by_name = True


class TransactionDelete(BaseModel):
    transaction_id: int = Field(..., alias="transactionId")

    class Config:
        populate_by_name = True


class TransactionResponse(BaseModel):
    id: int
    customer_id: int
    type: TransactionType
    amount: float
    description: Optional[str]
    transaction_date: datetime
    created_at: datetime
    customer_name: Optional[str] = None

    class Config:
        from_attributes = True


class TransactionEnvelope(BaseModel):
    transaction: TransactionResponse


class TransactionListResponse(BaseModel):
    transactions: List[TransactionResponse]
