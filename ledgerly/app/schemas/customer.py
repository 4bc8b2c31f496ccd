"""
Customer Pydantic schemas.

Defines request and response models for the customer directory.
Request bodies use the camelCase keys the web client sends
(customerId, hardDelete); response rows keep column names.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Any, Dict, Optional, List


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is not None and value == "":
        return None
    return value


class CustomerCreate(BaseModel):
    """Schema for creating a new customer."""
    name: str = Field(..., min_length=1, max_length=100, description="Customer name")
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=1000)
    custom_fields: Optional[Dict[str, Any]] = Field(None, alias="customFields", description="Values keyed by field slug")

    @field_validator("phone", "address", "notes")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        return _blank_to_none(value)

    class Config:
        str_strip_whitespace = True
        populate_by_name = True


class CustomerUpdate(BaseModel):
    """Schema for updating an existing customer. Only sent fields change."""
    customer_id: int = Field(..., alias="customerId", description="Customer to update")
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=1000)
    custom_fields: Optional[Dict[str, Any]] = Field(None, alias="customFields")

    @field_validator("phone", "address", "notes")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        return _blank_to_none(value)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("Customer name cannot be empty.")
        return value

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"customer_id"})

    class Config:
        str_strip_whitespace = True
        populate_by_name = True


class CustomerDelete(BaseModel):
    """Archive by default, hard delete (with transactions) on request."""
    customer_id: int = Field(..., alias="customerId")
    hard_delete: bool = Field(False, alias="hardDelete")

    class Config:
        populate_by_name = True


class CustomerResponse(BaseModel):
    """Schema for a customer row with its aggregated balance."""
    id: int
    user_id: int
    name: str
    phone: Optional[str]
    address: Optional[str]
    notes: Optional[str]
    custom_fields: Dict[str, Any] = {}
    is_deleted: bool
    balance: float = 0.0
    transaction_count: int = 0
    last_transaction_date: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CustomerEnvelope(BaseModel):
    customer: CustomerResponse


class CustomerQuota(BaseModel):
    """Plan usage shown next to the customer list."""
    plan: str
    customer_limit: Optional[int] = Field(..., alias="customerLimit")
    customers_used: int = Field(..., alias="customersUsed")
    customers_remaining: Optional[int] = Field(..., alias="customersRemaining")

    class Config:
        populate_by_name = True


class CustomerListResponse(BaseModel):
    """Schema for the customer list."""
    customers: List[CustomerResponse]
    total_count: int = Field(..., alias="totalCount", description="All customers including archived")
    subscription: CustomerQuota

    class Config:
        populate_by_name = True
