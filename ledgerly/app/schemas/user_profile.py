"""
User profile schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class UserProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=100)
    shop_name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    industry: Optional[str] = Field(None, max_length=100)
    currency: Optional[str] = Field(None, min_length=3, max_length=3, pattern=r"^[A-Z]{3}$")
    language: Optional[str] = Field(None, min_length=2, max_length=5)
    onboarding_completed: Optional[bool] = None

    class Config:
        str_strip_whitespace = True


class UserProfileResponse(BaseModel):
    id: int
    full_name: Optional[str]
    shop_name: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    industry: Optional[str]
    currency: str
    language: str
    onboarding_completed: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
