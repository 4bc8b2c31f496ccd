"""
Export request schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Literal, Optional


class DateRange(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None


class ExportRequest(BaseModel):
    format: Literal["csv", "pdf"]
    type: Literal["transactions", "customers", "summary"]
    date_range: Optional[DateRange] = Field(None, alias="dateRange")
    locale: Optional[str] = Field(None, max_length=5, description="Header language, defaults to the profile language")

    class Config:
        populate_by_name = True


class ExportAvailability(BaseModel):
    available: bool
    plan: str
    upgrade_required: Optional[str] = Field(None, alias="upgradeRequired")

    class Config:
        populate_by_name = True
