"""
Custom field Pydantic schemas.

field_type stays a plain string on input so an unknown type is answered
with the service's 400 rather than a schema 422.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


class SelectOption(BaseModel):
    label: str = Field(..., min_length=1, max_length=100)
    value: str = Field(..., min_length=1, max_length=100)


class CustomFieldCreate(BaseModel):
    """Schema for defining a new custom field."""
    name: str = Field(..., min_length=1, max_length=100, description="Display name; the slug is derived from it")
    field_type: str = Field(..., description="text, number, date, select, textarea or checkbox")
    options: List[SelectOption] = Field(default_factory=list, max_length=50)
    is_required: bool = False
    sort_order: int = Field(0, ge=0)

    class Config:
        str_strip_whitespace = True


class CustomFieldUpdate(BaseModel):
    """Schema for updating a definition. The type and slug are fixed."""
    id: int
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    options: Optional[List[SelectOption]] = Field(None, max_length=50)
    is_required: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0)

    def changes(self) -> dict:
        # None on a NOT NULL column means "leave as is"
        return {k: v for k, v in self.model_dump(exclude_unset=True, exclude={"id"}).items() if v is not None}

    class Config:
        str_strip_whitespace = True


class CustomFieldDelete(BaseModel):
    id: int


class CustomFieldResponse(BaseModel):
    id: int
    name: str
    slug: str
    field_type: str
    options: List[SelectOption] = []
    is_required: bool
    sort_order: int
    created_at: datetime

    class Config:
        from_attributes = True


class CustomFieldEnvelope(BaseModel):
    field: CustomFieldResponse


class CustomFieldListResponse(BaseModel):
    fields: List[CustomFieldResponse]
