"""
Custom Field API Endpoints.

Definitions of extra customer inputs. Every route needs a plan with the
customFields feature.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from ledgerly.app.db.session import get_db
from ledgerly.app.core.guards import require_feature
from ledgerly.app.schemas.custom_field import (
    CustomFieldCreate, CustomFieldUpdate, CustomFieldDelete,
    CustomFieldResponse, CustomFieldEnvelope, CustomFieldListResponse
)
from ledgerly.app.services.custom_fields import CustomFieldService, CUSTOM_FIELDS_FEATURE

router = APIRouter(prefix="/custom-fields", tags=["Custom Fields"])


@router.get("", response_model=CustomFieldListResponse)
async def list_custom_fields(
    current_user: dict = Depends(require_feature(CUSTOM_FIELDS_FEATURE)),
    db: AsyncSession = Depends(get_db)
):
    """Definitions in display order (sort_order, then creation)."""
    fields = await CustomFieldService.list_fields(db, current_user["user_id"])
    return CustomFieldListResponse(fields=[CustomFieldResponse.model_validate(f) for f in fields])


@router.post("", response_model=CustomFieldEnvelope, status_code=status.HTTP_201_CREATED)
async def create_custom_field(
    field_data: CustomFieldCreate,
    current_user: dict = Depends(require_feature(CUSTOM_FIELDS_FEATURE)),
    db: AsyncSession = Depends(get_db)
):
    """400 for an unknown field_type or a name that is already used."""
    field = await CustomFieldService.create_field(db, current_user["user_id"], field_data)
    return CustomFieldEnvelope(field=CustomFieldResponse.model_validate(field))


@router.patch("", response_model=CustomFieldEnvelope)
async def update_custom_field(
    field_data: CustomFieldUpdate,
    current_user: dict = Depends(require_feature(CUSTOM_FIELDS_FEATURE)),
    db: AsyncSession = Depends(get_db)
):
    field = await CustomFieldService.update_field(
        db, current_user["user_id"], field_data.id, field_data.changes()
    )
    return CustomFieldEnvelope(field=CustomFieldResponse.model_validate(field))


@router.delete("")
async def delete_custom_field(
    delete_data: CustomFieldDelete,
    current_user: dict = Depends(require_feature(CUSTOM_FIELDS_FEATURE)),
    db: AsyncSession = Depends(get_db)
):
    await CustomFieldService.delete_field(db, current_user["user_id"], delete_data.id)
    return {"success": True}
