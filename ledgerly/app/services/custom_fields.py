"""
Custom Field Service.

Definitions of extra customer inputs, and validation of the values a
customer row carries for them.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerly.app.core.exceptions import (
    FeatureNotAvailableError,
    InvalidRequestError,
    ResourceNotFoundError,
)
from ledgerly.app.models.custom_field import CustomFieldDefinition
from ledgerly.app.models.enums import CustomFieldType
from ledgerly.app.schemas.custom_field import CustomFieldCreate
from ledgerly.app.services.subscriptions import SubscriptionService, minimum_plan_for

logger = logging.getLogger(__name__)

CUSTOM_FIELDS_FEATURE = "customFields"

FIELD_TYPES = frozenset(t.value for t in CustomFieldType)


def slugify(name: str) -> str:
    """ "Birth Date" -> "birth_date" """
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def validate_field_values(definitions: List[CustomFieldDefinition], values: Dict[str, Any]) -> Dict[str, str]:
    """
    Check custom field values against their definitions.

    Returns:
        slug -> error message; empty when the values are valid
    """
    errors: Dict[str, str] = {}
    known = {d.slug for d in definitions}

    for slug in values:
        if slug not in known:
            errors[slug] = f"Unknown custom field '{slug}'"

    for definition in definitions:
        value = values.get(definition.slug)

        if _is_blank(value):
            if definition.is_required:
                errors[definition.slug] = f"{definition.name} is required"
            continue

        if definition.field_type == CustomFieldType.NUMBER.value:
            try:
                float(value)
            except (TypeError, ValueError):
                errors[definition.slug] = f"{definition.name} must be a number"
        elif definition.field_type == CustomFieldType.DATE.value:
            try:
                datetime.fromisoformat(str(value).replace("Z", "+00:00"))
            except ValueError:
                errors[definition.slug] = f"{definition.name} must be a valid date"
        elif definition.field_type == CustomFieldType.SELECT.value:
            allowed = {option["value"] for option in definition.options or []}
            if str(value) not in allowed:
                errors[definition.slug] = f"Invalid option for {definition.name}"

    return errors


class CustomFieldService:

    @staticmethod
    async def list_fields(db: AsyncSession, user_id: int) -> List[CustomFieldDefinition]:
        result = await db.execute(
            select(CustomFieldDefinition)
            .where(CustomFieldDefinition.user_id == user_id)
            .order_by(CustomFieldDefinition.sort_order, CustomFieldDefinition.id)
        )
        return result.scalars().all()

    @staticmethod
    async def get_owned_field(db: AsyncSession, user_id: int, field_id: int) -> CustomFieldDefinition:
        result = await db.execute(
            select(CustomFieldDefinition).where(
                CustomFieldDefinition.id == field_id,
                CustomFieldDefinition.user_id == user_id,
            )
        )
        field = result.scalar_one_or_none()
        if not field:
            raise ResourceNotFoundError("Field", field_id)
        return field

    @staticmethod
    async def create_field(db: AsyncSession, user_id: int, data: CustomFieldCreate) -> CustomFieldDefinition:
        """
        Define a new field.

        Raises:
            InvalidRequestError: unknown field type, a name without letters or
                digits, or a name whose slug is already taken
        """
        if data.field_type not in FIELD_TYPES:
            raise InvalidRequestError("Invalid field type.", details={"allowed": sorted(FIELD_TYPES)})

        slug = slugify(data.name)
        if not slug:
            raise InvalidRequestError("Field name must contain letters or digits.")

        field = CustomFieldDefinition(
            user_id=user_id,
            name=data.name,
            slug=slug,
            field_type=data.field_type,
            options=[option.model_dump() for option in data.options],
            is_required=data.is_required,
            sort_order=data.sort_order,
        )
        db.add(field)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise InvalidRequestError("A field with this name already exists", details={"slug": slug})

        await db.refresh(field)
        logger.info("User %s defined custom field %s (%s)", user_id, slug, data.field_type)
        return field

    @staticmethod
    async def update_field(
        db: AsyncSession,
        user_id: int,
        field_id: int,
        changes: Dict[str, Any]
    ) -> CustomFieldDefinition:
        field = await CustomFieldService.get_owned_field(db, user_id, field_id)

        for key in ("name", "options", "is_required", "sort_order"):
            if key in changes:
                setattr(field, key, changes[key])

        await db.commit()
        await db.refresh(field)
        return field

    @staticmethod
    async def delete_field(db: AsyncSession, user_id: int, field_id: int) -> None:
        """Remove a definition. Values already stored on customers are kept."""
        result = await db.execute(
            delete(CustomFieldDefinition).where(
                CustomFieldDefinition.id == field_id,
                CustomFieldDefinition.user_id == user_id,
            )
        )
        if result.rowcount == 0:
            await db.rollback()
            raise ResourceNotFoundError("Field", field_id)
        await db.commit()

    @staticmethod
    async def check_customer_values(
        db: AsyncSession,
        user_id: int,
        values: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        Values to store on a customer row.

        Plans without custom fields may only send an empty set. Otherwise
        the values are checked against the user's definitions.

        Raises:
            FeatureNotAvailableError: values sent on a plan without custom fields
            InvalidRequestError: values that fail their definitions (details.errors)
        """
        values = values or {}
        if not await SubscriptionService.has_feature(db, user_id, CUSTOM_FIELDS_FEATURE):
            if values:
                upgrade = minimum_plan_for(CUSTOM_FIELDS_FEATURE)
                raise FeatureNotAvailableError(CUSTOM_FIELDS_FEATURE, upgrade.value if upgrade else None)
            return {}

        definitions = await CustomFieldService.list_fields(db, user_id)
        errors = validate_field_values(definitions, values)
        if errors:
            raise InvalidRequestError("Invalid custom field values.", details={"errors": errors})
        return values
