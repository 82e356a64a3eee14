"""
Custom field service - per-owner field definitions and value checks.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from contactlists.core.exceptions import NotFoundError, AlreadyExistsError, ValidationError
from contactlists.models.custom_field import ContactCustomField, CustomFieldType
from contactlists.repositories.custom_field_repo import CustomFieldRepository
from contactlists.schemas.custom_field import CustomFieldCreate, CustomFieldUpdate
from contactlists.services.field_validation import rules_for, check_value

logger = logging.getLogger(__name__)

OPTION_TYPES = (CustomFieldType.SELECT.value, CustomFieldType.MULTISELECT.value)


class CustomFieldService:
    """Service for custom field definitions."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.field_repo = CustomFieldRepository(session)

    @staticmethod
    def _check_options(field_type: str, options: List[str]) -> None:
        if field_type in OPTION_TYPES and not options:
            raise ValidationError.for_field("options", f"Options are required for {field_type} fields.")

    async def create(self, owner_id: uuid.UUID, field_data: CustomFieldCreate) -> ContactCustomField:
        """Define a new custom field."""
        self._check_options(field_data.type, field_data.options)

        if await self.field_repo.get_by_name(owner_id, field_data.name):
            raise AlreadyExistsError("Custom field", "name", field_data.name)

        data = field_data.model_dump()
        data["user_id"] = owner_id
        field = await self.field_repo.create(data)
        logger.info("Custom field %s created for owner %s", field.name, owner_id)
        return field

    async def get(self, owner_id: uuid.UUID, field_id: uuid.UUID) -> ContactCustomField:
        field = await self.field_repo.get_owned(owner_id, field_id)
        if not field:
            raise NotFoundError("Custom field", str(field_id))
        return field

    async def list(self, owner_id: uuid.UUID, active_only: bool = False) -> List[ContactCustomField]:
        return await self.field_repo.get_ordered(owner_id, active_only)

    async def update(
        self,
        owner_id: uuid.UUID,
        field_id: uuid.UUID,
        field_data: CustomFieldUpdate
    ) -> ContactCustomField:
        field = await self.get(owner_id, field_id)
        update_data = field_data.model_dump(exclude_unset=True)

        self._check_options(
            update_data.get("type", field.type),
            update_data.get("options", field.options)
        )
        return await self.field_repo.update(field, update_data)

    async def delete(self, owner_id: uuid.UUID, field_id: uuid.UUID) -> None:
        """Remove the definition; stored contact values are left untouched."""
        field = await self.get(owner_id, field_id)
        await self.field_repo.delete(field)

    async def check(self, owner_id: uuid.UUID, field_id: uuid.UUID, value: Any) -> Optional[str]:
        field = await self.get(owner_id, field_id)
        return check_value(rules_for(field), value)

    async def validate_values(
        self,
        owner_id: uuid.UUID,
        values: Dict[str, Any],
        apply_defaults: bool = True
    ) -> Dict[str, Any]:
        """
        Validate contact custom field values against active definitions.

        Missing values fall back to the field default when apply_defaults
        is set. Keys without a definition pass through unchanged.

        Raises:
            ValidationError: keyed by "custom_fields.<name>"
        """
        result = dict(values or {})
        errors: Dict[str, str] = {}

        for field in await self.field_repo.get_ordered(owner_id, active_only=True):
            if field.name not in result:
                if apply_defaults and field.default_value is not None:
                    result[field.name] = field.default_value
                elif not apply_defaults:
                    continue
            message = check_value(rules_for(field), result.get(field.name))
            if message:
                errors[f"custom_fields.{field.name}"] = message

        if errors:
            raise ValidationError(errors)
        return result

    async def validate_single(self, owner_id: uuid.UUID, name: str, value: Any) -> None:
        field = await self.field_repo.get_by_name(owner_id, name)
        if not field or not field.is_active:
            return
        message = check_value(rules_for(field), value)
        if message:
            raise ValidationError.for_field(f"custom_fields.{name}", message)
