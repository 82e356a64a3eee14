"""
Custom field definition routes.
"""
import uuid
from typing import List
from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from contactlists.database import get_session
from contactlists.services.custom_field_service import CustomFieldService
from contactlists.services.field_validation import rules_for
from contactlists.schemas.common import MessageResponse
from contactlists.schemas.custom_field import (
    CustomFieldCreate, CustomFieldUpdate, CustomFieldResponse,
    ValueCheckRequest, ValueCheckResponse
)
from contactlists.models.custom_field import ContactCustomField
from contactlists.api.deps import get_current_user
from contactlists.models.user import User

router = APIRouter(prefix="/api/custom-fields", tags=["custom-fields"])


def _to_response(field: ContactCustomField) -> CustomFieldResponse:
    response = CustomFieldResponse.model_validate(field)
    response.effective_rules = rules_for(field)
    return response


@router.get("/", response_model=List[CustomFieldResponse])
async def list_custom_fields(
    active_only: bool = False,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    field_service = CustomFieldService(session)
    fields = await field_service.list(current_user.id, active_only)
    return [_to_response(field) for field in fields]


@router.post("/", response_model=CustomFieldResponse, status_code=201)
async def create_custom_field(
    field_data: CustomFieldCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    field_service = CustomFieldService(session)
    return _to_response(await field_service.create(current_user.id, field_data))


@router.get("/{field_id}", response_model=CustomFieldResponse)
async def get_custom_field(
    field_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    field_service = CustomFieldService(session)
    return _to_response(await field_service.get(current_user.id, field_id))


@router.patch("/{field_id}", response_model=CustomFieldResponse)
async def update_custom_field(
    field_id: uuid.UUID,
    field_data: CustomFieldUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    field_service = CustomFieldService(session)
    return _to_response(await field_service.update(current_user.id, field_id, field_data))


@router.delete("/{field_id}", response_model=MessageResponse)
async def delete_custom_field(
    field_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    field_service = CustomFieldService(session)
    await field_service.delete(current_user.id, field_id)
    return {"message": "Custom field deleted successfully!"}


@router.post("/{field_id}/validate", response_model=ValueCheckResponse)
async def validate_custom_field_value(
    field_id: uuid.UUID,
    request: ValueCheckRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Check a value against the field's rules without storing it."""
    field_service = CustomFieldService(session)
    field = await field_service.get(current_user.id, field_id)
    message = await field_service.check(current_user.id, field_id, request.value)
    return {"valid": message is None, "message": message, "rules": rules_for(field)}
