"""
Contacts API routes.
"""
import uuid
from typing import Optional, List
from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from contactlists.config import settings
from contactlists.database import get_session
from contactlists.services.contact_service import ContactService
from contactlists.schemas.common import MessageResponse, PaginatedResponse
from contactlists.schemas.contact import (
    ContactCreate, ContactUpdate, ContactResponse, ContactFilter,
    UnsubscribeRequest, TagRequest, CustomFieldValue
)
from contactlists.schemas.activity import ActivityResponse
from contactlists.models.contact import Contact, ContactStatus
from contactlists.api.deps import get_current_user, get_client_info
from contactlists.models.user import User

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


def _to_response(contact: Contact) -> ContactResponse:
    return ContactResponse.model_validate(contact)


@router.get("/", response_model=PaginatedResponse[ContactResponse])
async def list_contacts(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.CONTACT_PAGE_SIZE, ge=1, le=100),
    search: Optional[str] = None,
    status: Optional[ContactStatus] = None,
    tag: Optional[str] = None,
    verified: Optional[bool] = None,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """List contacts with filtering and pagination."""
    filters = ContactFilter(search=search, status=status, tag=tag, email_verified=verified)

    contact_service = ContactService(session)
    result = await contact_service.list(current_user.id, filters, page, limit)
    result["items"] = [_to_response(contact) for contact in result["items"]]
    return result


@router.post("/", response_model=ContactResponse, status_code=201)
async def create_contact(
    contact_data: ContactCreate,
    client_info: dict = Depends(get_client_info),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    contact_service = ContactService(session)
    contact = await contact_service.create(current_user.id, contact_data, client_info)

    response = _to_response(contact)
    if settings.DEV_MODE:
        response.dev_verification_token = contact.verification_token
    return response


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(
    contact_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    contact_service = ContactService(session)
    return _to_response(await contact_service.get(current_user.id, contact_id))


@router.patch("/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: uuid.UUID,
    contact_data: ContactUpdate,
    client_info: dict = Depends(get_client_info),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    contact_service = ContactService(session)
    return _to_response(await contact_service.update(current_user.id, contact_id, contact_data, client_info))


@router.delete("/{contact_id}", response_model=MessageResponse)
async def delete_contact(
    contact_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Delete a contact and detach it from all lists."""
    contact_service = ContactService(session)
    await contact_service.delete(current_user.id, contact_id)
    return {"message": "Contact deleted successfully!"}


# Status events

@router.post("/{contact_id}/subscribe", response_model=ContactResponse)
async def subscribe_contact(
    contact_id: uuid.UUID,
    source: str = "manual",
    client_info: dict = Depends(get_client_info),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    contact_service = ContactService(session)
    return _to_response(await contact_service.subscribe(current_user.id, contact_id, source, client_info))


@router.post("/{contact_id}/unsubscribe", response_model=ContactResponse)
async def unsubscribe_contact(
    contact_id: uuid.UUID,
    request: Optional[UnsubscribeRequest] = None,
    client_info: dict = Depends(get_client_info),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    contact_service = ContactService(session)
    reason = request.reason if request else None
    return _to_response(await contact_service.unsubscribe(current_user.id, contact_id, reason, client_info))


@router.post("/{contact_id}/bounce", response_model=ContactResponse)
async def bounce_contact(
    contact_id: uuid.UUID,
    client_info: dict = Depends(get_client_info),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    contact_service = ContactService(session)
    return _to_response(await contact_service.mark_bounced(current_user.id, contact_id, client_info))


@router.post("/{contact_id}/complain", response_model=ContactResponse)
async def complain_contact(
    contact_id: uuid.UUID,
    client_info: dict = Depends(get_client_info),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    contact_service = ContactService(session)
    return _to_response(await contact_service.mark_complained(current_user.id, contact_id, client_info))


@router.post("/{contact_id}/verify", response_model=ContactResponse)
async def verify_contact(
    contact_id: uuid.UUID,
    client_info: dict = Depends(get_client_info),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    contact_service = ContactService(session)
    return _to_response(await contact_service.verify(current_user.id, contact_id, client_info))


# Tags and custom fields

@router.post("/{contact_id}/tags", response_model=ContactResponse)
async def add_tag(
    contact_id: uuid.UUID,
    request: TagRequest,
    client_info: dict = Depends(get_client_info),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    contact_service = ContactService(session)
    return _to_response(await contact_service.add_tag(current_user.id, contact_id, request.tag, client_info))


@router.delete("/{contact_id}/tags/{tag}", response_model=ContactResponse)
async def remove_tag(
    contact_id: uuid.UUID,
    tag: str,
    client_info: dict = Depends(get_client_info),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    contact_service = ContactService(session)
    return _to_response(await contact_service.remove_tag(current_user.id, contact_id, tag, client_info))


@router.put("/{contact_id}/custom-fields/{field}", response_model=ContactResponse)
async def update_custom_field(
    contact_id: uuid.UUID,
    field: str,
    request: CustomFieldValue,
    client_info: dict = Depends(get_client_info),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    contact_service = ContactService(session)
    return _to_response(await contact_service.update_custom_field(
        current_user.id, contact_id, field, request.value, client_info
    ))


@router.get("/{contact_id}/activities", response_model=List[ActivityResponse])
async def get_contact_activities(
    contact_id: uuid.UUID,
    type: Optional[str] = None,
    source: Optional[str] = None,
    days: Optional[int] = Query(None, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Activity timeline for a contact, newest first."""
    contact_service = ContactService(session)
    activities = await contact_service.get_activities(
        current_user.id, contact_id, type, source, days, limit
    )
    return [ActivityResponse.model_validate(activity) for activity in activities]
