"""
Contact lists API routes.
"""
import uuid
from typing import Optional, List
from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from contactlists.config import settings
from contactlists.database import get_session
from contactlists.services.contact_list_service import ContactListService, Messages
from contactlists.services.membership_service import MembershipService
from contactlists.schemas.common import MessageResponse, PaginatedResponse
from contactlists.schemas.contact_list import (
    ContactListPayload, ContactListResponse, ContactListSummary, ListFilter,
    ListPageResponse, ListStatsResponse, ListPreviewResponse,
    BulkActionRequest, BulkActionResponse,
    MembershipCreate, MembershipUpdate, MembershipResponse, MemberResponse
)
from contactlists.schemas.contact import ContactResponse
from contactlists.schemas.activity import ActivityResponse
from contactlists.models.contact_list import SubscriptionStatus
from contactlists.api.deps import get_current_user, get_client_info
from contactlists.models.user import User

router = APIRouter(prefix="/api/lists", tags=["lists"])


@router.get("/", response_model=ListPageResponse)
async def list_lists(
    page: int = Query(1, ge=1),
    search: Optional[str] = None,
    type: str = Query("all", pattern="^(all|static|dynamic)$"),
    status: str = Query("all", pattern="^(all|active|inactive)$"),
    sort: str = "created_at",
    dir: str = Query("desc", pattern="^(asc|desc)$"),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Page of lists plus overview statistics."""
    filters = ListFilter(
        search=search,
        type=type,
        status=status,
        sort_field=sort,
        sort_direction=dir
    )

    list_service = ContactListService(session)
    result = await list_service.list(current_user.id, filters, page, settings.LIST_PAGE_SIZE)
    result["stats"] = await list_service.get_stats(current_user.id)
    return result


@router.get("/stats", response_model=ListStatsResponse)
async def get_list_stats(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    list_service = ContactListService(session)
    return await list_service.get_stats(current_user.id)


@router.get("/selectable", response_model=List[ContactListSummary])
async def get_selectable_lists(
    search: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Active lists for pickers."""
    list_service = ContactListService(session)
    return await list_service.selectable(current_user.id, search)


@router.post("/", response_model=ContactListResponse, status_code=201)
async def create_list(
    payload: ContactListPayload,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    list_service = ContactListService(session)
    return await list_service.create(current_user.id, payload.model_dump(exclude_none=True))


@router.post("/bulk", response_model=BulkActionResponse)
async def bulk_action(
    request: BulkActionRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Activate, deactivate or delete several lists."""
    list_service = ContactListService(session)
    count, message = await list_service.bulk_action(
        current_user.id, request.ids, request.action, request.confirm
    )
    return {"message": message, "count": count}


@router.get("/{list_id}", response_model=ContactListResponse)
async def get_list(
    list_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    list_service = ContactListService(session)
    return await list_service.get(current_user.id, list_id)


@router.put("/{list_id}", response_model=ContactListResponse)
async def update_list(
    list_id: uuid.UUID,
    payload: ContactListPayload,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    list_service = ContactListService(session)
    return await list_service.update(current_user.id, list_id, payload.model_dump(exclude_unset=True))


@router.delete("/{list_id}", response_model=MessageResponse)
async def delete_list(
    list_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Delete a list after detaching its contacts."""
    list_service = ContactListService(session)
    await list_service.delete(current_user.id, list_id)
    return {"message": Messages.LIST_DELETED}


@router.post("/{list_id}/toggle-status", response_model=ContactListResponse)
async def toggle_list_status(
    list_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    list_service = ContactListService(session)
    return await list_service.toggle_status(current_user.id, list_id)


@router.get("/{list_id}/preview", response_model=ListPreviewResponse)
async def preview_list(
    list_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """List detail with recent subscribers and activity."""
    list_service = ContactListService(session)
    preview = await list_service.preview(current_user.id, list_id)
    preview["contacts"] = [ContactResponse.model_validate(contact) for contact in preview["contacts"]]
    preview["recent_activities"] = [
        ActivityResponse.model_validate(activity) for activity in preview["recent_activities"]
    ]
    return preview


# Membership

@router.get("/{list_id}/contacts", response_model=PaginatedResponse[MemberResponse])
async def list_members(
    list_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.CONTACT_PAGE_SIZE, ge=1, le=100),
    status: Optional[SubscriptionStatus] = None,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    membership_service = MembershipService(session)
    result = await membership_service.list_members(
        current_user.id, list_id, status.value if status else None, page, limit
    )
    result["items"] = [
        {"contact": ContactResponse.model_validate(contact), "membership": membership}
        for contact, membership in result["items"]
    ]
    return result


@router.post("/{list_id}/contacts", response_model=MembershipResponse, status_code=201)
async def add_contact_to_list(
    list_id: uuid.UUID,
    request: MembershipCreate,
    client_info: dict = Depends(get_client_info),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Attach a contact; an existing membership is updated in place."""
    membership_service = MembershipService(session)
    return await membership_service.add_contact(
        current_user.id,
        list_id,
        request.contact_id,
        request.model_dump(exclude={"contact_id"}),
        client_info
    )


@router.patch("/{list_id}/contacts/{contact_id}", response_model=MembershipResponse)
async def update_subscription(
    list_id: uuid.UUID,
    contact_id: uuid.UUID,
    request: MembershipUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    membership_service = MembershipService(session)
    return await membership_service.update_subscription(
        current_user.id, list_id, contact_id, request.subscription_status
    )


@router.delete("/{list_id}/contacts/{contact_id}", response_model=MessageResponse)
async def remove_contact_from_list(
    list_id: uuid.UUID,
    contact_id: uuid.UUID,
    client_info: dict = Depends(get_client_info),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    membership_service = MembershipService(session)
    removed = await membership_service.remove_contact(current_user.id, list_id, contact_id, client_info)
    if not removed:
        return {"message": "Contact was not on this list."}
    return {"message": "Contact removed from list."}
