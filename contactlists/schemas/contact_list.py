"""
Contact list schemas.
"""
import uuid
from typing import Optional, List, Dict, Any
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from contactlists.models.contact_list import ListType, SubscriptionStatus
from contactlists.schemas.contact import ContactResponse
from contactlists.schemas.activity import ActivityResponse


class ContactListForm(BaseModel):
    """
    Authoritative validation rules for creating or editing a list.
    Nothing is written until every rule passes.
    """
    name: str = Field(min_length=3, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    type: ListType = ListType.STATIC
    is_active: bool = True
    segmentation_rules: List[Dict[str, Any]] = []

    class Config:
        str_strip_whitespace = True
        use_enum_values = True

    @field_validator("description")
    @classmethod
    def blank_description_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class ContactListPayload(BaseModel):
    """
    Request body for create/update.
    Loosely typed: ContactListForm reports the field errors.
    """
    name: Optional[Any] = None
    description: Optional[Any] = None
    type: Optional[Any] = ListType.STATIC.value
    is_active: Optional[Any] = True
    segmentation_rules: Optional[List[Dict[str, Any]]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Newsletter VIP",
                "description": "Customers who opted into the VIP newsletter",
                "type": "static",
                "is_active": True
            }
        }


class ContactListResponse(BaseModel):
    """Contact list response."""
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    description: Optional[str]
    segmentation_rules: List[Dict[str, Any]]
    type: str
    is_active: bool
    contacts_count: int
    last_cleaned_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ContactListSummary(BaseModel):
    """Compact list entry for pickers."""
    id: uuid.UUID
    name: str
    contacts_count: int

    class Config:
        from_attributes = True


class ListFilter(BaseModel):
    """List browsing options."""
    search: Optional[str] = None  # Search in name, description
    type: str = "all"  # all, static, dynamic
    status: str = "all"  # all, active, inactive
    sort_field: str = "created_at"
    sort_direction: str = "desc"  # asc, desc


class ListStats(BaseModel):
    total_lists: int
    active_lists: int
    total_contacts: int
    subscribed_contacts: int
    recent_lists: int
    contact_growth: float


class TopList(BaseModel):
    id: uuid.UUID
    name: str
    subscribed_count: int


class ListStatsResponse(ListStats):
    top_lists: List[TopList] = []


class ListPageResponse(BaseModel):
    """Page of lists with aggregate stats for the overview screen."""
    items: List[ContactListResponse]
    total: int
    page: int
    limit: int
    pages: int
    has_next: bool
    has_prev: bool
    stats: ListStats


class ListPreviewResponse(BaseModel):
    contact_list: ContactListResponse
    subscribed_count: int
    unsubscribed_count: int
    contacts: List[ContactResponse]
    recent_activities: List[ActivityResponse]


class BulkActionRequest(BaseModel):
    """Bulk action on lists."""
    ids: List[uuid.UUID]
    action: str  # activate, deactivate, delete
    confirm: bool = False  # required for delete


class BulkActionResponse(BaseModel):
    message: str
    count: int


# Membership schemas
class MembershipCreate(BaseModel):
    """Attach a contact to a list; pivot fields override the defaults."""
    contact_id: uuid.UUID
    subscription_status: Optional[SubscriptionStatus] = None
    subscription_source: Optional[str] = None
    subscription_metadata: Optional[Dict[str, Any]] = None


class MembershipUpdate(BaseModel):
    subscription_status: SubscriptionStatus


class MembershipResponse(BaseModel):
    contact_id: uuid.UUID
    contact_list_id: uuid.UUID
    subscription_status: str
    subscribed_at: Optional[datetime]
    unsubscribed_at: Optional[datetime]
    subscription_source: Optional[str]
    subscription_metadata: Dict[str, Any]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MemberResponse(BaseModel):
    contact: ContactResponse
    membership: MembershipResponse
