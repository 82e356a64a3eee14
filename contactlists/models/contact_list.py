"""
Contact list and membership models.
Membership is an explicit junction table carrying subscription state.
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, UniqueConstraint


class ListType(str, Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"


class SubscriptionStatus(str, Enum):
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"


class ContactList(SQLModel, table=True):
    """
    Named list of contacts.
    contacts_count caches the number of members whose subscription_status
    is subscribed and is recomputed inside every membership transaction.
    """
    __tablename__ = "contact_list"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)

    name: str = Field(max_length=255, index=True)
    description: Optional[str] = None

    # Dynamic lists keep their rules here; nothing evaluates them yet
    segmentation_rules: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))

    type: str = Field(default=ListType.STATIC.value, index=True)
    is_active: bool = Field(default=True, index=True)
    contacts_count: int = Field(default=0)
    last_cleaned_at: Optional[datetime] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ContactListMember(SQLModel, table=True):
    """
    Junction table for the Contact-ContactList many-to-many relationship.
    At most one row per (contact, list) pair.
    """
    __tablename__ = "contact_list_member"
    __table_args__ = (
        UniqueConstraint("contact_id", "contact_list_id", name="uq_contact_list_member"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    contact_id: uuid.UUID = Field(foreign_key="contact.id", index=True)
    contact_list_id: uuid.UUID = Field(foreign_key="contact_list.id", index=True)

    subscription_status: str = Field(default=SubscriptionStatus.SUBSCRIBED.value, index=True)
    subscribed_at: Optional[datetime] = None
    unsubscribed_at: Optional[datetime] = None
    subscription_source: Optional[str] = None
    subscription_metadata: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
