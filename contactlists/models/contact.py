"""
Contact model - an email recipient owned by a user.
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, UniqueConstraint


class ContactStatus(str, Enum):
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"
    BOUNCED = "bounced"
    COMPLAINED = "complained"


class Contact(SQLModel, table=True):
    """
    Contact entity.
    Email is stored lowercased and trimmed; (user_id, email) is unique.
    """
    __table_args__ = (
        UniqueConstraint("user_id", "email", name="uq_contact_user_email"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)

    # Basic info
    email: str = Field(max_length=255, index=True)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = None

    # Flexible data
    custom_fields: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # Subscription
    status: str = Field(default=ContactStatus.SUBSCRIBED.value, index=True)
    subscribed_at: Optional[datetime] = None
    unsubscribed_at: Optional[datetime] = None
    unsubscribe_reason: Optional[str] = None

    # Compliance tracking
    source: Optional[str] = None  # manual, import, form, api
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    # Verification
    email_verified: bool = Field(default=False)
    email_verified_at: Optional[datetime] = None
    verification_token: Optional[str] = None

    # Timestamps
    last_activity_at: Optional[datetime] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    @property
    def initials(self) -> str:
        parts = [part for part in self.full_name.split(" ") if part]
        return "".join(part[0] for part in parts)[:2].upper()
