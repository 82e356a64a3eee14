"""
Contact activity model - append-only history of what happened to a contact.
"""
import json
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, Index


class ActivityType(str, Enum):
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"
    BOUNCED = "bounced"
    COMPLAINED = "complained"
    EMAIL_VERIFIED = "email_verified"
    UPDATED = "updated"
    IMPORTED = "imported"
    TAG_ADDED = "tag_added"
    TAG_REMOVED = "tag_removed"
    CUSTOM_FIELD_UPDATED = "custom_field_updated"
    LIST_ADDED = "list_added"
    LIST_REMOVED = "list_removed"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "ActivityType":
        """Map a stored type to a known variant, OTHER for anything new."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


ACTIVITY_ICONS = {
    ActivityType.SUBSCRIBED: "✅",
    ActivityType.UNSUBSCRIBED: "❌",
    ActivityType.BOUNCED: "⚠️",
    ActivityType.COMPLAINED: "🚫",
    ActivityType.EMAIL_VERIFIED: "✉️",
    ActivityType.UPDATED: "✏️",
    ActivityType.IMPORTED: "📥",
    ActivityType.TAG_ADDED: "🏷️",
    ActivityType.TAG_REMOVED: "🗑️",
    ActivityType.CUSTOM_FIELD_UPDATED: "📝",
}

ACTIVITY_COLORS = {
    ActivityType.SUBSCRIBED: "green",
    ActivityType.EMAIL_VERIFIED: "green",
    ActivityType.UNSUBSCRIBED: "red",
    ActivityType.BOUNCED: "red",
    ActivityType.COMPLAINED: "red",
    ActivityType.UPDATED: "blue",
    ActivityType.CUSTOM_FIELD_UPDATED: "blue",
    ActivityType.IMPORTED: "purple",
    ActivityType.TAG_ADDED: "yellow",
    ActivityType.TAG_REMOVED: "yellow",
}


class ContactActivity(SQLModel, table=True):
    """
    Activity log entry for a single contact.
    Never updated or deleted outside of deleting the contact itself.
    """
    __tablename__ = "contact_activity"
    __table_args__ = (
        Index("ix_contact_activity_contact_type", "contact_id", "activity_type"),
        Index("ix_contact_activity_user_type", "user_id", "activity_type"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    contact_id: uuid.UUID = Field(foreign_key="contact.id", index=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)

    # Open-ended: see ActivityType.parse for the known variants
    activity_type: str
    description: Optional[str] = None

    properties: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    old_values: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    new_values: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    # Request context
    source: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    @property
    def kind(self) -> ActivityType:
        return ActivityType.parse(self.activity_type)

    @property
    def icon(self) -> str:
        return ACTIVITY_ICONS.get(self.kind, "📌")

    @property
    def color(self) -> str:
        return ACTIVITY_COLORS.get(self.kind, "gray")

    @property
    def formatted_properties(self) -> str:
        if not self.properties:
            return ""
        parts = []
        for key, value in self.properties.items():
            if isinstance(value, (list, dict)):
                value = json.dumps(value)
            parts.append(f"{key[:1].upper()}{key[1:]}: {value}")
        return ", ".join(parts)
