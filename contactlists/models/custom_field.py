"""
Custom field definitions - per-owner schema for Contact.custom_fields.
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional, List

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, UniqueConstraint


class CustomFieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    SELECT = "select"
    MULTISELECT = "multiselect"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "CustomFieldType":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class ContactCustomField(SQLModel, table=True):
    __tablename__ = "contact_custom_field"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_custom_field_user_name"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)

    name: str = Field(max_length=255)  # key inside Contact.custom_fields
    label: str
    type: str = Field(default=CustomFieldType.TEXT.value)
    options: List[str] = Field(default_factory=list, sa_column=Column(JSON))  # select / multiselect
    default_value: Optional[str] = None
    is_required: bool = Field(default=False)
    is_active: bool = Field(default=True, index=True)
    sort_order: int = Field(default=0)
    description: Optional[str] = None
    validation_rules: List[str] = Field(default_factory=list, sa_column=Column(JSON))  # e.g. ["max:50"]

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
