"""
Custom field schemas.
"""
import uuid
from typing import Optional, List, Any, Literal
from datetime import datetime

from pydantic import BaseModel, Field

FieldTypeName = Literal["text", "number", "date", "boolean", "select", "multiselect"]


class CustomFieldCreate(BaseModel):
    """Define a new custom field."""
    name: str = Field(min_length=1, max_length=255, pattern=r"^[a-z][a-z0-9_]*$")
    label: str = Field(min_length=1, max_length=255)
    type: FieldTypeName = "text"
    options: List[str] = []
    default_value: Optional[str] = None
    is_required: bool = False
    is_active: bool = True
    sort_order: int = 0
    description: Optional[str] = None
    validation_rules: List[str] = []

    class Config:
        json_schema_extra = {
            "example": {
                "name": "plan",
                "label": "Plan",
                "type": "select",
                "options": ["free", "pro"],
                "is_required": True
            }
        }


class CustomFieldUpdate(BaseModel):
    label: Optional[str] = Field(default=None, min_length=1, max_length=255)
    type: Optional[FieldTypeName] = None
    options: Optional[List[str]] = None
    default_value: Optional[str] = None
    is_required: Optional[bool] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None
    description: Optional[str] = None
    validation_rules: Optional[List[str]] = None


class CustomFieldResponse(BaseModel):
    id: uuid.UUID
    name: str
    label: str
    type: str
    options: List[str]
    default_value: Optional[str]
    is_required: bool
    is_active: bool
    sort_order: int
    description: Optional[str]
    validation_rules: List[str]
    effective_rules: List[str] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ValueCheckRequest(BaseModel):
    value: Any = None


class ValueCheckResponse(BaseModel):
    valid: bool
    message: Optional[str] = None
    rules: List[str]
