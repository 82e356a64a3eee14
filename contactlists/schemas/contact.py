"""
Contact schemas.
"""
import uuid
from typing import Optional, List, Dict, Any
from datetime import datetime

from pydantic import BaseModel, EmailStr

from contactlists.models.contact import ContactStatus


class ContactCreate(BaseModel):
    """Create a new contact."""
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = None
    custom_fields: Optional[Dict[str, Any]] = {}
    tags: Optional[List[str]] = []
    status: ContactStatus = ContactStatus.SUBSCRIBED
    source: Optional[str] = "manual"

    class Config:
        json_schema_extra = {
            "example": {
                "email": "jane@acme.com",
                "first_name": "Jane",
                "last_name": "Doe",
                "company": "Acme",
                "tags": ["vip"]
            }
        }


class ContactUpdate(BaseModel):
    """Update an existing contact."""
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = None
    custom_fields: Optional[Dict[str, Any]] = None
    tags: Optional[List[str]] = None


class ContactResponse(BaseModel):
    """Contact response."""
    id: uuid.UUID
    user_id: uuid.UUID
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    full_name: str
    display_name: str
    initials: str
    phone: Optional[str]
    company: Optional[str]
    job_title: Optional[str]
    custom_fields: Dict[str, Any]
    tags: List[str]
    status: str
    subscribed_at: Optional[datetime]
    unsubscribed_at: Optional[datetime]
    unsubscribe_reason: Optional[str]
    source: Optional[str]
    email_verified: bool
    email_verified_at: Optional[datetime]
    last_activity_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    # Only filled in DEV_MODE so verification links can be tested
    dev_verification_token: Optional[str] = None

    class Config:
        from_attributes = True


class ContactFilter(BaseModel):
    """Contact filtering options."""
    search: Optional[str] = None  # Search in email, first/last name, company
    status: Optional[ContactStatus] = None
    tag: Optional[str] = None
    email_verified: Optional[bool] = None


class UnsubscribeRequest(BaseModel):
    reason: Optional[str] = None


class TagRequest(BaseModel):
    tag: str


class CustomFieldValue(BaseModel):
    value: Any = None
