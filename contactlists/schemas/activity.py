"""
Contact activity schemas.
"""
import uuid
from typing import Optional, Dict, Any
from datetime import datetime

from pydantic import BaseModel


class ActivityResponse(BaseModel):
    id: uuid.UUID
    contact_id: uuid.UUID
    activity_type: str
    description: Optional[str]
    properties: Dict[str, Any]
    old_values: Dict[str, Any]
    new_values: Dict[str, Any]
    source: Optional[str]
    icon: str
    color: str
    formatted_properties: str
    created_at: datetime

    class Config:
        from_attributes = True
