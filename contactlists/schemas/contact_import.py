"""
Contact import schemas.
"""
import uuid
from typing import Optional, List, Dict, Any
from datetime import datetime

from pydantic import BaseModel, Field


class ImportCreate(BaseModel):
    """Register an uploaded file for import."""
    contact_list_id: Optional[uuid.UUID] = None
    filename: str
    original_filename: str
    file_path: str
    total_rows: int = Field(default=0, ge=0)
    field_mapping: Dict[str, Any] = {}
    import_options: Dict[str, Any] = {}


class ImportProgress(BaseModel):
    processed: int = Field(ge=0)  # absolute
    successful: int = Field(default=0, ge=0)  # increments
    failed: int = Field(default=0, ge=0)
    duplicates: int = Field(default=0, ge=0)


class ImportErrorEntry(BaseModel):
    row: str
    error: str


class ImportFailure(BaseModel):
    error_message: str


class ImportResponse(BaseModel):
    id: uuid.UUID
    contact_list_id: Optional[uuid.UUID]
    filename: str
    original_filename: str
    status: str
    total_rows: int
    processed_rows: int
    successful_imports: int
    failed_imports: int
    duplicate_contacts: int
    progress_percentage: float
    success_rate: float
    duration: Optional[str]
    field_mapping: Dict[str, Any]
    import_options: Dict[str, Any]
    errors: List[Dict[str, Any]]
    error_message: Optional[str]
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True
