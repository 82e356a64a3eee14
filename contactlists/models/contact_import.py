"""
Contact import job record.
Row ingestion runs elsewhere and only reports progress into this record.
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON


class ImportStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ContactImport(SQLModel, table=True):
    __tablename__ = "contact_import"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    contact_list_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="contact_list.id", ondelete="SET NULL", index=True
    )

    # File metadata
    filename: str
    original_filename: str
    file_path: str

    status: str = Field(default=ImportStatus.PENDING.value, index=True)

    # Progress counters
    total_rows: int = Field(default=0)
    processed_rows: int = Field(default=0)
    successful_imports: int = Field(default=0)
    failed_imports: int = Field(default=0)
    duplicate_contacts: int = Field(default=0)

    field_mapping: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    # Example: {"Email Address": "email", "First": "first_name"}
    import_options: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    errors: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    error_message: Optional[str] = None

    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def progress_percentage(self) -> float:
        if not self.total_rows:
            return 0.0
        return round(self.processed_rows / self.total_rows * 100, 2)

    @property
    def success_rate(self) -> float:
        if not self.processed_rows:
            return 0.0
        return round(self.successful_imports / self.processed_rows * 100, 2)

    @property
    def duration(self) -> Optional[str]:
        if not self.started_at or not self.completed_at:
            return None
        seconds = int((self.completed_at - self.started_at).total_seconds())
        if seconds < 60:
            return f"{seconds} seconds"
        if seconds < 3600:
            return f"{round(seconds / 60, 1)} minutes"
        return f"{round(seconds / 3600, 1)} hours"
