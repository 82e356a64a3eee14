"""
Contact import service - job record lifecycle.

Row ingestion runs outside this service; it reports back through
mark_as_processing, update_progress, add_error, mark_as_failed and
mark_as_completed.
"""
import logging
import uuid
from typing import Optional, List
from datetime import datetime

from sqlmodel.ext.asyncio.session import AsyncSession

from contactlists.config import settings
from contactlists.core.exceptions import NotFoundError, ConflictError, ValidationError
from contactlists.models.contact_import import ContactImport, ImportStatus
from contactlists.repositories.contact_list_repo import ContactListRepository
from contactlists.repositories.import_repo import ContactImportRepository
from contactlists.schemas.contact_import import ImportCreate, ImportProgress

logger = logging.getLogger(__name__)


class ImportService:
    """Service for contact import jobs."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.import_repo = ContactImportRepository(session)
        self.list_repo = ContactListRepository(session)

    async def create(self, owner_id: uuid.UUID, import_data: ImportCreate) -> ContactImport:
        """Register a pending import. The target list, if any, must be owned."""
        if import_data.contact_list_id and not await self.list_repo.get_owned(
            owner_id, import_data.contact_list_id
        ):
            raise NotFoundError("Contact list", str(import_data.contact_list_id))

        data = import_data.model_dump()
        data["user_id"] = owner_id
        data["status"] = ImportStatus.PENDING.value
        contact_import = await self.import_repo.create(data)

        logger.info("Import %s registered for %s", contact_import.id, contact_import.original_filename)
        return contact_import

    async def get(self, owner_id: uuid.UUID, import_id: uuid.UUID) -> ContactImport:
        contact_import = await self.import_repo.get_owned(owner_id, import_id)
        if not contact_import:
            raise NotFoundError("Import", str(import_id))
        return contact_import

    async def list(
        self,
        owner_id: uuid.UUID,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        return await self.import_repo.list_paginated(
            owner_id=owner_id,
            filters={"status": status},
            page=page,
            limit=limit
        )

    @staticmethod
    def _require_status(contact_import: ContactImport, *allowed: ImportStatus) -> None:
        if contact_import.status not in [status.value for status in allowed]:
            raise ConflictError(f"Import is {contact_import.status}")

    async def mark_as_processing(self, owner_id: uuid.UUID, import_id: uuid.UUID) -> ContactImport:
        contact_import = await self.get(owner_id, import_id)
        self._require_status(contact_import, ImportStatus.PENDING)

        return await self.import_repo.update(contact_import, {
            "status": ImportStatus.PROCESSING.value,
            "started_at": datetime.utcnow(),
        })

    async def update_progress(
        self,
        owner_id: uuid.UUID,
        import_id: uuid.UUID,
        progress: ImportProgress
    ) -> ContactImport:
        """
        Report ingestion progress.

        processed is the absolute number of rows handled so far and may not
        go backwards; successful, failed and duplicates are added to the
        running totals.
        """
        contact_import = await self.get(owner_id, import_id)
        self._require_status(contact_import, ImportStatus.PROCESSING)

        if progress.processed < contact_import.processed_rows:
            raise ValidationError.for_field(
                "processed",
                f"Processed rows cannot decrease (currently {contact_import.processed_rows})."
            )

        return await self.import_repo.update(contact_import, {
            "processed_rows": progress.processed,
            "successful_imports": contact_import.successful_imports + progress.successful,
            "failed_imports": contact_import.failed_imports + progress.failed,
            "duplicate_contacts": contact_import.duplicate_contacts + progress.duplicates,
        })

    async def add_error(
        self,
        owner_id: uuid.UUID,
        import_id: uuid.UUID,
        row: str,
        error: str
    ) -> ContactImport:
        contact_import = await self.get(owner_id, import_id)
        errors = list(contact_import.errors or [])
        errors.append({
            "row": row,
            "error": error,
            "timestamp": datetime.utcnow().isoformat(),
        })
        # Reassign so the JSON column is flagged dirty
        return await self.import_repo.update(contact_import, {"errors": errors})

    async def mark_as_failed(
        self,
        owner_id: uuid.UUID,
        import_id: uuid.UUID,
        error_message: str
    ) -> ContactImport:
        contact_import = await self.get(owner_id, import_id)
        self._require_status(contact_import, ImportStatus.PENDING, ImportStatus.PROCESSING)

        logger.warning("Import %s failed: %s", import_id, error_message)
        return await self.import_repo.update(contact_import, {
            "status": ImportStatus.FAILED.value,
            "error_message": error_message,
            "completed_at": datetime.utcnow(),
        })

    async def mark_as_completed(self, owner_id: uuid.UUID, import_id: uuid.UUID) -> ContactImport:
        contact_import = await self.get(owner_id, import_id)
        self._require_status(contact_import, ImportStatus.PROCESSING)

        contact_import = await self.import_repo.update(contact_import, {
            "status": ImportStatus.COMPLETED.value,
            "completed_at": datetime.utcnow(),
        })
        logger.info(
            "Import %s completed: %d imported, %d failed, %d duplicates",
            import_id,
            contact_import.successful_imports,
            contact_import.failed_imports,
            contact_import.duplicate_contacts
        )
        return contact_import


def error_summary(contact_import: ContactImport, limit: Optional[int] = None) -> List[dict]:
    """First errors of an import, for display."""
    return list(contact_import.errors or [])[:limit or settings.MAX_IMPORT_ERRORS_RETURNED]
