"""
Contact import job routes.
The ingestion worker reports progress through these endpoints.
"""
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from contactlists.database import get_session
from contactlists.services.import_service import ImportService, error_summary
from contactlists.schemas.common import PaginatedResponse
from contactlists.schemas.contact_import import (
    ImportCreate, ImportProgress, ImportErrorEntry, ImportFailure, ImportResponse
)
from contactlists.models.contact_import import ContactImport, ImportStatus
from contactlists.api.deps import get_current_user
from contactlists.models.user import User

router = APIRouter(prefix="/api/imports", tags=["imports"])


def _to_response(contact_import: ContactImport) -> ImportResponse:
    response = ImportResponse.model_validate(contact_import)
    response.errors = error_summary(contact_import)
    return response


@router.get("/", response_model=PaginatedResponse[ImportResponse])
async def list_imports(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[ImportStatus] = None,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    import_service = ImportService(session)
    result = await import_service.list(current_user.id, status.value if status else None, page, limit)
    result["items"] = [_to_response(item) for item in result["items"]]
    return result


@router.post("/", response_model=ImportResponse, status_code=201)
async def create_import(
    import_data: ImportCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Register an uploaded file as a pending import."""
    import_service = ImportService(session)
    return _to_response(await import_service.create(current_user.id, import_data))


@router.get("/{import_id}", response_model=ImportResponse)
async def get_import(
    import_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    import_service = ImportService(session)
    return _to_response(await import_service.get(current_user.id, import_id))


@router.post("/{import_id}/processing", response_model=ImportResponse)
async def mark_processing(
    import_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    import_service = ImportService(session)
    return _to_response(await import_service.mark_as_processing(current_user.id, import_id))


@router.post("/{import_id}/progress", response_model=ImportResponse)
async def update_progress(
    import_id: uuid.UUID,
    progress: ImportProgress,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    import_service = ImportService(session)
    return _to_response(await import_service.update_progress(current_user.id, import_id, progress))


@router.post("/{import_id}/errors", response_model=ImportResponse)
async def add_import_error(
    import_id: uuid.UUID,
    entry: ImportErrorEntry,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    import_service = ImportService(session)
    return _to_response(
        await import_service.add_error(current_user.id, import_id, entry.row, entry.error)
    )


@router.post("/{import_id}/fail", response_model=ImportResponse)
async def mark_failed(
    import_id: uuid.UUID,
    failure: ImportFailure,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    import_service = ImportService(session)
    return _to_response(
        await import_service.mark_as_failed(current_user.id, import_id, failure.error_message)
    )


@router.post("/{import_id}/complete", response_model=ImportResponse)
async def mark_completed(
    import_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    import_service = ImportService(session)
    return _to_response(await import_service.mark_as_completed(current_user.id, import_id))
