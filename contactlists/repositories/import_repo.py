"""
Contact import repository.
"""
import uuid

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from contactlists.models.contact_import import ContactImport
from contactlists.repositories.base import BaseRepository


class ContactImportRepository(BaseRepository[ContactImport]):
    """Repository for ContactImport operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(ContactImport, session)

    async def release_list(self, list_id: uuid.UUID) -> int:
        """Clear the target list on imports pointing at a list about to be deleted. Flushes only."""
        query = select(ContactImport).where(ContactImport.contact_list_id == list_id)
        result = await self.session.exec(query)
        imports = result.all()
        for contact_import in imports:
            await self.update(contact_import, {"contact_list_id": None}, commit=False)
        return len(imports)
