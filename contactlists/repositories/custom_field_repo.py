"""
Custom field definition repository.
"""
import uuid
from typing import Optional, List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from contactlists.models.custom_field import ContactCustomField
from contactlists.repositories.base import BaseRepository


class CustomFieldRepository(BaseRepository[ContactCustomField]):
    """Repository for ContactCustomField operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(ContactCustomField, session)

    async def get_by_name(self, owner_id: uuid.UUID, name: str) -> Optional[ContactCustomField]:
        query = select(ContactCustomField).where(
            ContactCustomField.user_id == owner_id,
            ContactCustomField.name == name
        )
        result = await self.session.exec(query)
        return result.first()

    async def get_ordered(self, owner_id: uuid.UUID, active_only: bool = False) -> List[ContactCustomField]:
        query = select(ContactCustomField).where(ContactCustomField.user_id == owner_id)
        if active_only:
            query = query.where(ContactCustomField.is_active == True)  # noqa: E712
        query = query.order_by(ContactCustomField.sort_order, ContactCustomField.name)
        result = await self.session.exec(query)
        return result.all()
