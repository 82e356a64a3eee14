"""
Contact activity repository.
"""
import uuid
from typing import Optional, List
from datetime import datetime, timedelta

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from contactlists.models.activity import ContactActivity
from contactlists.repositories.base import BaseRepository


class ContactActivityRepository(BaseRepository[ContactActivity]):
    """Repository for ContactActivity operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(ContactActivity, session)

    async def log(
        self,
        contact_id: uuid.UUID,
        owner_id: uuid.UUID,
        activity_type: str,
        description: Optional[str] = None,
        properties: Optional[dict] = None,
        old_values: Optional[dict] = None,
        new_values: Optional[dict] = None,
        source: Optional[str] = "system",
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        commit: bool = True
    ) -> ContactActivity:
        """Append an activity entry."""
        activity = ContactActivity(
            contact_id=contact_id,
            user_id=owner_id,
            activity_type=activity_type,
            description=description,
            properties=properties or {},
            old_values=old_values or {},
            new_values=new_values or {},
            source=source,
            ip_address=ip_address,
            user_agent=user_agent
        )
        return await self._save(activity, commit)

    async def get_for_contact(
        self,
        owner_id: uuid.UUID,
        contact_id: uuid.UUID,
        activity_type: Optional[str] = None,
        source: Optional[str] = None,
        days: Optional[int] = None,
        limit: int = 50
    ) -> List[ContactActivity]:
        """Activity history for one contact, newest first."""
        query = select(ContactActivity).where(
            ContactActivity.user_id == owner_id,
            ContactActivity.contact_id == contact_id
        )
        if activity_type:
            query = query.where(ContactActivity.activity_type == activity_type)
        if source:
            query = query.where(ContactActivity.source == source)
        if days is not None:
            query = query.where(ContactActivity.created_at >= datetime.utcnow() - timedelta(days=days))

        query = query.order_by(ContactActivity.created_at.desc()).limit(limit)
        result = await self.session.exec(query)
        return result.all()

    async def get_recent_for_contacts(
        self,
        owner_id: uuid.UUID,
        contact_ids: List[uuid.UUID],
        limit: int = 5
    ) -> List[ContactActivity]:
        """Most recent activity across a set of contacts."""
        if not contact_ids:
            return []
        query = select(ContactActivity).where(
            ContactActivity.user_id == owner_id,
            ContactActivity.contact_id.in_(contact_ids)
        ).order_by(ContactActivity.created_at.desc()).limit(limit)
        result = await self.session.exec(query)
        return result.all()

    async def delete_for_contact(self, contact_id: uuid.UUID) -> None:
        """Remove a contact's history when the contact itself is deleted."""
        query = select(ContactActivity).where(ContactActivity.contact_id == contact_id)
        result = await self.session.exec(query)
        for activity in result.all():
            await self.session.delete(activity)
        await self.session.flush()
