"""
Membership repository - typed access to contact/list junction rows.
"""
import uuid
from typing import Optional, List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from contactlists.models.contact import Contact
from contactlists.models.contact_list import ContactListMember, SubscriptionStatus
from contactlists.repositories.base import BaseRepository
from contactlists.core.pagination import paginate_query


class MembershipRepository(BaseRepository[ContactListMember]):
    """Repository for ContactListMember operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(ContactListMember, session)

    async def get_pair(self, list_id: uuid.UUID, contact_id: uuid.UUID) -> Optional[ContactListMember]:
        query = select(ContactListMember).where(
            ContactListMember.contact_list_id == list_id,
            ContactListMember.contact_id == contact_id
        )
        result = await self.session.exec(query)
        return result.first()

    async def count_by_status(self, list_id: uuid.UUID, status: str) -> int:
        query = select(func.count()).select_from(ContactListMember).where(
            ContactListMember.contact_list_id == list_id,
            ContactListMember.subscription_status == status
        )
        result = await self.session.exec(query)
        return result.one()

    async def count_subscribed(self, list_id: uuid.UUID) -> int:
        return await self.count_by_status(list_id, SubscriptionStatus.SUBSCRIBED.value)

    async def get_for_list(self, list_id: uuid.UUID) -> List[ContactListMember]:
        query = select(ContactListMember).where(ContactListMember.contact_list_id == list_id)
        result = await self.session.exec(query)
        return result.all()

    async def get_for_contact(self, contact_id: uuid.UUID) -> List[ContactListMember]:
        query = select(ContactListMember).where(ContactListMember.contact_id == contact_id)
        result = await self.session.exec(query)
        return result.all()

    async def get_contact_ids(self, list_id: uuid.UUID) -> List[uuid.UUID]:
        query = select(ContactListMember.contact_id).where(ContactListMember.contact_list_id == list_id)
        result = await self.session.exec(query)
        return result.all()

    async def list_members(
        self,
        list_id: uuid.UUID,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        """Page of (Contact, ContactListMember) rows for one list."""
        query = (
            select(Contact, ContactListMember)
            .join(ContactListMember, ContactListMember.contact_id == Contact.id)
            .where(ContactListMember.contact_list_id == list_id)
        )
        if status:
            query = query.where(ContactListMember.subscription_status == status)
        query = query.order_by(ContactListMember.created_at.desc(), ContactListMember.id)
        return await paginate_query(self.session, query, page, limit)

    async def get_recent_subscribed_contacts(self, list_id: uuid.UUID, limit: int = 10) -> List[Contact]:
        query = (
            select(Contact)
            .join(ContactListMember, ContactListMember.contact_id == Contact.id)
            .where(
                ContactListMember.contact_list_id == list_id,
                ContactListMember.subscription_status == SubscriptionStatus.SUBSCRIBED.value
            )
            .order_by(Contact.created_at.desc())
            .limit(limit)
        )
        result = await self.session.exec(query)
        return result.all()
