"""
Contact repository with search and scope filters.
"""
import uuid
from typing import Optional
from datetime import datetime

from sqlmodel import select, or_
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func, cast, String

from contactlists.models.contact import Contact, ContactStatus
from contactlists.repositories.base import BaseRepository
from contactlists.schemas.contact import ContactFilter
from contactlists.core.pagination import paginate_query


def search_clause(search: str):
    """Case-insensitive substring match on email, names and company."""
    term = search.strip()
    return or_(
        Contact.email.icontains(term, autoescape=True),
        Contact.first_name.icontains(term, autoescape=True),
        Contact.last_name.icontains(term, autoescape=True),
        Contact.company.icontains(term, autoescape=True),
    )


def tag_clause(tag: str):
    # tags is a JSON array; match the quoted element in its text form
    return cast(Contact.tags, String).contains(f'"{tag}"', autoescape=True)


class ContactRepository(BaseRepository[Contact]):
    """Repository for Contact operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Contact, session)

    async def search(
        self,
        owner_id: uuid.UUID,
        filters: Optional[ContactFilter] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        """Search contacts with scope filters."""
        query = select(Contact).where(Contact.user_id == owner_id)

        if filters:
            if filters.search:
                query = query.where(search_clause(filters.search))
            if filters.status:
                query = query.where(Contact.status == ContactStatus(filters.status).value)
            if filters.tag:
                query = query.where(tag_clause(filters.tag))
            if filters.email_verified is not None:
                query = query.where(Contact.email_verified == filters.email_verified)

        query = query.order_by(Contact.created_at.desc())
        return await paginate_query(self.session, query, page, limit)

    async def get_by_email(self, owner_id: uuid.UUID, email: str) -> Optional[Contact]:
        """Get contact by normalized email (for deduplication)."""
        query = select(Contact).where(
            Contact.user_id == owner_id,
            Contact.email == email
        )
        result = await self.session.exec(query)
        return result.first()

    async def count_created_before(self, owner_id: uuid.UUID, cutoff: datetime) -> int:
        query = select(func.count()).select_from(Contact).where(
            Contact.user_id == owner_id,
            Contact.created_at < cutoff
        )
        result = await self.session.exec(query)
        return result.one()
