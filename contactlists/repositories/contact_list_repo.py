"""
Contact list repository with filtering, sorting and statistics.
"""
import logging
import uuid
from typing import Optional, List, Tuple
from datetime import datetime

from sqlmodel import select, or_, and_
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from contactlists.models.contact_list import ContactList, ContactListMember, SubscriptionStatus
from contactlists.repositories.base import BaseRepository
from contactlists.schemas.contact_list import ListFilter
from contactlists.core.pagination import paginate_query

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {"name", "created_at", "updated_at", "contacts_count", "type", "is_active"}
DEFAULT_SORT_FIELD = "created_at"


class ContactListRepository(BaseRepository[ContactList]):
    """Repository for ContactList operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(ContactList, session)

    def _ordering(self, filters: ListFilter):
        if filters.sort_field in SORTABLE_FIELDS:
            column = getattr(ContactList, filters.sort_field)
            descending = filters.sort_direction != "asc"
        else:
            logger.debug("Unknown sort field %r, using created_at desc", filters.sort_field)
            column = getattr(ContactList, DEFAULT_SORT_FIELD)
            descending = True
        return (column.desc() if descending else column.asc()), ContactList.id

    async def search(
        self,
        owner_id: uuid.UUID,
        filters: Optional[ListFilter] = None,
        page: int = 1,
        limit: int = 10
    ) -> dict:
        """Filter, sort and paginate the owner's lists."""
        filters = filters or ListFilter()
        query = select(ContactList).where(ContactList.user_id == owner_id)

        if filters.search:
            term = filters.search.strip()
            query = query.where(
                or_(
                    ContactList.name.icontains(term, autoescape=True),
                    ContactList.description.icontains(term, autoescape=True)
                )
            )
        if filters.type != "all":
            query = query.where(ContactList.type == filters.type)
        if filters.status != "all":
            query = query.where(ContactList.is_active == (filters.status == "active"))

        query = query.order_by(*self._ordering(filters))
        return await paginate_query(self.session, query, page, limit)

    async def get_many_owned(self, owner_id: uuid.UUID, ids: List[uuid.UUID]) -> List[ContactList]:
        """Load the given lists, silently skipping ids the owner does not have."""
        if not ids:
            return []
        query = select(ContactList).where(
            ContactList.user_id == owner_id,
            ContactList.id.in_(ids)
        )
        result = await self.session.exec(query)
        return result.all()

    async def get_selectable(self, owner_id: uuid.UUID, search: Optional[str] = None) -> List[ContactList]:
        """Active lists for pickers, ordered by name."""
        query = select(ContactList).where(
            ContactList.user_id == owner_id,
            ContactList.is_active == True  # noqa: E712
        )
        if search:
            query = query.where(ContactList.name.icontains(search.strip(), autoescape=True))
        result = await self.session.exec(query.order_by(ContactList.name))
        return result.all()

    async def count_created_since(self, owner_id: uuid.UUID, since: datetime) -> int:
        query = select(func.count()).select_from(ContactList).where(
            ContactList.user_id == owner_id,
            ContactList.created_at >= since
        )
        result = await self.session.exec(query)
        return result.one()

    async def get_top_by_subscribers(self, owner_id: uuid.UUID, limit: int = 5) -> List[Tuple[ContactList, int]]:
        """Lists with the most subscribed members, counted live from memberships."""
        subscribed = func.count(ContactListMember.id).label("subscribed_count")
        query = (
            select(ContactList, subscribed)
            .outerjoin(
                ContactListMember,
                and_(
                    ContactListMember.contact_list_id == ContactList.id,
                    ContactListMember.subscription_status == SubscriptionStatus.SUBSCRIBED.value
                )
            )
            .where(ContactList.user_id == owner_id)
            .group_by(ContactList.id)
            .order_by(subscribed.desc(), ContactList.name)
            .limit(limit)
        )
        result = await self.session.exec(query)
        return [(row[0], row[1]) for row in result.all()]
