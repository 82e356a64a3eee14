"""
Activity service - contact activity logging.
"""
import uuid
from typing import Optional, List, Union

from sqlmodel.ext.asyncio.session import AsyncSession

from contactlists.core.exceptions import ForbiddenError
from contactlists.repositories.activity_repo import ContactActivityRepository
from contactlists.models.activity import ContactActivity, ActivityType
from contactlists.models.contact import Contact


class ActivityService:
    """Service for contact activity logging."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.activity_repo = ContactActivityRepository(session)

    async def record(
        self,
        owner_id: uuid.UUID,
        contact: Contact,
        activity_type: Union[ActivityType, str],
        description: Optional[str] = None,
        properties: Optional[dict] = None,
        old_values: Optional[dict] = None,
        new_values: Optional[dict] = None,
        client_info: Optional[dict] = None,
        source: str = "system",
        commit: bool = True
    ) -> ContactActivity:
        """
        Append an activity row for a contact.

        Raises:
            ForbiddenError: the contact belongs to another owner
        """
        if contact.user_id != owner_id:
            raise ForbiddenError("Cannot record activity for a contact you do not own")

        if isinstance(activity_type, ActivityType):
            activity_type = activity_type.value
        client_info = client_info or {}

        return await self.activity_repo.log(
            contact_id=contact.id,
            owner_id=owner_id,
            activity_type=activity_type,
            description=description,
            properties=properties,
            old_values=old_values,
            new_values=new_values,
            source=source,
            ip_address=client_info.get("ip_address"),
            user_agent=client_info.get("user_agent"),
            commit=commit
        )

    async def get_for_contact(
        self,
        owner_id: uuid.UUID,
        contact_id: uuid.UUID,
        activity_type: Optional[str] = None,
        source: Optional[str] = None,
        days: Optional[int] = None,
        limit: int = 50
    ) -> List[ContactActivity]:
        """Get activity for a specific contact."""
        return await self.activity_repo.get_for_contact(
            owner_id, contact_id, activity_type, source, days, limit
        )

    async def get_recent_for_contacts(
        self,
        owner_id: uuid.UUID,
        contact_ids: List[uuid.UUID],
        limit: int = 5
    ) -> List[ContactActivity]:
        return await self.activity_repo.get_recent_for_contacts(owner_id, contact_ids, limit)
