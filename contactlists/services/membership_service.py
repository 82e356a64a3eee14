"""
Membership service - attaching contacts to lists.

Every attach/detach/status change recomputes the list's contacts_count
inside the same transaction, so the cached count never commits out of
step with the membership rows.
"""
import logging
import uuid
from typing import Optional, List, Tuple
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from contactlists.core.exceptions import NotFoundError
from contactlists.core.transaction import transaction
from contactlists.models.activity import ActivityType
from contactlists.models.contact import Contact
from contactlists.models.contact_list import ContactList, ContactListMember, SubscriptionStatus
from contactlists.repositories.contact_list_repo import ContactListRepository
from contactlists.repositories.contact_repo import ContactRepository
from contactlists.repositories.membership_repo import MembershipRepository
from contactlists.services.activity_service import ActivityService

logger = logging.getLogger(__name__)


class MembershipService:
    """Service for contact/list membership."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.membership_repo = MembershipRepository(session)
        self.list_repo = ContactListRepository(session)
        self.contact_repo = ContactRepository(session)
        self.activity_service = ActivityService(session)

    async def _load(
        self,
        owner_id: uuid.UUID,
        list_id: uuid.UUID,
        contact_id: uuid.UUID
    ) -> Tuple[ContactList, Contact]:
        contact_list = await self.list_repo.get_owned(owner_id, list_id)
        if not contact_list:
            raise NotFoundError("Contact list", str(list_id))
        contact = await self.contact_repo.get_owned(owner_id, contact_id)
        if not contact:
            raise NotFoundError("Contact", str(contact_id))
        return contact_list, contact

    async def recount(self, contact_list: ContactList) -> int:
        """Recompute the cached subscribed count. Flushes only."""
        count = await self.membership_repo.count_subscribed(contact_list.id)
        await self.list_repo.update(contact_list, {"contacts_count": count}, commit=False)
        return count

    async def add_contact(
        self,
        owner_id: uuid.UUID,
        list_id: uuid.UUID,
        contact_id: uuid.UUID,
        pivot_data: Optional[dict] = None,
        client_info: Optional[dict] = None
    ) -> ContactListMember:
        """
        Attach a contact to a list.

        Defaults to subscribed/now/manual, merged with pivot_data. An
        existing membership is updated in place and keeps its original
        subscribed_at.
        """
        pivot_data = {key: value for key, value in (pivot_data or {}).items() if value is not None}
        try:
            return await self._attach(owner_id, list_id, contact_id, pivot_data, client_info)
        except IntegrityError:
            # A concurrent attach inserted the row first; apply ours as an update
            logger.info("Membership %s/%s inserted concurrently, retrying as update", list_id, contact_id)
            return await self._attach(owner_id, list_id, contact_id, pivot_data, client_info)

    async def _attach(
        self,
        owner_id: uuid.UUID,
        list_id: uuid.UUID,
        contact_id: uuid.UUID,
        pivot_data: dict,
        client_info: Optional[dict]
    ) -> ContactListMember:
        contact_list, contact = await self._load(owner_id, list_id, contact_id)
        now = datetime.utcnow()
        status = pivot_data.get("subscription_status", SubscriptionStatus.SUBSCRIBED.value)
        if isinstance(status, SubscriptionStatus):
            status = status.value

        async with transaction(self.session):
            member = await self.membership_repo.get_pair(list_id, contact_id)
            if member is None:
                data = {
                    "subscribed_at": now,
                    "subscription_source": "manual",
                    **pivot_data,
                    "subscription_status": status,
                    "contact_id": contact_id,
                    "contact_list_id": list_id,
                }
                if status == SubscriptionStatus.UNSUBSCRIBED.value:
                    data["unsubscribed_at"] = now
                member = await self.membership_repo.create(data, commit=False)
                await self.activity_service.record(
                    owner_id, contact, ActivityType.LIST_ADDED,
                    description=f"Added to list {contact_list.name}",
                    properties={"list_id": str(list_id), "list": contact_list.name},
                    client_info=client_info,
                    commit=False
                )
            else:
                changes = self._status_changes(member, status, now)
                changes.update({key: value for key, value in pivot_data.items() if key != "subscription_status"})
                member = await self.membership_repo.update(member, changes, commit=False)

            await self.recount(contact_list)

        logger.info("Contact %s attached to list %s (%s)", contact_id, list_id, member.subscription_status)
        return member

    @staticmethod
    def _status_changes(member: ContactListMember, status: str, now: datetime) -> dict:
        if status == member.subscription_status:
            return {}
        if status == SubscriptionStatus.SUBSCRIBED.value:
            return {
                "subscription_status": status,
                "subscribed_at": member.subscribed_at or now,
                "unsubscribed_at": None,
            }
        return {"subscription_status": status, "unsubscribed_at": now}

    async def remove_contact(
        self,
        owner_id: uuid.UUID,
        list_id: uuid.UUID,
        contact_id: uuid.UUID,
        client_info: Optional[dict] = None
    ) -> bool:
        """Detach a contact. Returns False (not an error) when it was not a member."""
        contact_list, contact = await self._load(owner_id, list_id, contact_id)

        async with transaction(self.session):
            member = await self.membership_repo.get_pair(list_id, contact_id)
            if member is None:
                return False
            await self.membership_repo.delete(member, commit=False)
            await self.activity_service.record(
                owner_id, contact, ActivityType.LIST_REMOVED,
                description=f"Removed from list {contact_list.name}",
                properties={"list_id": str(list_id), "list": contact_list.name},
                client_info=client_info,
                commit=False
            )
            await self.recount(contact_list)

        logger.info("Contact %s detached from list %s", contact_id, list_id)
        return True

    async def update_subscription(
        self,
        owner_id: uuid.UUID,
        list_id: uuid.UUID,
        contact_id: uuid.UUID,
        status: SubscriptionStatus
    ) -> ContactListMember:
        """Move a member between subscribed and unsubscribed on one list."""
        contact_list, _ = await self._load(owner_id, list_id, contact_id)
        status = SubscriptionStatus(status).value

        async with transaction(self.session):
            member = await self.membership_repo.get_pair(list_id, contact_id)
            if member is None:
                raise NotFoundError("List membership")
            changes = self._status_changes(member, status, datetime.utcnow())
            if changes:
                member = await self.membership_repo.update(member, changes, commit=False)
            await self.recount(contact_list)

        return member

    async def list_members(
        self,
        owner_id: uuid.UUID,
        list_id: uuid.UUID,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        if not await self.list_repo.get_owned(owner_id, list_id):
            raise NotFoundError("Contact list", str(list_id))
        return await self.membership_repo.list_members(list_id, status, page, limit)

    async def detach_all(self, contact_list: ContactList) -> int:
        """Remove every membership of a list. Flushes only; caller commits."""
        members = await self.membership_repo.get_for_list(contact_list.id)
        for member in members:
            await self.session.delete(member)
        await self.session.flush()
        contact_list.contacts_count = 0
        return len(members)

    async def detach_contact_everywhere(self, contact: Contact) -> List[uuid.UUID]:
        """Remove a contact from all its lists and recount them. Flushes only."""
        members = await self.membership_repo.get_for_contact(contact.id)
        list_ids = [member.contact_list_id for member in members]
        for member in members:
            await self.session.delete(member)
        await self.session.flush()

        for list_id in list_ids:
            contact_list = await self.list_repo.get(list_id)
            if contact_list:
                await self.recount(contact_list)
        return list_ids
