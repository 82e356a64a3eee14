"""
Contact list service - list management workflows.

Validation failures surface field by field before anything is written.
Storage failures are logged, rolled back and reported with a generic
user-safe message.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional, List, Tuple
from datetime import datetime, timedelta

import pydantic
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from contactlists.config import settings
from contactlists.core.exceptions import NotFoundError, ValidationError, OperationFailedError
from contactlists.core.transaction import transaction
from contactlists.models.contact import ContactStatus
from contactlists.models.contact_list import ContactList, SubscriptionStatus
from contactlists.repositories.contact_list_repo import ContactListRepository
from contactlists.repositories.contact_repo import ContactRepository
from contactlists.repositories.import_repo import ContactImportRepository
from contactlists.repositories.membership_repo import MembershipRepository
from contactlists.schemas.common import field_errors
from contactlists.schemas.contact_list import ContactListForm, ListFilter
from contactlists.services.activity_service import ActivityService
from contactlists.services.membership_service import MembershipService

logger = logging.getLogger(__name__)

BULK_ACTIONS = ("activate", "deactivate", "delete")


class Messages:
    LIST_CREATED = "Contact list created successfully!"
    LIST_UPDATED = "Contact list updated successfully!"
    LIST_DELETED = "Contact list deleted successfully!"
    STATUS_UPDATED = "List status updated successfully!"
    BULK_DONE = "{count} lists {verb} successfully!"
    FAILED = "Failed to {action}. Please try again."


class ContactListService:
    """Service for contact list operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.list_repo = ContactListRepository(session)
        self.contact_repo = ContactRepository(session)
        self.membership_repo = MembershipRepository(session)
        self.import_repo = ContactImportRepository(session)
        self.membership_service = MembershipService(session)
        self.activity_service = ActivityService(session)

    @asynccontextmanager
    async def _guarded(self, action: str):
        """Convert storage failures into a user-safe OperationFailedError."""
        try:
            yield
        except SQLAlchemyError:
            logger.exception("Contact list operation failed: %s", action)
            await self.session.rollback()
            raise OperationFailedError(Messages.FAILED.format(action=action))

    @staticmethod
    def validate(data: dict) -> ContactListForm:
        """
        Check a list form against the list rules.

        Raises:
            ValidationError: one message per violated field
        """
        try:
            return ContactListForm.model_validate(data)
        except pydantic.ValidationError as exc:
            raise ValidationError(field_errors(exc))

    async def get(self, owner_id: uuid.UUID, list_id: uuid.UUID) -> ContactList:
        """Get a list by ID; other owners' lists are reported as missing."""
        contact_list = await self.list_repo.get_owned(owner_id, list_id)
        if not contact_list:
            raise NotFoundError("Contact list", str(list_id))
        return contact_list

    async def list(
        self,
        owner_id: uuid.UUID,
        filters: Optional[ListFilter] = None,
        page: int = 1,
        limit: Optional[int] = None
    ) -> dict:
        """Filtered, sorted page of the owner's lists plus the total count."""
        return await self.list_repo.search(owner_id, filters, page, limit or settings.LIST_PAGE_SIZE)

    async def create(self, owner_id: uuid.UUID, data: dict) -> ContactList:
        form = self.validate(data)
        values = form.model_dump()
        values["user_id"] = owner_id
        values["contacts_count"] = 0

        async with self._guarded("create contact list"):
            contact_list = await self.list_repo.create(values)

        logger.info("Contact list %s created for owner %s", contact_list.id, owner_id)
        return contact_list

    async def update(self, owner_id: uuid.UUID, list_id: uuid.UUID, data: dict) -> ContactList:
        """Validate the merged form, then apply it."""
        contact_list = await self.get(owner_id, list_id)
        current = {
            "name": contact_list.name,
            "description": contact_list.description,
            "type": contact_list.type,
            "is_active": contact_list.is_active,
            "segmentation_rules": contact_list.segmentation_rules or [],
        }
        provided = {key: value for key, value in data.items() if key in current}
        form = self.validate({**current, **provided})

        async with self._guarded("update contact list"):
            contact_list = await self.list_repo.update(contact_list, form.model_dump())

        logger.info("Contact list %s updated", list_id)
        return contact_list

    async def _remove(self, contact_list: ContactList) -> int:
        """Detach members, release imports that target the list, delete it. Flushes only."""
        detached = await self.membership_service.detach_all(contact_list)
        await self.import_repo.release_list(contact_list.id)
        await self.list_repo.delete(contact_list, commit=False)
        return detached

    async def delete(self, owner_id: uuid.UUID, list_id: uuid.UUID) -> None:
        """Detach all memberships, then remove the list, as one transaction."""
        contact_list = await self.get(owner_id, list_id)

        async with self._guarded("delete contact list"):
            async with transaction(self.session):
                detached = await self._remove(contact_list)

        logger.info("Contact list %s deleted, %d memberships detached", list_id, detached)

    async def toggle_status(self, owner_id: uuid.UUID, list_id: uuid.UUID) -> ContactList:
        contact_list = await self.get(owner_id, list_id)
        async with self._guarded("update list status"):
            return await self.list_repo.update(contact_list, {"is_active": not contact_list.is_active})

    async def bulk_action(
        self,
        owner_id: uuid.UUID,
        ids: List[uuid.UUID],
        action: str,
        confirm: bool = False
    ) -> Tuple[int, str]:
        """
        Apply activate/deactivate/delete to the selected lists.

        Ids the owner does not have are skipped; the count reports the
        lists actually changed. Delete requires confirm=True.

        Returns:
            (count, message)
        """
        errors = {}
        if not ids:
            errors["ids"] = "Select at least one list."
        if action not in BULK_ACTIONS:
            errors["action"] = "The selected action is invalid."
        elif action == "delete" and not confirm:
            errors["confirm"] = "Please confirm deleting the selected lists."
        if errors:
            raise ValidationError(errors)

        async with self._guarded(f"{action} lists"):
            async with transaction(self.session):
                lists = await self.list_repo.get_many_owned(owner_id, list(dict.fromkeys(ids)))
                for contact_list in lists:
                    if action == "delete":
                        await self._remove(contact_list)
                    else:
                        await self.list_repo.update(
                            contact_list, {"is_active": action == "activate"}, commit=False
                        )

        count = len(lists)
        if count < len(set(ids)):
            logger.warning("Bulk %s skipped %d lists not owned by %s", action, len(set(ids)) - count, owner_id)

        verb = {"activate": "activated", "deactivate": "deactivated", "delete": "deleted"}[action]
        return count, Messages.BULK_DONE.format(count=count, verb=verb)

    async def get_stats(self, owner_id: uuid.UUID) -> dict:
        """Aggregate figures for the lists overview."""
        now = datetime.utcnow()
        cutoff = now - timedelta(days=settings.RECENT_LISTS_DAYS)

        total_contacts = await self.contact_repo.count(owner_id)
        previous_contacts = await self.contact_repo.count_created_before(owner_id, cutoff)
        growth = 0.0
        if previous_contacts > 0:
            growth = round((total_contacts - previous_contacts) / previous_contacts * 100, 1)

        top_lists = await self.list_repo.get_top_by_subscribers(owner_id, settings.TOP_LISTS_LIMIT)

        return {
            "total_lists": await self.list_repo.count(owner_id),
            "active_lists": await self.list_repo.count(owner_id, {"is_active": True}),
            "total_contacts": total_contacts,
            "subscribed_contacts": await self.contact_repo.count(
                owner_id, {"status": ContactStatus.SUBSCRIBED.value}
            ),
            "recent_lists": await self.list_repo.count_created_since(owner_id, cutoff),
            "contact_growth": growth,
            "top_lists": [
                {"id": contact_list.id, "name": contact_list.name, "subscribed_count": subscribed}
                for contact_list, subscribed in top_lists
            ],
        }

    async def preview(self, owner_id: uuid.UUID, list_id: uuid.UUID) -> dict:
        """List detail with its newest subscribed contacts and latest member activity."""
        contact_list = await self.get(owner_id, list_id)

        contacts = await self.membership_repo.get_recent_subscribed_contacts(
            list_id, settings.PREVIEW_CONTACTS_LIMIT
        )
        contact_ids = await self.membership_repo.get_contact_ids(list_id)
        activities = await self.activity_service.get_recent_for_contacts(
            owner_id, contact_ids, settings.PREVIEW_ACTIVITIES_LIMIT
        )

        return {
            "contact_list": contact_list,
            "subscribed_count": await self.membership_repo.count_subscribed(list_id),
            "unsubscribed_count": await self.membership_repo.count_by_status(
                list_id, SubscriptionStatus.UNSUBSCRIBED.value
            ),
            "contacts": contacts,
            "recent_activities": activities,
        }

    async def selectable(self, owner_id: uuid.UUID, search: Optional[str] = None) -> List[ContactList]:
        """Active lists for list pickers."""
        return await self.list_repo.get_selectable(owner_id, search)
