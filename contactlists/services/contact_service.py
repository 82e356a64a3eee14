"""
Contact service - contact management and subscription events.
"""
import logging
import uuid
from typing import Optional, Any, List
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from contactlists.core.exceptions import NotFoundError, AlreadyExistsError, ValidationError
from contactlists.core.security import generate_secure_token
from contactlists.core.transaction import transaction
from contactlists.repositories.contact_repo import ContactRepository
from contactlists.repositories.membership_repo import MembershipRepository
from contactlists.repositories.activity_repo import ContactActivityRepository
from contactlists.models.contact import Contact, ContactStatus
from contactlists.models.activity import ActivityType, ContactActivity
from contactlists.schemas.contact import ContactCreate, ContactUpdate, ContactFilter
from contactlists.services.activity_service import ActivityService
from contactlists.services.custom_field_service import CustomFieldService
from contactlists.services.membership_service import MembershipService

logger = logging.getLogger(__name__)

TRACKED_FIELDS = (
    "email", "first_name", "last_name", "phone", "company",
    "job_title", "custom_fields", "tags",
)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _jsonable(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


class ContactService:
    """Service for contact operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.contact_repo = ContactRepository(session)
        self.membership_repo = MembershipRepository(session)
        self.activity_repo = ContactActivityRepository(session)
        self.activity_service = ActivityService(session)
        self.field_service = CustomFieldService(session)
        self.membership_service = MembershipService(session)

    async def create(
        self,
        owner_id: uuid.UUID,
        contact_data: ContactCreate,
        client_info: Optional[dict] = None
    ) -> Contact:
        """
        Create a contact.

        Raises:
            ValidationError: custom field values fail their definitions
            AlreadyExistsError: the owner already has this email
        """
        data = contact_data.model_dump()
        data["email"] = normalize_email(data["email"])
        data["custom_fields"] = await self.field_service.validate_values(owner_id, data.get("custom_fields") or {})
        data["tags"] = self._clean_tags(data.get("tags") or [])
        data["status"] = ContactStatus(data["status"]).value
        data["user_id"] = owner_id
        data["verification_token"] = generate_secure_token()
        if data["status"] == ContactStatus.SUBSCRIBED.value:
            data["subscribed_at"] = datetime.utcnow()
        if client_info:
            data["ip_address"] = client_info.get("ip_address")
            data["user_agent"] = client_info.get("user_agent")

        if await self.contact_repo.get_by_email(owner_id, data["email"]):
            raise AlreadyExistsError("Contact", "email", data["email"])

        try:
            contact = await self.contact_repo.create(data)
        except IntegrityError:
            await self.session.rollback()
            raise AlreadyExistsError("Contact", "email", data["email"])

        logger.info("Contact %s created for owner %s", contact.id, owner_id)
        return contact

    async def get(self, owner_id: uuid.UUID, contact_id: uuid.UUID) -> Contact:
        """Get a contact by ID; other owners' contacts are reported as missing."""
        contact = await self.contact_repo.get_owned(owner_id, contact_id)
        if not contact:
            raise NotFoundError("Contact", str(contact_id))
        return contact

    async def list(
        self,
        owner_id: uuid.UUID,
        filters: Optional[ContactFilter] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        """List contacts with filtering and pagination."""
        return await self.contact_repo.search(owner_id, filters, page, limit)

    async def update(
        self,
        owner_id: uuid.UUID,
        contact_id: uuid.UUID,
        contact_data: ContactUpdate,
        client_info: Optional[dict] = None
    ) -> Contact:
        """Apply a partial update and record the changed values."""
        contact = await self.get(owner_id, contact_id)
        update_data = contact_data.model_dump(exclude_unset=True)

        if update_data.get("email"):
            update_data["email"] = normalize_email(update_data["email"])
            if update_data["email"] != contact.email:
                if await self.contact_repo.get_by_email(owner_id, update_data["email"]):
                    raise AlreadyExistsError("Contact", "email", update_data["email"])
        elif "email" in update_data:
            raise ValidationError.for_field("email", "The email field is required.")

        # null custom_fields leaves the stored values unchanged
        if "custom_fields" in update_data and update_data["custom_fields"] is None:
            del update_data["custom_fields"]
        if "custom_fields" in update_data:
            merged = {**(contact.custom_fields or {}), **update_data["custom_fields"]}
            update_data["custom_fields"] = await self.field_service.validate_values(
                owner_id, merged, apply_defaults=False
            )
        if "tags" in update_data:
            update_data["tags"] = self._clean_tags(update_data["tags"] or [])

        changes = {
            field: value for field, value in update_data.items()
            if field in TRACKED_FIELDS and getattr(contact, field) != value
        }
        if not changes:
            return contact

        old_values = {field: _jsonable(getattr(contact, field)) for field in changes}
        changes["last_activity_at"] = datetime.utcnow()

        try:
            async with transaction(self.session):
                await self.contact_repo.update(contact, changes, commit=False)
                await self.activity_service.record(
                    owner_id, contact, ActivityType.UPDATED,
                    description="Contact updated",
                    old_values=old_values,
                    new_values={field: _jsonable(changes[field]) for field in old_values},
                    client_info=client_info,
                    commit=False
                )
        except IntegrityError:
            raise AlreadyExistsError("Contact", "email", changes.get("email"))

        return await self.get(owner_id, contact_id)

    async def delete(self, owner_id: uuid.UUID, contact_id: uuid.UUID) -> None:
        """Delete a contact, detaching it from every list first."""
        contact = await self.get(owner_id, contact_id)

        async with transaction(self.session):
            list_ids = await self.membership_service.detach_contact_everywhere(contact)
            await self.activity_repo.delete_for_contact(contact.id)
            await self.contact_repo.delete(contact, commit=False)

        logger.info("Contact %s deleted, detached from %d lists", contact_id, len(list_ids))

    # Subscription and verification events

    async def _transition(
        self,
        owner_id: uuid.UUID,
        contact_id: uuid.UUID,
        changes: dict,
        activity_type: ActivityType,
        description: str,
        properties: Optional[dict] = None,
        client_info: Optional[dict] = None
    ) -> Contact:
        """Update the contact and append the matching activity in one transaction."""
        contact = await self.get(owner_id, contact_id)
        changes = {**changes, "last_activity_at": datetime.utcnow()}

        async with transaction(self.session):
            await self.contact_repo.update(contact, changes, commit=False)
            await self.activity_service.record(
                owner_id, contact, activity_type,
                description=description,
                properties=properties,
                client_info=client_info,
                commit=False
            )

        return await self.get(owner_id, contact_id)

    async def subscribe(
        self,
        owner_id: uuid.UUID,
        contact_id: uuid.UUID,
        source: str = "manual",
        client_info: Optional[dict] = None
    ) -> Contact:
        return await self._transition(
            owner_id, contact_id,
            {
                "status": ContactStatus.SUBSCRIBED.value,
                "subscribed_at": datetime.utcnow(),
                "unsubscribed_at": None,
                "unsubscribe_reason": None,
            },
            ActivityType.SUBSCRIBED, "Contact subscribed",
            properties={"source": source},
            client_info=client_info
        )

    async def unsubscribe(
        self,
        owner_id: uuid.UUID,
        contact_id: uuid.UUID,
        reason: Optional[str] = None,
        client_info: Optional[dict] = None
    ) -> Contact:
        return await self._transition(
            owner_id, contact_id,
            {
                "status": ContactStatus.UNSUBSCRIBED.value,
                "unsubscribed_at": datetime.utcnow(),
                "unsubscribe_reason": reason,
            },
            ActivityType.UNSUBSCRIBED, "Contact unsubscribed",
            properties={"reason": reason} if reason else None,
            client_info=client_info
        )

    async def mark_bounced(self, owner_id: uuid.UUID, contact_id: uuid.UUID, client_info: Optional[dict] = None) -> Contact:
        return await self._transition(
            owner_id, contact_id,
            {"status": ContactStatus.BOUNCED.value},
            ActivityType.BOUNCED, "Email bounced",
            client_info=client_info
        )

    async def mark_complained(self, owner_id: uuid.UUID, contact_id: uuid.UUID, client_info: Optional[dict] = None) -> Contact:
        return await self._transition(
            owner_id, contact_id,
            {"status": ContactStatus.COMPLAINED.value},
            ActivityType.COMPLAINED, "Spam complaint received",
            client_info=client_info
        )

    async def verify(self, owner_id: uuid.UUID, contact_id: uuid.UUID, client_info: Optional[dict] = None) -> Contact:
        return await self._transition(
            owner_id, contact_id,
            {
                "email_verified": True,
                "email_verified_at": datetime.utcnow(),
                "verification_token": None,
            },
            ActivityType.EMAIL_VERIFIED, "Email address verified",
            client_info=client_info
        )

    # Tags and custom fields

    @staticmethod
    def _clean_tags(tags: List[str]) -> List[str]:
        """Strip, drop blanks and de-duplicate while keeping order."""
        cleaned: List[str] = []
        for tag in tags:
            tag = tag.strip()
            if tag and tag not in cleaned:
                cleaned.append(tag)
        return cleaned

    async def add_tag(self, owner_id: uuid.UUID, contact_id: uuid.UUID, tag: str, client_info: Optional[dict] = None) -> Contact:
        tag = tag.strip()
        if not tag:
            raise ValidationError.for_field("tag", "The tag field is required.")

        contact = await self.get(owner_id, contact_id)
        tags = list(contact.tags or [])
        if tag in tags:
            return contact

        return await self._transition(
            owner_id, contact_id,
            {"tags": tags + [tag]},
            ActivityType.TAG_ADDED, "Tag added",
            properties={"tag": tag},
            client_info=client_info
        )

    async def remove_tag(self, owner_id: uuid.UUID, contact_id: uuid.UUID, tag: str, client_info: Optional[dict] = None) -> Contact:
        contact = await self.get(owner_id, contact_id)
        tags = list(contact.tags or [])
        if tag not in tags:
            return contact

        return await self._transition(
            owner_id, contact_id,
            {"tags": [existing for existing in tags if existing != tag]},
            ActivityType.TAG_REMOVED, "Tag removed",
            properties={"tag": tag},
            client_info=client_info
        )

    async def update_custom_field(
        self,
        owner_id: uuid.UUID,
        contact_id: uuid.UUID,
        field: str,
        value: Any,
        client_info: Optional[dict] = None
    ) -> Contact:
        """Set one custom field value, checked against its definition if there is one."""
        contact = await self.get(owner_id, contact_id)
        await self.field_service.validate_single(owner_id, field, value)

        custom_fields = dict(contact.custom_fields or {})
        old_value = custom_fields.get(field)
        custom_fields[field] = value

        return await self._transition(
            owner_id, contact_id,
            {"custom_fields": custom_fields},
            ActivityType.CUSTOM_FIELD_UPDATED, "Custom field updated",
            properties={"field": field, "old_value": old_value, "new_value": value},
            client_info=client_info
        )

    async def get_activities(
        self,
        owner_id: uuid.UUID,
        contact_id: uuid.UUID,
        activity_type: Optional[str] = None,
        source: Optional[str] = None,
        days: Optional[int] = None,
        limit: int = 50
    ) -> List[ContactActivity]:
        await self.get(owner_id, contact_id)
        return await self.activity_service.get_for_contact(
            owner_id, contact_id, activity_type, source, days, limit
        )
