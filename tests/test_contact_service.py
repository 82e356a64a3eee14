"""
Tests for contacts: creation, updates, status events, tags and activity.
"""
import pytest
from sqlmodel import select

from contactlists.core.exceptions import AlreadyExistsError, ConflictError, ForbiddenError, ValidationError
from contactlists.models.activity import ContactActivity, ActivityType
from contactlists.models.contact import Contact
from contactlists.schemas.contact import ContactCreate, ContactUpdate, ContactFilter
from contactlists.schemas.custom_field import CustomFieldCreate
from contactlists.services.activity_service import ActivityService
from contactlists.services.contact_service import ContactService
from contactlists.services.custom_field_service import CustomFieldService


async def _activities(session, contact_id):
    result = await session.exec(
        select(ContactActivity).where(ContactActivity.contact_id == contact_id)
    )
    return result.all()


class TestCreate:

    async def test_email_is_normalized(self, db_session, owner):
        contact = await ContactService(db_session).create(
            owner.id, ContactCreate(email="Jane.Doe@Example.COM", first_name="Jane", last_name="Doe")
        )

        assert contact.email == "jane.doe@example.com"
        assert contact.status == "subscribed"
        assert contact.subscribed_at is not None
        assert contact.verification_token
        assert contact.full_name == "Jane Doe"
        assert contact.initials == "JD"

    async def test_duplicate_email_conflicts(self, db_session, owner):
        service = ContactService(db_session)
        await service.create(owner.id, ContactCreate(email="dup@example.com"))

        with pytest.raises(ConflictError):
            await service.create(owner.id, ContactCreate(email="DUP@example.com"))

        result = await db_session.exec(select(Contact).where(Contact.user_id == owner.id))
        assert len(result.all()) == 1

    async def test_same_email_for_different_owners(self, db_session, owner, other_owner):
        service = ContactService(db_session)

        await service.create(owner.id, ContactCreate(email="shared@example.com"))
        await service.create(other_owner.id, ContactCreate(email="shared@example.com"))

    async def test_tags_are_cleaned(self, db_session, owner):
        contact = await ContactService(db_session).create(
            owner.id, ContactCreate(email="t@example.com", tags=[" vip ", "vip", "", "beta"])
        )

        assert contact.tags == ["vip", "beta"]

    async def test_custom_fields_take_defaults_and_are_validated(self, db_session, owner):
        fields = CustomFieldService(db_session)
        await fields.create(owner.id, CustomFieldCreate(
            name="plan", label="Plan", type="select", options=["free", "pro"], default_value="free"
        ))
        await fields.create(owner.id, CustomFieldCreate(name="seats", label="Seats", type="number"))
        service = ContactService(db_session)

        contact = await service.create(owner.id, ContactCreate(email="a@example.com"))
        assert contact.custom_fields == {"plan": "free"}

        with pytest.raises(ValidationError) as exc_info:
            await service.create(owner.id, ContactCreate(
                email="b@example.com", custom_fields={"plan": "enterprise", "seats": "lots"}
            ))

        assert set(exc_info.value.errors) == {"custom_fields.plan", "custom_fields.seats"}


class TestUpdate:

    async def test_update_records_old_and_new_values(self, db_session, owner, make_contact):
        contact = await make_contact(owner, "a@example.com", company="Acme")
        service = ContactService(db_session)

        updated = await service.update(owner.id, contact.id, ContactUpdate(company="Globex", first_name="Ann"))

        assert updated.company == "Globex"
        activities = await _activities(db_session, contact.id)
        assert len(activities) == 1
        assert activities[0].activity_type == ActivityType.UPDATED.value
        assert activities[0].old_values == {"company": "Acme", "first_name": None}
        assert activities[0].new_values == {"company": "Globex", "first_name": "Ann"}

    async def test_noop_update_records_nothing(self, db_session, owner, make_contact):
        contact = await make_contact(owner, "a@example.com", company="Acme")

        await ContactService(db_session).update(owner.id, contact.id, ContactUpdate(company="Acme"))

        assert await _activities(db_session, contact.id) == []

    async def test_explicit_null_clears_a_field(self, db_session, owner, make_contact):
        contact = await make_contact(owner, "a@example.com", phone="555-0100", company="Acme", tags=["vip"])
        service = ContactService(db_session)

        updated = await service.update(
            owner.id, contact.id, ContactUpdate.model_validate({"phone": None, "tags": None})
        )

        assert updated.phone is None
        assert updated.tags == []
        assert updated.company == "Acme"
        activities = await _activities(db_session, contact.id)
        assert activities[0].old_values == {"phone": "555-0100", "tags": ["vip"]}

    async def test_null_custom_fields_leave_values_alone(self, db_session, owner, make_contact):
        contact = await make_contact(owner, "a@example.com", custom_fields={"plan": "pro"})

        updated = await ContactService(db_session).update(
            owner.id, contact.id, ContactUpdate.model_validate({"custom_fields": None})
        )

        assert updated.custom_fields == {"plan": "pro"}
        assert await _activities(db_session, contact.id) == []

    async def test_email_change_to_taken_address(self, db_session, owner, make_contact):
        await make_contact(owner, "taken@example.com")
        contact = await make_contact(owner, "mine@example.com")

        with pytest.raises(AlreadyExistsError):
            await ContactService(db_session).update(owner.id, contact.id, ContactUpdate(email="Taken@example.com"))


class TestStatusEvents:

    async def test_unsubscribe_then_subscribe(self, db_session, owner, make_contact):
        contact = await make_contact(owner, "a@example.com")
        service = ContactService(db_session)

        contact = await service.unsubscribe(owner.id, contact.id, reason="Too many emails")
        assert contact.status == "unsubscribed"
        assert contact.unsubscribe_reason == "Too many emails"
        assert contact.unsubscribed_at is not None

        contact = await service.subscribe(owner.id, contact.id, source="form")
        assert contact.status == "subscribed"
        assert contact.unsubscribed_at is None
        assert contact.unsubscribe_reason is None

        kinds = sorted(activity.activity_type for activity in await _activities(db_session, contact.id))
        assert kinds == ["subscribed", "unsubscribed"]

    @pytest.mark.parametrize("method, status, activity_type", [
        ("mark_bounced", "bounced", ActivityType.BOUNCED),
        ("mark_complained", "complained", ActivityType.COMPLAINED),
    ])
    async def test_delivery_events(self, db_session, owner, make_contact, method, status, activity_type):
        contact = await make_contact(owner, "a@example.com")

        contact = await getattr(ContactService(db_session), method)(owner.id, contact.id)

        assert contact.status == status
        assert contact.last_activity_at is not None
        activities = await _activities(db_session, contact.id)
        assert [activity.kind for activity in activities] == [activity_type]

    async def test_verify(self, db_session, owner, make_contact):
        contact = await make_contact(owner, "a@example.com", verification_token="abc")

        contact = await ContactService(db_session).verify(owner.id, contact.id)

        assert contact.email_verified is True
        assert contact.email_verified_at is not None
        assert contact.verification_token is None

    async def test_failed_activity_rolls_back_status(self, db_session, owner, make_contact, monkeypatch):
        contact = await make_contact(owner, "a@example.com")
        service = ContactService(db_session)

        async def broken_record(*args, **kwargs):
            raise RuntimeError("activity store down")

        monkeypatch.setattr(service.activity_service, "record", broken_record)

        with pytest.raises(RuntimeError):
            await service.mark_bounced(owner.id, contact.id)

        await db_session.refresh(contact)
        assert contact.status == "subscribed"


class TestTagsAndCustomFields:

    async def test_add_and_remove_tag(self, db_session, owner, make_contact):
        contact = await make_contact(owner, "a@example.com", tags=["existing"])
        service = ContactService(db_session)

        contact = await service.add_tag(owner.id, contact.id, "vip")
        contact = await service.add_tag(owner.id, contact.id, "vip")
        assert contact.tags == ["existing", "vip"]

        contact = await service.remove_tag(owner.id, contact.id, "existing")
        contact = await service.remove_tag(owner.id, contact.id, "missing")
        assert contact.tags == ["vip"]

        kinds = sorted(activity.activity_type for activity in await _activities(db_session, contact.id))
        assert kinds == ["tag_added", "tag_removed"]

    async def test_tag_filter(self, db_session, owner, make_contact):
        await make_contact(owner, "vip@example.com", tags=["vip"])
        await make_contact(owner, "vipish@example.com", tags=["vip-lite"])

        result = await ContactService(db_session).list(owner.id, ContactFilter(tag="vip"))

        assert [contact.email for contact in result["items"]] == ["vip@example.com"]

    async def test_search_matches_company(self, db_session, owner, make_contact):
        await make_contact(owner, "a@example.com", company="Initech")
        await make_contact(owner, "b@example.com", company="Globex")

        result = await ContactService(db_session).list(owner.id, ContactFilter(search="INIT"))

        assert result["total"] == 1

    async def test_search_wildcards_are_literal(self, db_session, owner, make_contact):
        await make_contact(owner, "abc@example.com")
        await make_contact(owner, "a_c@example.com")

        result = await ContactService(db_session).list(owner.id, ContactFilter(search="a_c"))

        assert [contact.email for contact in result["items"]] == ["a_c@example.com"]

    async def test_update_custom_field(self, db_session, owner, make_contact):
        await CustomFieldService(db_session).create(
            owner.id, CustomFieldCreate(name="age", label="Age", type="number", validation_rules=["min:18"])
        )
        contact = await make_contact(owner, "a@example.com", custom_fields={"age": 20})
        service = ContactService(db_session)

        contact = await service.update_custom_field(owner.id, contact.id, "age", 30)
        assert contact.custom_fields["age"] == 30

        with pytest.raises(ValidationError) as exc_info:
            await service.update_custom_field(owner.id, contact.id, "age", 12)
        assert "custom_fields.age" in exc_info.value.errors

        activity = (await service.get_activities(owner.id, contact.id, activity_type="custom_field_updated"))[0]
        assert activity.properties == {"field": "age", "old_value": 20, "new_value": 30}


class TestActivity:

    async def test_recording_for_foreign_contact_is_forbidden(self, db_session, owner, other_owner, make_contact):
        theirs = await make_contact(other_owner, "theirs@example.com")

        with pytest.raises(ForbiddenError):
            await ActivityService(db_session).record(owner.id, theirs, ActivityType.UPDATED, "Sneaky")

        assert await _activities(db_session, theirs.id) == []

    async def test_unknown_type_falls_back_to_other(self, db_session, owner, make_contact):
        contact = await make_contact(owner, "a@example.com")

        activity = await ActivityService(db_session).record(
            owner.id, contact, "score_changed", properties={"score": 10, "tags": ["a"]}
        )

        assert activity.activity_type == "score_changed"
        assert activity.kind == ActivityType.OTHER
        assert activity.icon == "📌"
        assert activity.color == "gray"
        assert activity.formatted_properties == 'Score: 10, Tags: ["a"]'
