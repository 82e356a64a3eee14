"""
Tests for attaching and detaching contacts, and the cached subscriber count.
"""
import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from contactlists.core.exceptions import NotFoundError
from contactlists.models.activity import ContactActivity, ActivityType
from contactlists.models.contact_list import ContactListMember
from contactlists.services.contact_service import ContactService
from contactlists.services.membership_service import MembershipService


async def _assert_count_matches(session, contact_list):
    result = await session.exec(
        select(ContactListMember).where(
            ContactListMember.contact_list_id == contact_list.id,
            ContactListMember.subscription_status == "subscribed"
        )
    )
    await session.refresh(contact_list)
    assert contact_list.contacts_count == len(result.all())


async def test_attach_then_detach_scenario(db_session, owner, make_list, make_contact):
    contact_list = await make_list(owner, "VIP")
    contact = await make_contact(owner, "c@example.com")
    service = MembershipService(db_session)

    member = await service.add_contact(owner.id, contact_list.id, contact.id)

    assert member.subscription_status == "subscribed"
    assert member.subscription_source == "manual"
    assert member.subscribed_at is not None
    await db_session.refresh(contact_list)
    assert contact_list.contacts_count == 1

    assert await service.remove_contact(owner.id, contact_list.id, contact.id) is True

    await db_session.refresh(contact_list)
    assert contact_list.contacts_count == 0


async def test_remove_missing_member_is_a_noop(db_session, owner, make_list, make_contact):
    contact_list = await make_list(owner, "Empty")
    contact = await make_contact(owner, "c@example.com")

    removed = await MembershipService(db_session).remove_contact(owner.id, contact_list.id, contact.id)

    assert removed is False
    await _assert_count_matches(db_session, contact_list)


async def test_pivot_overrides(db_session, owner, make_list, make_contact):
    contact_list = await make_list(owner, "Imported")
    contact = await make_contact(owner, "c@example.com")

    member = await MembershipService(db_session).add_contact(
        owner.id, contact_list.id, contact.id,
        {"subscription_source": "import", "subscription_metadata": {"file": "march.csv"}}
    )

    assert member.subscription_source == "import"
    assert member.subscription_metadata == {"file": "march.csv"}


async def test_unsubscribed_members_are_not_counted(db_session, owner, make_list, make_contact):
    contact_list = await make_list(owner, "Mixed")
    service = MembershipService(db_session)
    first = await make_contact(owner, "first@example.com")
    second = await make_contact(owner, "second@example.com")

    await service.add_contact(owner.id, contact_list.id, first.id)
    member = await service.add_contact(
        owner.id, contact_list.id, second.id, {"subscription_status": "unsubscribed"}
    )

    assert member.unsubscribed_at is not None
    await db_session.refresh(contact_list)
    assert contact_list.contacts_count == 1


async def test_duplicate_attach_upserts_and_keeps_subscribed_at(db_session, owner, make_list, make_contact):
    contact_list = await make_list(owner, "Upsert")
    contact = await make_contact(owner, "c@example.com")
    service = MembershipService(db_session)

    original = await service.add_contact(owner.id, contact_list.id, contact.id)
    subscribed_at = original.subscribed_at

    member = await service.add_contact(
        owner.id, contact_list.id, contact.id, {"subscription_status": "unsubscribed"}
    )
    assert member.subscription_status == "unsubscribed"
    await _assert_count_matches(db_session, contact_list)

    member = await service.add_contact(owner.id, contact_list.id, contact.id)

    assert member.subscription_status == "subscribed"
    assert member.subscribed_at == subscribed_at
    assert member.unsubscribed_at is None
    result = await db_session.exec(
        select(ContactListMember).where(ContactListMember.contact_list_id == contact_list.id)
    )
    assert len(result.all()) == 1
    await _assert_count_matches(db_session, contact_list)


async def test_update_subscription(db_session, owner, make_list, make_contact):
    contact_list = await make_list(owner, "Weekly")
    contact = await make_contact(owner, "c@example.com")
    service = MembershipService(db_session)
    await service.add_contact(owner.id, contact_list.id, contact.id)

    member = await service.update_subscription(owner.id, contact_list.id, contact.id, "unsubscribed")

    assert member.subscription_status == "unsubscribed"
    await db_session.refresh(contact_list)
    assert contact_list.contacts_count == 0


async def test_update_subscription_requires_membership(db_session, owner, make_list, make_contact):
    contact_list = await make_list(owner, "Weekly")
    contact = await make_contact(owner, "c@example.com")

    with pytest.raises(NotFoundError):
        await MembershipService(db_session).update_subscription(
            owner.id, contact_list.id, contact.id, "unsubscribed"
        )


async def test_cannot_attach_across_owners(db_session, owner, other_owner, make_list, make_contact):
    mine = await make_list(owner, "Mine")
    theirs = await make_contact(other_owner, "theirs@example.com")

    with pytest.raises(NotFoundError):
        await MembershipService(db_session).add_contact(owner.id, mine.id, theirs.id)


async def test_attach_and_detach_are_logged(db_session, owner, make_list, make_contact):
    contact_list = await make_list(owner, "Logged")
    contact = await make_contact(owner, "c@example.com")
    service = MembershipService(db_session)

    await service.add_contact(owner.id, contact_list.id, contact.id, client_info={"ip_address": "10.0.0.1"})
    await service.remove_contact(owner.id, contact_list.id, contact.id)

    result = await db_session.exec(
        select(ContactActivity).where(ContactActivity.contact_id == contact.id)
    )
    activities = result.all()
    assert sorted(activity.activity_type for activity in activities) == [
        ActivityType.LIST_ADDED.value, ActivityType.LIST_REMOVED.value
    ]
    added = next(a for a in activities if a.activity_type == ActivityType.LIST_ADDED.value)
    assert added.ip_address == "10.0.0.1"
    assert added.properties["list"] == "Logged"


async def test_member_listing_filters_by_pivot_status(db_session, owner, make_list, make_contact):
    contact_list = await make_list(owner, "Members")
    service = MembershipService(db_session)
    kept = await make_contact(owner, "kept@example.com")
    left = await make_contact(owner, "left@example.com")
    await service.add_contact(owner.id, contact_list.id, kept.id)
    await service.add_contact(owner.id, contact_list.id, left.id, {"subscription_status": "unsubscribed"})

    result = await service.list_members(owner.id, contact_list.id, status="unsubscribed")

    assert result["total"] == 1
    contact, membership = result["items"][0]
    assert contact.email == "left@example.com"
    assert membership.subscription_status == "unsubscribed"


async def test_deleting_contact_recounts_its_lists(db_session, owner, make_list, make_contact):
    first = await make_list(owner, "First")
    second = await make_list(owner, "Second")
    contact = await make_contact(owner, "c@example.com")
    other = await make_contact(owner, "d@example.com")
    service = MembershipService(db_session)
    for contact_list in (first, second):
        await service.add_contact(owner.id, contact_list.id, contact.id)
    await service.add_contact(owner.id, first.id, other.id)

    await ContactService(db_session).delete(owner.id, contact.id)

    await db_session.refresh(first)
    await db_session.refresh(second)
    assert first.contacts_count == 1
    assert second.contacts_count == 0
    result = await db_session.exec(
        select(ContactActivity).where(ContactActivity.contact_id == contact.id)
    )
    assert result.all() == []


async def _members(session, list_id):
    result = await session.exec(select(ContactListMember).where(ContactListMember.contact_list_id == list_id))
    return result.all()


def _break_recount(monkeypatch, service):
    async def broken_recount(contact_list):
        raise OperationalError("UPDATE contact_list", {}, Exception("database is locked"))

    monkeypatch.setattr(service, "recount", broken_recount)


async def test_failed_recount_rolls_back_attach(db_session, owner, make_list, make_contact, monkeypatch):
    contact_list = await make_list(owner, "Atomic")
    contact = await make_contact(owner, "c@example.com")
    list_id, contact_id = contact_list.id, contact.id
    service = MembershipService(db_session)
    _break_recount(monkeypatch, service)

    with pytest.raises(OperationalError):
        await service.add_contact(owner.id, list_id, contact_id)

    assert await _members(db_session, list_id) == []
    await db_session.refresh(contact_list)
    assert contact_list.contacts_count == 0
    result = await db_session.exec(select(ContactActivity).where(ContactActivity.contact_id == contact_id))
    assert result.all() == []


async def test_failed_recount_rolls_back_detach(db_session, owner, make_list, make_contact, monkeypatch):
    contact_list = await make_list(owner, "Atomic")
    contact = await make_contact(owner, "c@example.com")
    list_id, contact_id = contact_list.id, contact.id
    service = MembershipService(db_session)
    await service.add_contact(owner.id, list_id, contact_id)
    _break_recount(monkeypatch, service)

    with pytest.raises(OperationalError):
        await service.remove_contact(owner.id, list_id, contact_id)

    assert len(await _members(db_session, list_id)) == 1
    await db_session.refresh(contact_list)
    assert contact_list.contacts_count == 1


async def test_concurrent_insert_is_retried_as_update(db_session, owner, make_list, make_contact, monkeypatch):
    contact_list = await make_list(owner, "Raced")
    contact = await make_contact(owner, "c@example.com")
    service = MembershipService(db_session)
    existing = await service.add_contact(owner.id, contact_list.id, contact.id)
    existing_id, subscribed_at = existing.id, existing.subscribed_at

    # The first lookup misses the row, as if another session inserted it after the check
    real_get_pair = service.membership_repo.get_pair
    lookups = []

    async def get_pair_racing(list_id, contact_id):
        lookups.append(contact_id)
        if len(lookups) == 1:
            return None
        return await real_get_pair(list_id, contact_id)

    monkeypatch.setattr(service.membership_repo, "get_pair", get_pair_racing)

    member = await service.add_contact(
        owner.id, contact_list.id, contact.id, {"subscription_status": "unsubscribed"}
    )

    assert len(lookups) == 2
    assert member.id == existing_id
    assert member.subscription_status == "unsubscribed"
    assert member.subscribed_at == subscribed_at
    assert len(await _members(db_session, contact_list.id)) == 1
    await _assert_count_matches(db_session, contact_list)
