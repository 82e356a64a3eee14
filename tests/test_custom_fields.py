"""
Tests for custom field definitions and value rules.
"""
import pytest

from contactlists.core.exceptions import AlreadyExistsError, ValidationError
from contactlists.models.custom_field import ContactCustomField, CustomFieldType
from contactlists.schemas.custom_field import CustomFieldCreate, CustomFieldUpdate
from contactlists.services.custom_field_service import CustomFieldService
from contactlists.services.field_validation import rules_for, check_value, validate_value


def _field(**kwargs) -> ContactCustomField:
    kwargs.setdefault("name", "field")
    kwargs.setdefault("label", "Field")
    return ContactCustomField(**kwargs)


class TestRuleDerivation:

    def test_required_number(self):
        assert rules_for(_field(type="number", is_required=True)) == ["required", "numeric"]

    def test_select_lists_its_options(self):
        assert rules_for(_field(type="select", options=["a", "b"])) == ["in:a,b"]

    def test_multiselect(self):
        assert rules_for(_field(type="multiselect", options=["x", "y"])) == ["array", "in:x,y"]

    def test_custom_rules_follow_derived_ones(self):
        field = _field(type="text", validation_rules=["max:5"])
        assert rules_for(field) == ["max:5"]

    def test_unknown_type_is_other(self):
        assert CustomFieldType.parse("color") == CustomFieldType.OTHER
        assert rules_for(_field(type="color")) == []


class TestCheckValue:

    @pytest.mark.parametrize("rules, value", [
        (["numeric"], "12.5"),
        (["integer"], "-3"),
        (["date"], "2024-02-29"),
        (["date"], "2024-02-29T10:30:00"),
        (["boolean"], "true"),
        (["boolean"], 0),
        (["array", "in:x,y"], ["x", "y"]),
        (["email"], "someone@example.com"),
        (["url"], "https://example.com/page"),
        (["regex:/^[A-Z]{3}$/"], "ABC"),
        (["min:3"], "abcd"),
        (["numeric", "max:10"], "10"),
        (["string", "nullable"], None),
        (["numeric"], ""),
    ])
    def test_valid(self, rules, value):
        assert check_value(rules, value) is None

    @pytest.mark.parametrize("rules, value", [
        (["required"], ""),
        (["required"], []),
        (["numeric"], "ten"),
        (["numeric"], True),
        (["integer"], "1.5"),
        (["date"], "31/31/2024"),
        (["date"], "2023-02-29"),
        (["date"], "20240229"),
        (["date"], 20240229),
        (["boolean"], "yes"),
        (["array"], "x"),
        (["in:a,b"], "c"),
        (["email"], "not-an-email"),
        (["url"], "example.com"),
        (["url"], "http://exa mple .com/<x>"),
        (["url"], "ftp://example.com/file"),
        (["regex:^[0-9]+$"], "12a"),
        (["min:3"], "ab"),
        (["numeric", "max:10"], 11),
        (["string"], 5),
    ])
    def test_invalid(self, rules, value):
        assert check_value(rules, value) is not None

    def test_unknown_and_malformed_rules_are_ignored(self):
        assert check_value(["sometimes", "max:abc", "regex:("], "value") is None

    def test_validate_value(self):
        field = _field(type="select", options=["free", "pro"], is_required=True)

        assert validate_value(field, "pro") is True
        assert validate_value(field, "gold") is False
        assert validate_value(field, None) is False


class TestService:

    async def test_options_required_for_select(self, db_session, owner):
        with pytest.raises(ValidationError) as exc_info:
            await CustomFieldService(db_session).create(
                owner.id, CustomFieldCreate(name="plan", label="Plan", type="select")
            )

        assert "options" in exc_info.value.errors

    async def test_names_are_unique_per_owner(self, db_session, owner, other_owner):
        service = CustomFieldService(db_session)
        await service.create(owner.id, CustomFieldCreate(name="plan", label="Plan"))
        await service.create(other_owner.id, CustomFieldCreate(name="plan", label="Plan"))

        with pytest.raises(AlreadyExistsError):
            await service.create(owner.id, CustomFieldCreate(name="plan", label="Other plan"))

    async def test_ordering_and_active_filter(self, db_session, owner):
        service = CustomFieldService(db_session)
        await service.create(owner.id, CustomFieldCreate(name="zeta", label="Zeta", sort_order=1))
        await service.create(owner.id, CustomFieldCreate(name="alpha", label="Alpha", sort_order=2))
        hidden = await service.create(owner.id, CustomFieldCreate(name="beta", label="Beta", sort_order=1))
        await service.update(owner.id, hidden.id, CustomFieldUpdate(is_active=False))

        assert [field.name for field in await service.list(owner.id)] == ["beta", "zeta", "alpha"]
        assert [field.name for field in await service.list(owner.id, active_only=True)] == ["zeta", "alpha"]

    async def test_switching_to_select_needs_options(self, db_session, owner):
        service = CustomFieldService(db_session)
        field = await service.create(owner.id, CustomFieldCreate(name="plan", label="Plan"))

        with pytest.raises(ValidationError):
            await service.update(owner.id, field.id, CustomFieldUpdate(type="select"))

    async def test_required_field_must_be_supplied(self, db_session, owner):
        service = CustomFieldService(db_session)
        await service.create(owner.id, CustomFieldCreate(name="company_size", label="Size", is_required=True))

        with pytest.raises(ValidationError) as exc_info:
            await service.validate_values(owner.id, {})

        assert exc_info.value.errors == {"custom_fields.company_size": "The value is required."}

    async def test_inactive_and_undefined_fields_pass_through(self, db_session, owner):
        service = CustomFieldService(db_session)
        field = await service.create(owner.id, CustomFieldCreate(name="seats", label="Seats", type="number"))
        await service.update(owner.id, field.id, CustomFieldUpdate(is_active=False))

        values = await service.validate_values(owner.id, {"seats": "many", "nickname": "Bob"})

        assert values == {"seats": "many", "nickname": "Bob"}
