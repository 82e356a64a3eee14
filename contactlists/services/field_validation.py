"""
Rule evaluation for custom field values.

A field's effective rules are derived from its type, its required flag
and its options, followed by any extra rule strings stored on the field
("max:50", "regex:^[A-Z]", ...).
"""
import logging
import re
from datetime import date, datetime
from typing import Any, List, Optional

import pydantic
from email_validator import validate_email, EmailNotValidError
from pydantic import HttpUrl, TypeAdapter

from contactlists.models.custom_field import ContactCustomField, CustomFieldType

logger = logging.getLogger(__name__)

TRUE_VALUES = (True, 1, "1", "true")
FALSE_VALUES = (False, 0, "0", "false")

URL_ADAPTER = TypeAdapter(HttpUrl)
DATE_ADAPTERS = (TypeAdapter(date), TypeAdapter(datetime))


def rules_for(field: ContactCustomField) -> List[str]:
    """Effective validation rules for a field definition."""
    rules: List[str] = []
    if field.is_required:
        rules.append("required")

    field_type = CustomFieldType.parse(field.type)
    if field_type == CustomFieldType.NUMBER:
        rules.append("numeric")
    elif field_type == CustomFieldType.DATE:
        rules.append("date")
    elif field_type == CustomFieldType.BOOLEAN:
        rules.append("boolean")
    elif field_type == CustomFieldType.SELECT:
        if field.options:
            rules.append("in:" + ",".join(field.options))
    elif field_type == CustomFieldType.MULTISELECT:
        rules.append("array")
        if field.options:
            rules.append("in:" + ",".join(field.options))

    rules.extend(field.validation_rules or [])
    return rules


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, (str, list, dict)) and len(value) == 0)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        try:
            float(value)
        except ValueError:
            return False
        return True
    return False


def _is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and re.fullmatch(r"[+-]?\d+", value.strip()) is not None


def _is_date(value: Any) -> bool:
    if isinstance(value, (date, datetime)):
        return True
    # pydantic reads numeric strings as unix timestamps
    if not isinstance(value, str) or _is_number(value):
        return False
    for adapter in DATE_ADAPTERS:
        try:
            adapter.validate_python(value.strip())
        except pydantic.ValidationError:
            continue
        return True
    return False


def _is_url(value: Any) -> bool:
    try:
        URL_ADAPTER.validate_python(str(value))
    except pydantic.ValidationError:
        return False
    return True


def _size(value: Any, rules: List[str]) -> Optional[float]:
    if _is_number(value) and (not isinstance(value, str) or "numeric" in rules or "integer" in rules):
        return float(value)
    if isinstance(value, (str, list, dict)):
        return float(len(value))
    return None


def check_value(rules: List[str], value: Any) -> Optional[str]:
    """Return the message for the first failing rule, or None when valid."""
    if _is_empty(value):
        return "The value is required." if "required" in rules else None

    for rule in rules:
        name, _, arg = rule.partition(":")
        name = name.strip().lower()

        if name in ("required", "nullable"):
            continue
        elif name == "string":
            if not isinstance(value, str):
                return "The value must be a string."
        elif name == "numeric":
            if not _is_number(value):
                return "The value must be a number."
        elif name == "integer":
            if not _is_integer(value):
                return "The value must be an integer."
        elif name == "date":
            if not _is_date(value):
                return "The value is not a valid date."
        elif name == "boolean":
            normalized = value.lower() if isinstance(value, str) else value
            if normalized not in TRUE_VALUES and normalized not in FALSE_VALUES:
                return "The value must be true or false."
        elif name == "array":
            if not isinstance(value, list):
                return "The value must be a list."
        elif name == "in":
            allowed = [option.strip() for option in arg.split(",")]
            candidates = value if isinstance(value, list) else [value]
            if any(str(candidate) not in allowed for candidate in candidates):
                return "The selected value is invalid."
        elif name in ("min", "max"):
            size = _size(value, rules)
            try:
                limit = float(arg)
            except ValueError:
                logger.warning("Ignoring malformed rule %r", rule)
                continue
            if size is None:
                continue
            if name == "min" and size < limit:
                return f"The value must be at least {arg}."
            if name == "max" and size > limit:
                return f"The value must not be greater than {arg}."
        elif name == "email":
            try:
                validate_email(str(value), check_deliverability=False)
            except EmailNotValidError:
                return "The value must be a valid email address."
        elif name == "url":
            if not _is_url(value):
                return "The value must be a valid URL."
        elif name == "regex":
            pattern = arg
            if len(pattern) >= 2 and pattern.startswith("/") and pattern.endswith("/"):
                pattern = pattern[1:-1]
            try:
                matched = re.search(pattern, str(value)) is not None
            except re.error:
                logger.warning("Ignoring invalid regex rule %r", rule)
                continue
            if not matched:
                return "The value format is invalid."
        else:
            logger.warning("Unknown validation rule %r ignored", rule)

    return None


def validate_value(field: ContactCustomField, value: Any) -> bool:
    return check_value(rules_for(field), value) is None
