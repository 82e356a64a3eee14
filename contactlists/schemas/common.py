"""
Common schemas used across multiple endpoints.
"""
from typing import TypeVar, Generic, List, Dict, Optional

import pydantic
from pydantic import BaseModel

T = TypeVar("T")


class MessageResponse(BaseModel):
    """Simple message response."""
    message: str

    class Config:
        json_schema_extra = {"example": {"message": "Operation successful"}}


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str
    errors: Optional[Dict[str, str]] = None

    class Config:
        json_schema_extra = {"example": {"detail": "Validation failed", "errors": {"name": "The name field is required."}}}


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response."""
    items: List[T]
    total: int
    page: int
    limit: int
    pages: int
    has_next: bool
    has_prev: bool


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str = "1.0.0"


def _describe(field: str, error: dict) -> str:
    label = field.replace("_", " ")
    ctx = error.get("ctx") or {}
    kind = error["type"]
    if kind == "missing":
        return f"The {label} field is required."
    if kind == "string_too_short":
        return f"The {label} field must be at least {ctx.get('min_length')} characters."
    if kind == "string_too_long":
        return f"The {label} field must not be greater than {ctx.get('max_length')} characters."
    if kind in ("enum", "literal_error"):
        return f"The selected {label} is invalid."
    if kind.startswith("bool"):
        return f"The {label} field must be true or false."
    return error["msg"]


def field_errors(exc: pydantic.ValidationError) -> Dict[str, str]:
    """One message per failing field, first error wins."""
    errors: Dict[str, str] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "__root__"
        errors.setdefault(field, _describe(field, error))
    return errors
