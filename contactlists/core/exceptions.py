"""
Custom exceptions for the Contact Lists API.
Provides consistent error handling across the application.
"""
from typing import Dict, Optional

from fastapi import HTTPException, status


class ContactListsException(Exception):
    """Base exception for Contact Lists"""
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(ContactListsException):
    """Resource not found (or not owned by the caller)"""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Resource", resource_id: str = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message)


class ConflictError(ContactListsException):
    """Resource already exists or is in the wrong state"""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message)


class AlreadyExistsError(ConflictError):
    """Resource already exists"""
    def __init__(self, resource: str = "Resource", field: str = None, value: str = None):
        if field and value:
            message = f"{resource} with {field} '{value}' already exists"
        else:
            message = f"{resource} already exists"
        super().__init__(message)


class ForbiddenError(ContactListsException):
    """Access denied"""
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "You don't have permission to access this resource"):
        super().__init__(message)


class ValidationError(ContactListsException):
    """
    Validation failed.
    Carries one message per violated field so forms can be redisplayed.
    """
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, errors: Optional[Dict[str, str]] = None, message: str = "Validation failed"):
        self.errors = dict(errors or {})
        super().__init__(message)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls({field: message})


class OperationFailedError(ContactListsException):
    """Storage or unexpected failure, reported with a user-safe message"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Something went wrong. Please try again."):
        super().__init__(message)


# HTTP Exception helpers
def raise_unauthorized(message: str = "Could not validate credentials"):
    """Raise 401 HTTPException"""
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )
