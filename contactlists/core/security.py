"""
Bearer token handling for the Contact Lists API.

Tokens are issued by the external auth service and carry the owner id as
`user_id`. Minting lives here too so scripts and tests can act as an owner.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Literal
import uuid
import secrets
import logging

import jwt

from contactlists.config import settings

logger = logging.getLogger(__name__)

TokenType = Literal["access", "refresh"]


def create_token(
    claims: Dict[str, Any],
    token_type: TokenType = "access",
    expires_delta: Optional[timedelta] = None
) -> str:
    """Sign `claims` with the shared secret, adding expiry, type and a jti."""
    issued_at = datetime.utcnow()
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    payload = {
        **claims,
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(owner_id: uuid.UUID, expires_delta: Optional[timedelta] = None) -> str:
    return create_token({"user_id": str(owner_id)}, expires_delta=expires_delta)


def verify_token(token: str, token_type: TokenType = "access") -> Optional[dict]:
    """
    Decode a token and check its type.

    Returns the payload, or None for a bad signature, an expired token or
    a token of another type.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.InvalidTokenError as exc:
        logger.debug("Rejected token: %s", exc)
        return None

    if payload.get("type") != token_type:
        return None
    return payload


def token_owner_id(payload: dict) -> Optional[uuid.UUID]:
    """Owner id carried by a verified payload, None if missing or malformed."""
    try:
        return uuid.UUID(str(payload["user_id"]))
    except (KeyError, ValueError):
        return None


def generate_secure_token(length: int = 32) -> str:
    """Random url-safe token for email verification links."""
    return secrets.token_urlsafe(length)
