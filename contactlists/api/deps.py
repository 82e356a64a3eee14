"""
API dependencies - shared across all routes.
"""
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from contactlists.database import get_session
from contactlists.config import settings
from contactlists.core.security import verify_token, token_owner_id
from contactlists.core.exceptions import raise_unauthorized
from contactlists.models.user import User
from contactlists.repositories.user_repo import UserRepository


oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session)
) -> User:
    """Get current authenticated user from JWT token."""
    payload = verify_token(token, "access")
    owner_id = token_owner_id(payload) if payload else None
    if owner_id is None:
        raise_unauthorized("Could not validate credentials")

    user_repo = UserRepository(session)
    user = await user_repo.get(owner_id)

    if not user:
        raise_unauthorized("User not found")

    if not user.is_active:
        raise_unauthorized("User account is deactivated")

    return user


def get_client_info(request: Request) -> dict:
    """Extract client info from request."""
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent")
    }
