from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from clearcare.features.auth.models import User
from clearcare.features.auth.service import AuthService
from clearcare.core.security import token_subject
from clearcare.core.logging import logger
from clearcare.shared.exceptions import CredentialsException, ForbiddenException
from clearcare.shared.schemas import RequestMeta


# HTTP Bearer security scheme
security = HTTPBearer()


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> User:
    """
    Dependency to get current authenticated user.

    The token's ``sub`` claim carries the user id.

    Raises:
        CredentialsException: If credentials are invalid
    """
    user_id = token_subject(credentials.credentials)
    if user_id is None:
        raise CredentialsException("Invalid authentication credentials")

    user = await AuthService.get_user_by_id(user_id)
    if user is None:
        logger.warning(f"Token for unknown or deactivated user {user_id}")
        raise CredentialsException("User not found")

    # Picked up by the audit middleware
    request.state.user = user
    return user


def require_roles(*roles: str):
    """Dependency factory restricting an endpoint to the given roles."""

    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            logger.warning(f"User {current_user.id} ({current_user.role}) denied; requires {roles}")
            raise ForbiddenException("You do not have permission to perform this action")
        return current_user

    return checker


def get_request_meta(request: Request) -> RequestMeta:
    """Client IP and user agent for history rows."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else None
    return RequestMeta(
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent"),
    )
