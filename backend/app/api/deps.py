"""API dependencies - authentication and authorization gates

Protected routes declare ``Depends(authenticate_token)`` and, where a role is
needed, ``Depends(require_role([...]))``. Handlers then trust
``user.id`` / ``user.role``.

Status conventions:
    missing bearer token        -> 401 "Access token required"
    bad signature/expired/junk  -> 403 "Invalid token"
    role not in allow-list      -> 403 "Insufficient permissions"
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.security import decode_access_token
from app.core.exceptions import (
    AccessTokenRequiredError,
    AuthorizationError,
    TokenInvalidError,
)

# HTTP Bearer token scheme; errors are raised here, not by FastAPI
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Caller identity decoded from the access token"""
    id: int
    role: str


async def authenticate_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthenticatedUser:
    """
    Authenticate the bearer token

    Args:
        request: Incoming request; identity is also stored on ``request.state.user``
        credentials: HTTP Bearer credentials

    Returns:
        Authenticated caller

    Raises:
        AccessTokenRequiredError: No token supplied
        TokenInvalidError: Token failed verification
    """
    if credentials is None or not credentials.credentials:
        raise AccessTokenRequiredError()

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise TokenInvalidError()

    subject = payload.get("sub")
    role = payload.get("role")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise TokenInvalidError()
    if not isinstance(role, str) or not role:
        raise TokenInvalidError()

    user = AuthenticatedUser(id=user_id, role=role)
    request.state.user = user
    return user


def require_role(allowed_roles: Iterable[str]) -> Callable:
    """
    Build a dependency that admits only the given roles

    Args:
        allowed_roles: Roles permitted on the route

    Returns:
        Dependency yielding the authenticated caller
    """
    allowed = frozenset(allowed_roles)

    async def role_gate(
        user: AuthenticatedUser = Depends(authenticate_token),
    ) -> AuthenticatedUser:
        if user.role not in allowed:
            raise AuthorizationError()
        return user

    return role_gate
