from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Callable, Iterable, List, Optional

from thinkify.core.database import get_db
from thinkify.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InsufficientPermissionsError,
    InvalidTokenError,
    RoleNotAllowedError,
)
from thinkify.core.logging_config import logger, set_user_id
from thinkify.core.roles import Permission, UserRole, has_permissions
from thinkify.core.security import decode_token
from thinkify.core.types import is_valid_uuid
from thinkify.models.user import User

# Header parsing is done here so every failure gets its own message
security = HTTPBearer(auto_error=False)

_EMPTY_TOKENS = {"", "null", "undefined"}


def _bearer_token(request: Request) -> str:
    authorization = request.headers.get("authorization")
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError("Authorization token required")

    token = authorization[len("Bearer "):].strip()
    if token in _EMPTY_TOKENS:
        raise AuthenticationError("Invalid authorization token")
    return token


async def authenticate(request: Request, db: AsyncSession) -> User:
    """Resolve the bearer token to an active user without any role checks"""
    token = _bearer_token(request)
    payload = decode_token(token)

    if payload.get("type") != "access":
        raise InvalidTokenError()

    user_id = payload.get("sub")
    if not user_id or not is_valid_uuid(user_id):
        raise AuthorizationError("Invalid user ID in token")

    result = await db.execute(select(User).where(User.id == str(user_id)))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthorizationError("User not found")

    if not user.is_active:
        raise AuthorizationError("User account is inactive")

    return user


def role_based_auth(
    allowed_roles: Iterable[UserRole] = (),
    required_permissions: Iterable[Permission] = (),
) -> Callable:
    """
    Build a dependency that authenticates the caller and checks role / permissions.

    An empty ``allowed_roles`` admits every role. Admins pass any permission
    check. On success the user is stored on ``request.state.user`` and in the
    logging context; on failure nothing is attached.

    Usage:
        @router.get("/dashboard")
        async def dashboard(user: User = Depends(teacher_only)):
            ...
    """
    roles: List[UserRole] = list(allowed_roles)
    permissions: List[str] = [
        p.value if isinstance(p, Permission) else p for p in required_permissions
    ]

    async def dependency(
        request: Request,
        # Only declares the bearer scheme in OpenAPI; _bearer_token parses the header
        _bearer: Optional[HTTPAuthorizationCredentials] = Depends(security),
        db: AsyncSession = Depends(get_db),
    ) -> User:
        user = await authenticate(request, db)

        if roles and user.role not in roles:
            logger.warning(
                f"Role {user.role.value} denied on {request.url.path}",
                extra={"event_type": "authz_denied", "http_path": request.url.path},
            )
            raise RoleNotAllowedError(user.role.value, [r.value for r in roles])

        if permissions and not has_permissions(user.role, user.permissions, permissions):
            logger.warning(
                f"Missing permissions {permissions} on {request.url.path}",
                extra={"event_type": "authz_denied", "http_path": request.url.path},
            )
            raise InsufficientPermissionsError(list(user.permissions or []), permissions)

        request.state.user = user
        set_user_id(str(user.id))
        return user

    return dependency


def require_permissions(*permissions: Permission) -> Callable:
    """Any role, gated on permissions"""
    return role_based_auth((), permissions)


# Convenience dependencies for common role combinations
student_only = role_based_auth([UserRole.STUDENT])
teacher_only = role_based_auth([UserRole.TEACHER])
admin_only = role_based_auth([UserRole.ADMIN])
teacher_or_admin = role_based_auth([UserRole.TEACHER, UserRole.ADMIN])
student_or_teacher = role_based_auth([UserRole.STUDENT, UserRole.TEACHER])
all_roles = role_based_auth([UserRole.STUDENT, UserRole.TEACHER, UserRole.ADMIN])
