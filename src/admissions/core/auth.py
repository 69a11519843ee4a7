"""
Authentication and Authorization Module

Provides authentication dependencies for FastAPI endpoints.
Tokens are issued by the identity service; this module only validates them
and enforces the role required by each router.

SECURITY NOTE:
- Development mode test tokens are ONLY accepted when PYTHON_ENV=development
- Production environments MUST set PYTHON_ENV=production to disable them
"""

import logging
import os
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from admissions.core.config import settings
from admissions.core.security import decode_token

logger = logging.getLogger(__name__)

ROLE_APPLICANT = "applicant"
ROLE_ADMIN = "admin"

# Security scheme for OpenAPI documentation
security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)


@dataclass
class CurrentUser:
    """
    Represents an authenticated caller.

    Populated from JWT claims after token validation. For applicants, ``id``
    is the owner id of their documents, academic records and application status.
    """

    id: UUID
    email: str
    role: str
    name: str | None = None

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, email={self.email}, role={self.role})"


def _is_dev_mode_safe() -> bool:
    """
    Check if development test tokens may be accepted.

    Requires settings.is_development AND not settings.is_production AND the raw
    PYTHON_ENV variable not being production or staging.
    """
    env_var = os.getenv("PYTHON_ENV", "").lower()

    is_safe = (
        settings.is_development
        and not settings.is_production
        and env_var not in ("production", "staging")
    )

    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )

    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()

_DEV_ADMIN = CurrentUser(
    id=UUID("00000000-0000-0000-0000-000000000001"),
    email="admin@admissions.dev",
    role=ROLE_ADMIN,
    name="Development Admin",
)


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _validate_jwt_token(token: str) -> CurrentUser:
    """
    Validate a bearer token and extract the caller.

    In development mode "dev-admin" maps to a fixed admin and a bare UUID maps
    to an applicant with that id.

    Raises:
        HTTPException 401: If token is invalid, expired, or has bad claims
    """
    if _DEVELOPMENT_MODE:
        if token == "dev-admin":
            return _DEV_ADMIN
        try:
            applicant_id = UUID(token)
            return CurrentUser(
                id=applicant_id,
                email=f"applicant-{str(applicant_id)[:8]}@admissions.dev",
                role=ROLE_APPLICANT,
            )
        except ValueError:
            pass

    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    if payload.get("type", "access") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        user_id_str = payload.get("sub")
        if not user_id_str:
            raise ValueError("Missing 'sub' claim in token")

        return CurrentUser(
            id=UUID(user_id_str),
            email=payload.get("email", ""),
            role=payload.get("role", ""),
            name=payload.get("name"),
        )
    except ValueError as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


def _require_role(user: CurrentUser, role: str) -> CurrentUser:
    if user.role != role:
        logger.warning(
            f"Access denied: User {user.id} has role '{user.role}', but '{role}' is required"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": f"{role.upper()}_ACCESS_REQUIRED",
                "message": f"The '{role}' role is required for this endpoint.",
            },
        )
    return user


async def get_current_applicant(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency returning the authenticated applicant.

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
        HTTPException 403: If the caller is not an applicant
    """
    user = await _validate_jwt_token(credentials.credentials)
    return _require_role(user, ROLE_APPLICANT)


async def get_current_admin_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency returning the authenticated administrator.

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
        HTTPException 403: If the caller is not an admin
    """
    user = await _validate_jwt_token(credentials.credentials)
    _require_role(user, ROLE_ADMIN)
    logger.debug(f"Authenticated admin: {user.id} ({user.email})")
    return user


__all__ = [
    "CurrentUser",
    "ROLE_ADMIN",
    "ROLE_APPLICANT",
    "get_current_admin_user",
    "get_current_applicant",
]
