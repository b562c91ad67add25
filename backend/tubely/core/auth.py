"""
Tubely Authentication Module

Identity verification for the HTTP layer:

- Local HS256 JWT issuance for users who log in with email and password
- Local JWT validation (signature and expiry) with python-jose
- ``get_current_user_id`` FastAPI dependency that resolves the bearer token
  to the caller's user id, or answers 401 with ``WWW-Authenticate: Bearer``

Usage:
    ```python
    from fastapi import Depends
    from tubely.core.auth import get_current_user_id

    @router.get("/protected")
    async def protected_route(user_id: str = Depends(get_current_user_id)):
        return {"user_id": user_id}
    ```
"""

import logging

from datetime import timedelta
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError

from tubely.config import Settings, get_settings
from tubely.utils.security import generate_jwt_token, validate_jwt_token


logger = logging.getLogger(__name__)


# =============================================================================
# Security Scheme
# =============================================================================

# auto_error is off so a missing header yields the same 401 body as a bad token
security = HTTPBearer(
    scheme_name="Bearer",
    description="JWT Bearer token issued by POST /api/v1/auth/login.",
    auto_error=False,
)

TOKEN_TYPE_LOCAL = "local"


# =============================================================================
# Local JWT Functions
# =============================================================================


def create_local_jwt(user_id: str, email: str, settings: Settings) -> str:
    """
    Create a local JWT for ``user_id``.

    Token claims:
    - sub: User ID (subject)
    - email: User's email address
    - iat / exp: issue and expiry timestamps (``jwt_expiration_hours`` apart)
    - type: "local"
    """
    token = generate_jwt_token(
        {"sub": user_id, "email": email, "type": TOKEN_TYPE_LOCAL},
        settings.secret_key,
        expires_delta=timedelta(hours=settings.jwt_expiration_hours),
        algorithm=settings.jwt_algorithm,
    )
    logger.info("Created local JWT for user: %s", user_id)
    return token


def validate_local_jwt(token: str, settings: Settings) -> dict[str, Any]:
    """
    Validate a local JWT and return its claims.

    Raises:
        JWTError: If the token is invalid, expired, not a local token, or has no subject.
    """
    try:
        payload = validate_jwt_token(token, settings.secret_key, settings.jwt_algorithm)
    except ExpiredSignatureError:
        logger.warning("Local JWT has expired")
        raise
    except JWTError as e:
        logger.warning("Local JWT validation failed: %s", str(e))
        raise

    if payload.get("type") != TOKEN_TYPE_LOCAL:
        raise JWTError("Token is not a locally issued access token")
    if not payload.get("sub"):
        raise JWTError("Token has no subject")
    return payload


def create_access_token(user_id: str, email: str, settings: Settings | None = None) -> str:
    """Create the access token returned by the login endpoint."""
    if settings is None:
        settings = get_settings()
    return create_local_jwt(user_id, email, settings)


# =============================================================================
# FastAPI Dependencies
# =============================================================================


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": "unauthorized", "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Resolve the bearer token to the authenticated user's id.

    Raises:
        HTTPException: 401 when the token is missing, malformed, or expired.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Missing bearer token")

    try:
        payload = validate_local_jwt(credentials.credentials, settings)
    except ExpiredSignatureError as e:
        raise _unauthorized("Token has expired") from e
    except JWTError as e:
        raise _unauthorized("Invalid token") from e

    return str(payload["sub"])


__all__ = [
    "create_access_token",
    "create_local_jwt",
    "get_current_user_id",
    "security",
    "validate_local_jwt",
]
