"""
Security utilities for the Tubely backend.

- Password hashing with bcrypt through passlib (12 rounds)
- HS256 JWT encoding and decoding through python-jose
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext


logger = logging.getLogger(__name__)

# ==============================================================================
# PASSWORD HASHING
# ==============================================================================

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)


def hash_password(password: str) -> str:
    """
    Hash a plaintext password using bcrypt.

    Raises:
        ValueError: If the password is empty.
    """
    if not password:
        raise ValueError("Password cannot be empty")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash."""
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as e:
        # Malformed or unknown hash format in the stored record
        logger.warning("Password verification error: %s", e)
        return False


# ==============================================================================
# JWT TOKENS
# ==============================================================================


def generate_jwt_token(
    data: dict[str, Any],
    secret_key: str,
    expires_delta: timedelta | None = None,
    algorithm: str = "HS256",
) -> str:
    """
    Encode ``data`` as a signed JWT with ``iat`` and ``exp`` claims.

    Args:
        data: Claims to include in the payload.
        secret_key: HMAC signing key.
        expires_delta: Token lifetime, 24 hours when omitted.
        algorithm: HMAC algorithm name.
    """
    if not secret_key:
        raise ValueError("Secret key cannot be empty")

    now = datetime.now(UTC)
    payload = dict(data)
    payload["iat"] = now
    payload["exp"] = now + (expires_delta if expires_delta is not None else timedelta(hours=24))
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def validate_jwt_token(token: str, secret_key: str, algorithm: str = "HS256") -> dict[str, Any]:
    """
    Decode and verify a JWT, including its expiry.

    Raises:
        JWTError: If the signature, format or expiry check fails.
    """
    if not token:
        raise JWTError("Token is empty")
    return jwt.decode(token, secret_key, algorithms=[algorithm])


__all__ = [
    "generate_jwt_token",
    "hash_password",
    "pwd_context",
    "validate_jwt_token",
    "verify_password",
]
