"""
User Pydantic models for Tubely.

Accounts are local: an email address plus a bcrypt password hash. Login
returns a locally issued HS256 JWT wrapped in ``TokenResponse``.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


MIN_PASSWORD_LENGTH = 8


class UserRecord(BaseModel):
    """
    Stored user account.

    Attributes:
        id: UUID4 string (aliased from _id)
        email: Unique, lowercased email address
        hashed_password: bcrypt hash
        created_at: Registration timestamp (UTC)
        last_login: Last successful login timestamp
    """

    id: str = Field(default_factory=lambda: str(uuid4()), alias="_id")
    email: EmailStr
    hashed_password: str = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    last_login: datetime | None = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class UserCreate(BaseModel):
    """Registration payload."""

    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "admin@tubely.com", "password": "password123"}}
    )


class UserLogin(BaseModel):
    """Login payload."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Public projection of a user, without the password hash."""

    id: str
    email: EmailStr
    created_at: datetime
    last_login: datetime | None = None

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserResponse":
        return cls(
            id=record.id,
            email=record.email,
            created_at=record.created_at,
            last_login=record.last_login,
        )


class TokenResponse(BaseModel):
    """Access token returned by the login endpoint."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse


__all__ = [
    "MIN_PASSWORD_LENGTH",
    "TokenResponse",
    "UserCreate",
    "UserLogin",
    "UserRecord",
    "UserResponse",
]
