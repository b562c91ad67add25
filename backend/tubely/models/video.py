"""
Video Pydantic models for Tubely.

This module defines the video metadata record stored in MongoDB, the create
payload accepted by the metadata API, and the response projection returned
to clients.

``video_url`` on a stored record is a reference of the form
``<bucket>,<objectKey>``. It is never a URL at rest; the read paths replace
it with a short-lived presigned URL before a record leaves the service.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# CONSTANTS
# =============================================================================

MAX_TITLE_LENGTH: int = 200
MAX_DESCRIPTION_LENGTH: int = 5000


# =============================================================================
# MODELS
# =============================================================================


class VideoRecord(BaseModel):
    """
    Pydantic model for a video metadata record.

    Attributes:
        id: UUID4 string (aliased from _id)
        user_id: Owner of the record
        title: Display title
        description: Free-form description
        thumbnail_url: Inline ``data:`` URI of the thumbnail, once uploaded
        video_url: ``bucket,key`` reference, once uploaded
        created_at: Record creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)

    Example:
        ```python
        record = VideoRecord(user_id="user123", title="Boots review")
        record.video_url = "tubely-videos,landscape/abc.mp4"
        ```
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()), alias="_id", description="UUID4 record id"
    )

    user_id: str = Field(..., min_length=1, description="Reference to owning user's ID")

    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)

    description: str = Field(default="", max_length=MAX_DESCRIPTION_LENGTH)

    thumbnail_url: str | None = Field(
        default=None, description="Inline data URI of the thumbnail image"
    )

    video_url: str | None = Field(
        default=None, description="Stored reference 'bucket,key' of the processed video"
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Record creation timestamp (UTC)"
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Last modification timestamp (UTC)"
    )

    model_config = ConfigDict(populate_by_name=True)

    def is_owned_by(self, user_id: str) -> bool:
        """Check whether ``user_id`` owns this record."""
        return self.user_id == user_id

    def has_video(self) -> bool:
        """True once a processed video has been stored for this record."""
        return bool(self.video_url)

    def to_document(self) -> dict[str, Any]:
        """Serialize for MongoDB, keeping ``_id`` as the primary key."""
        return self.model_dump(by_alias=True)


class VideoCreate(BaseModel):
    """Request body for creating a video metadata record."""

    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    description: str = Field(default="", max_length=MAX_DESCRIPTION_LENGTH)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"title": "Boots review", "description": "Unboxing the new boots"}
        }
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Reject titles that are only whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be empty")
        return v


class VideoResponse(BaseModel):
    """
    API projection of a video record.

    ``video_url`` holds a presigned URL when the record has been uploaded
    and the caller went through a read path that signs it.
    """

    id: str
    user_id: str
    title: str
    description: str
    thumbnail_url: str | None = None
    video_url: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: VideoRecord) -> "VideoResponse":
        return cls(
            id=record.id,
            user_id=record.user_id,
            title=record.title,
            description=record.description,
            thumbnail_url=record.thumbnail_url,
            video_url=record.video_url,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


__all__ = [
    "MAX_DESCRIPTION_LENGTH",
    "MAX_TITLE_LENGTH",
    "VideoCreate",
    "VideoRecord",
    "VideoResponse",
]
