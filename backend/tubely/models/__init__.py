"""
Models Package for Tubely.

Pydantic models for video metadata records and user accounts. Records use
UUID strings as MongoDB ``_id`` values through the ``id`` field alias.
"""

from tubely.models.user import TokenResponse, UserCreate, UserLogin, UserRecord, UserResponse
from tubely.models.video import VideoCreate, VideoRecord, VideoResponse


__all__ = [
    "TokenResponse",
    "UserCreate",
    "UserLogin",
    "UserRecord",
    "UserResponse",
    "VideoCreate",
    "VideoRecord",
    "VideoResponse",
]
