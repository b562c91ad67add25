"""
Thumbnail upload.

Thumbnails are small images kept inline on the record as a
``data:<media_type>;base64,<payload>`` URI. They never touch the object
store and are not probed.
"""

import base64
import logging

from tubely.core.exceptions import (
    AuthorizationError,
    BadRequestError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
)
from tubely.models.video import VideoRecord
from tubely.services.media_types import parse_media_type
from tubely.services.staging import UploadSource
from tubely.services.upload_service import RecordStore


logger = logging.getLogger(__name__)

DEFAULT_MAX_THUMBNAIL_BYTES = 10 << 20


def build_data_uri(media_type: str, payload: bytes) -> str:
    return f"data:{media_type};base64,{base64.b64encode(payload).decode('ascii')}"


class ThumbnailService:
    def __init__(self, store: RecordStore, max_bytes: int = DEFAULT_MAX_THUMBNAIL_BYTES) -> None:
        self.store = store
        self.max_bytes = max_bytes

    async def upload_thumbnail(
        self, video_id: str, requester_id: str, source: UploadSource
    ) -> VideoRecord:
        """
        Store an image part as the record's inline thumbnail.

        Raises:
            NotFoundError: The record does not exist.
            AuthorizationError: ``requester_id`` does not own the record.
            PayloadTooLargeError: The image exceeds ``max_bytes``.
            BadRequestError: The ``thumbnail`` part is missing, empty, or has a malformed type.
            UnsupportedMediaTypeError: The part is not an ``image/*`` type.
        """
        record = await self.store.get(video_id)
        if not record.is_owned_by(requester_id):
            raise AuthorizationError("Not authorized to update this video")

        declared = source.declared_length
        if declared is not None and declared > self.max_bytes + source.overhead_bytes:
            raise PayloadTooLargeError(
                "Upload exceeds the maximum thumbnail size",
                details={"declared_bytes": declared, "max_bytes": self.max_bytes},
            )

        upload = await source.open(self.max_bytes)
        if upload is None:
            raise BadRequestError("Missing 'thumbnail' file in form data")

        media_type = parse_media_type(upload.content_type)
        if not media_type.startswith("image/"):
            raise UnsupportedMediaTypeError(
                f"Unsupported thumbnail type {media_type}", details={"media_type": media_type}
            )

        # One byte past the ceiling is enough to detect an oversized image
        payload = await upload.read(self.max_bytes + 1)
        if len(payload) > self.max_bytes:
            raise PayloadTooLargeError(
                "Upload exceeds the maximum thumbnail size", details={"max_bytes": self.max_bytes}
            )
        if not payload:
            raise BadRequestError("Uploaded thumbnail is empty")

        record.thumbnail_url = build_data_uri(media_type, payload)
        updated = await self.store.update(record)
        logger.info(
            "Stored thumbnail",
            extra={"video_id": video_id, "media_type": media_type, "size": len(payload)},
        )
        return updated


__all__ = ["ThumbnailService", "build_data_uri"]
