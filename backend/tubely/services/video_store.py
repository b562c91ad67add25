"""
Video metadata record store over a Motor collection.

Driver failures surface as ``PersistenceError``; a missing record surfaces
as ``NotFoundError``.
"""

import logging

from datetime import UTC, datetime
from typing import Any

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from tubely.core.exceptions import NotFoundError, PersistenceError
from tubely.models.video import VideoCreate, VideoRecord


logger = logging.getLogger(__name__)


class VideoStore:
    """
    CRUD access to the ``videos`` collection.

    Example:
        ```python
        store = VideoStore(get_db_client().get_videos_collection())
        record = await store.create(user_id, VideoCreate(title="Boots review"))
        ```
    """

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self.collection = collection

    async def get(self, video_id: str) -> VideoRecord:
        try:
            document = await self.collection.find_one({"_id": video_id})
        except PyMongoError as e:
            raise PersistenceError(f"Failed to load video {video_id}") from e

        if document is None:
            raise NotFoundError("Couldn't find video", details={"video_id": video_id})
        return VideoRecord.model_validate(document)

    async def create(self, user_id: str, params: VideoCreate) -> VideoRecord:
        record = VideoRecord(user_id=user_id, title=params.title, description=params.description)
        try:
            await self.collection.insert_one(record.to_document())
        except PyMongoError as e:
            raise PersistenceError("Failed to create video") from e

        logger.info("Created video record", extra={"video_id": record.id, "user_id": user_id})
        return record

    async def update(self, record: VideoRecord) -> VideoRecord:
        """
        Replace the stored record with ``record``, stamping ``updated_at``.

        Raises:
            PersistenceError: If the write fails or the record no longer exists.
        """
        updated = record.model_copy(update={"updated_at": datetime.now(UTC)})
        try:
            result = await self.collection.replace_one({"_id": updated.id}, updated.to_document())
        except PyMongoError as e:
            raise PersistenceError(f"Failed to update video {record.id}") from e

        if result.matched_count == 0:
            raise PersistenceError(
                f"Video {record.id} disappeared before update", details={"video_id": record.id}
            )
        return updated

    async def delete(self, video_id: str) -> None:
        try:
            result = await self.collection.delete_one({"_id": video_id})
        except PyMongoError as e:
            raise PersistenceError(f"Failed to delete video {video_id}") from e

        if result.deleted_count == 0:
            raise NotFoundError("Couldn't find video", details={"video_id": video_id})
        logger.info("Deleted video record", extra={"video_id": video_id})

    async def list_by_user(self, user_id: str) -> list[VideoRecord]:
        """Return the user's records, newest first."""
        try:
            cursor = self.collection.find({"user_id": user_id}).sort("created_at", DESCENDING)
            documents: list[dict[str, Any]] = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise PersistenceError("Failed to list videos") from e

        return [VideoRecord.model_validate(document) for document in documents]


__all__ = ["VideoStore"]
