"""
Tubely Video Upload Service

Orchestrates the video ingestion pipeline for one upload request:

1. Load the metadata record and check the caller owns it
2. Enforce the size ceiling on the declared length
3. Open the ``video`` part and validate its media type
4. Stream the bytes into a private staging directory with aiofiles
5. Remux the staged file for fast start (ffmpeg) and probe the ORIGINAL
   staged file for its aspect ratio (ffprobe)
6. Derive an aspect-prefixed random object key
7. Store the fast-start copy in S3/MinIO
8. Point the record at ``<bucket>,<key>`` and persist it

Nothing is retried. The staging directory is removed on every path. The
object write and the record update are not transactional: when the update
fails after a successful put, the object is orphaned and logged at ERROR
with its bucket and key.
"""

import asyncio
import logging

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import aiofiles

from tubely.core.exceptions import (
    AuthorizationError,
    BadRequestError,
    PayloadTooLargeError,
    PersistenceError,
    StagingError,
)
from tubely.models.video import VideoRecord
from tubely.services.aspect_probe import AspectProbe
from tubely.services.faststart import FastStartRewriter
from tubely.services.media_types import MediaTypeClassifier
from tubely.services.object_keys import KeyDeriver, media_type_extension
from tubely.services.staging import StagedFile, StagingArea, UploadedFile, UploadSource
from tubely.services.url_signer import compose_reference
from tubely.utils.logger import add_log_context


logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 1 << 30
DEFAULT_CHUNK_SIZE = 1 << 20
STAGED_UPLOAD_STEM = "upload"


class RecordStore(Protocol):
    async def get(self, video_id: str) -> VideoRecord: ...

    async def update(self, record: VideoRecord) -> VideoRecord: ...


class ObjectStore(Protocol):
    def put_file(self, bucket: str, key: str, file_path: str, content_type: str) -> None: ...


@dataclass(frozen=True)
class PreparedVideo:
    """
    Result of the processing step.

    ``aspect_ratio`` always describes ``original``; ``faststart`` is what
    gets stored.
    """

    original: StagedFile
    faststart: StagedFile
    aspect_ratio: str


class VideoUploadService:
    """
    Video upload orchestrator.

    All collaborators are injected; see ``tubely.api.v1.upload`` for the
    production wiring.
    """

    def __init__(
        self,
        store: RecordStore,
        object_store: ObjectStore,
        classifier: MediaTypeClassifier,
        probe: AspectProbe,
        rewriter: FastStartRewriter,
        key_deriver: KeyDeriver,
        staging: StagingArea,
        bucket_name: str,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.store = store
        self.object_store = object_store
        self.classifier = classifier
        self.probe = probe
        self.rewriter = rewriter
        self.key_deriver = key_deriver
        self.staging = staging
        self.bucket_name = bucket_name
        self.max_upload_bytes = max_upload_bytes
        self.chunk_size = chunk_size

    async def upload_video(
        self, video_id: str, requester_id: str, source: UploadSource
    ) -> VideoRecord:
        """
        Ingest one video upload for ``video_id``.

        Returns:
            VideoRecord: The updated record with an unsigned ``bucket,key`` reference.

        Raises:
            NotFoundError: The record does not exist.
            AuthorizationError: ``requester_id`` does not own the record.
            PayloadTooLargeError: The upload exceeds ``max_upload_bytes``.
            BadRequestError: The ``video`` part is missing, empty, or has a malformed type.
            UnsupportedMediaTypeError: The type is not an accepted container.
            StagingError: The upload could not be written locally.
            MediaProcessingError: ffmpeg or ffprobe failed.
            StoreError: The object store rejected the write.
            PersistenceError: The record update failed (object orphaned).
        """
        upload_logger = add_log_context(logger, video_id=video_id, user_id=requester_id)
        upload_logger.info("Uploading video")

        record = await self.store.get(video_id)
        if not record.is_owned_by(requester_id):
            upload_logger.warning("Upload rejected: requester does not own video")
            raise AuthorizationError("Not authorized to upload this video")

        # The declared length covers the whole body; the exact file ceiling is enforced in _stage
        declared = source.declared_length
        if declared is not None and declared > self.max_upload_bytes + source.overhead_bytes:
            raise PayloadTooLargeError(
                "Upload exceeds the maximum video size",
                details={"declared_bytes": declared, "max_bytes": self.max_upload_bytes},
            )

        upload = await source.open(self.max_upload_bytes)
        if upload is None:
            raise BadRequestError("Missing 'video' file in form data")

        media_type = self.classifier.validate(upload.content_type)

        with self.staging.session() as workdir:
            original = await self._stage(upload, media_type, workdir)
            upload_logger.info("Staged upload", extra={"size": original.size, "media_type": media_type})

            prepared = await self._prepare(original)
            upload_logger.info(
                "Processed upload",
                extra={"aspect_ratio": prepared.aspect_ratio, "faststart_size": prepared.faststart.size},
            )

            key = self.key_deriver.derive(prepared.aspect_ratio, media_type)
            await asyncio.to_thread(
                self.object_store.put_file,
                self.bucket_name,
                key,
                str(prepared.faststart.path),
                media_type,
            )
            upload_logger.info("Stored video object", extra={"bucket": self.bucket_name, "key": key})

        record.video_url = compose_reference(self.bucket_name, key)
        try:
            updated = await self.store.update(record)
        except PersistenceError:
            upload_logger.error(
                "Record update failed after store write; object orphaned",
                extra={"bucket": self.bucket_name, "key": key},
            )
            raise

        upload_logger.info("Video upload complete", extra={"key": key})
        return updated

    async def _stage(self, upload: UploadedFile, media_type: str, workdir: Path) -> StagedFile:
        """Copy the upload to ``workdir`` in chunks, enforcing the size ceiling."""
        path = workdir / f"{STAGED_UPLOAD_STEM}{media_type_extension(media_type)}"
        total = 0
        try:
            async with aiofiles.open(path, "wb") as staged:
                while chunk := await upload.read(self.chunk_size):
                    total += len(chunk)
                    if total > self.max_upload_bytes:
                        raise PayloadTooLargeError(
                            "Upload exceeds the maximum video size",
                            details={"max_bytes": self.max_upload_bytes},
                        )
                    await staged.write(chunk)
        except OSError as e:
            raise StagingError("Could not write upload to staging area") from e

        if total == 0:
            raise BadRequestError("Uploaded video is empty")
        return StagedFile(path=path, media_type=media_type, size=total)

    async def _prepare(self, original: StagedFile) -> PreparedVideo:
        # The probe must see the pre-rewrite bytes; placement only reads faststart
        faststart = await asyncio.to_thread(self.rewriter.rewrite, original)
        aspect_ratio = await asyncio.to_thread(self.probe.classify, original.path)
        return PreparedVideo(original=original, faststart=faststart, aspect_ratio=aspect_ratio)


__all__ = ["PreparedVideo", "VideoUploadService"]
