"""
Read-time signing of stored video references.

A record's ``video_url`` is persisted as ``<bucket>,<key>``. On every read
it is expanded into a presigned GET URL that expires ``ttl_seconds`` after
issue. Signed URLs are never stored or cached.
"""

from typing import Protocol

from tubely.core.exceptions import InvalidReferenceError
from tubely.models.video import VideoRecord


REFERENCE_SEPARATOR = ","
DEFAULT_SIGNED_URL_TTL_SECONDS = 60


def compose_reference(bucket: str, key: str) -> str:
    return f"{bucket}{REFERENCE_SEPARATOR}{key}"


def parse_reference(reference: str | None) -> tuple[str, str]:
    """
    Split a stored reference into ``(bucket, key)``.

    Raises:
        InvalidReferenceError: Unless the reference has exactly two non-empty parts.
    """
    if not reference:
        raise InvalidReferenceError("Video reference is empty")

    parts = reference.split(REFERENCE_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        raise InvalidReferenceError(
            "Video reference must be '<bucket>,<key>'", details={"reference": reference}
        )
    return parts[0], parts[1]


class Presigner(Protocol):
    def presign_get(self, bucket: str, key: str, ttl_seconds: int) -> str: ...


class URLSigner:
    """Expands stored references into presigned URLs."""

    def __init__(self, presigner: Presigner, ttl_seconds: int = DEFAULT_SIGNED_URL_TTL_SECONDS) -> None:
        self.presigner = presigner
        self.ttl_seconds = ttl_seconds

    def sign_reference(self, reference: str) -> str:
        bucket, key = parse_reference(reference)
        return self.presigner.presign_get(bucket, key, self.ttl_seconds)

    def sign(self, record: VideoRecord) -> VideoRecord:
        """
        Return a copy of ``record`` whose ``video_url`` is a presigned URL.

        Raises:
            InvalidReferenceError: If the stored reference is malformed.
            SigningError: If the object store cannot sign it.
        """
        signed_url = self.sign_reference(record.video_url or "")
        return record.model_copy(update={"video_url": signed_url})

    def sign_if_uploaded(self, record: VideoRecord) -> VideoRecord:
        """Sign records that have a stored video; return others unchanged."""
        if not record.has_video():
            return record
        return self.sign(record)


__all__ = [
    "REFERENCE_SEPARATOR",
    "Presigner",
    "URLSigner",
    "compose_reference",
    "parse_reference",
]
