"""
Error taxonomy for the Tubely backend.

Every failure the services raise derives from ``TubelyError``. Each class
carries a stable machine-readable ``kind`` and the HTTP status the API
answers with, so a single exception handler can render any of them as::

    {"detail": {"error": "<kind>", "message": "<human readable>", "details": {...}}}

Nothing in the pipeline retries; an error aborts the operation that raised it.
"""

from typing import Any


class TubelyError(Exception):
    """Base exception for all categorized Tubely errors."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Render the error body used by the API."""
        body: dict[str, Any] = {"error": self.kind, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


# =============================================================================
# Request Errors
# =============================================================================


class BadRequestError(TubelyError):
    """Malformed identifier, missing form field, or unparseable content type."""

    kind = "bad_request"
    status_code = 400


class AuthenticationError(TubelyError):
    """Credentials are missing or do not match an account."""

    kind = "unauthorized"
    status_code = 401


class AuthorizationError(TubelyError):
    """The caller is authenticated but does not own the record."""

    kind = "forbidden"
    status_code = 403


class NotFoundError(TubelyError):
    """The requested record does not exist."""

    kind = "not_found"
    status_code = 404


class ConflictError(TubelyError):
    """The record would violate a uniqueness constraint."""

    kind = "conflict"
    status_code = 409


class PayloadTooLargeError(TubelyError):
    """The upload exceeds the configured size ceiling."""

    kind = "payload_too_large"
    status_code = 413


class UnsupportedMediaTypeError(TubelyError):
    """The declared content type is not an accepted format."""

    kind = "unsupported_media_type"
    status_code = 415


# =============================================================================
# Media Processing Errors
# =============================================================================


class MediaProcessingError(TubelyError):
    """Base class for failures of the external media tools."""

    kind = "media_processing_failed"
    status_code = 500


class ProbeExecutionError(MediaProcessingError):
    """ffprobe could not run or exited abnormally."""

    kind = "probe_failed"


class ProbeParseError(MediaProcessingError):
    """ffprobe output could not be decoded into stream descriptors."""

    kind = "probe_output_invalid"


class NoStreamError(MediaProcessingError):
    """The probed file has no stream with usable dimensions."""

    kind = "no_video_stream"
    status_code = 422


class RewriteExecutionError(MediaProcessingError):
    """The faststart remux could not run, failed, or produced no output."""

    kind = "rewrite_failed"


# =============================================================================
# Infrastructure Errors
# =============================================================================


class StagingError(TubelyError):
    """The upload could not be written to local scratch space."""

    kind = "staging_failed"
    status_code = 500


class StoreError(TubelyError):
    """The object store rejected or failed a write."""

    kind = "object_store_failed"
    status_code = 502


class SigningError(TubelyError):
    """The object store could not produce a presigned URL."""

    kind = "signing_failed"
    status_code = 502


class InvalidReferenceError(TubelyError):
    """A stored video reference does not decode into bucket and key."""

    kind = "invalid_video_reference"
    status_code = 500


class PersistenceError(TubelyError):
    """The metadata record store failed a read or write."""

    kind = "persistence_failed"
    status_code = 500


__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "BadRequestError",
    "ConflictError",
    "InvalidReferenceError",
    "MediaProcessingError",
    "NoStreamError",
    "NotFoundError",
    "PayloadTooLargeError",
    "PersistenceError",
    "ProbeExecutionError",
    "ProbeParseError",
    "RewriteExecutionError",
    "SigningError",
    "StagingError",
    "StoreError",
    "TubelyError",
    "UnsupportedMediaTypeError",
]
