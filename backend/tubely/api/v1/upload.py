"""
Upload endpoints.

Endpoints:
    POST /upload/video/{video_id}      multipart field ``video``; runs the ingestion
                                       pipeline and returns the signed record
    POST /upload/thumbnail/{video_id}  multipart field ``thumbnail``; stores the image
                                       inline as a data URI

The request body is parsed through a byte-counting stream, so a client
that omits or understates Content-Length still cannot push more than the
ceiling (plus multipart framing) into the server. Starlette spools file
parts to its own temporary files before the service stages them.
"""

import logging

from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import FormData, UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser

from tubely.api.v1.videos import get_url_signer, get_video_store, parse_video_id
from tubely.config import Settings, get_settings
from tubely.core.auth import get_current_user_id
from tubely.core.exceptions import BadRequestError, PayloadTooLargeError
from tubely.core.storage import get_storage_client
from tubely.models.video import VideoResponse
from tubely.services.aspect_probe import AspectProbe
from tubely.services.faststart import FastStartRewriter
from tubely.services.media_types import MediaTypeClassifier
from tubely.services.object_keys import KeyDeriver
from tubely.services.process_runner import SubprocessRunner
from tubely.services.staging import StagingArea
from tubely.services.thumbnail_service import ThumbnailService
from tubely.services.upload_service import VideoUploadService
from tubely.services.url_signer import URLSigner
from tubely.services.video_store import VideoStore


logger = logging.getLogger(__name__)

router = APIRouter()

# Allowance for boundaries and part headers on top of the file ceiling
MULTIPART_OVERHEAD_BYTES = 64 * 1024


class MultipartUploadSource:
    """
    Adapts a multipart request to the service layer's ``UploadSource``.

    Call ``aclose()`` when done to release Starlette's spooled part files.
    A body that fails to parse leaves nothing open.
    """

    overhead_bytes = MULTIPART_OVERHEAD_BYTES

    def __init__(self, request: Request, field: str) -> None:
        self.request = request
        self.field = field
        self._form: FormData | None = None

        content_length = request.headers.get("content-length", "")
        self.declared_length = int(content_length) if content_length.isdigit() else None

    async def open(self, max_bytes: int) -> UploadFile | None:
        content_type = self.request.headers.get("content-type", "")
        if not content_type.lower().startswith("multipart/form-data"):
            return None

        limit = max_bytes + self.overhead_bytes
        exceeded = False

        async def bounded_stream() -> AsyncGenerator[bytes, None]:
            nonlocal exceeded
            received = 0
            async for chunk in self.request.stream():
                received += len(chunk)
                if received > limit:
                    exceeded = True
                    # Raised as a parser error so the parser closes its spooled files
                    raise MultiPartException("Request body exceeds the upload limit")
                yield chunk

        parser = MultiPartParser(self.request.headers, bounded_stream())
        try:
            self._form = await parser.parse()
        except MultiPartException as e:
            if exceeded:
                raise PayloadTooLargeError(
                    "Request body exceeds the upload limit", details={"max_bytes": max_bytes}
                ) from e
            raise BadRequestError("Malformed multipart body", details={"reason": e.message}) from e

        part = self._form.get(self.field)
        if not isinstance(part, UploadFile):
            return None
        return part

    async def aclose(self) -> None:
        if self._form is not None:
            await self._form.close()
            self._form = None


# =============================================================================
# Dependencies
# =============================================================================


def get_video_upload_service(
    settings: Settings = Depends(get_settings),
    store: VideoStore = Depends(get_video_store),
) -> VideoUploadService:
    runner = SubprocessRunner(timeout_seconds=settings.media_tool_timeout_seconds)
    return VideoUploadService(
        store=store,
        object_store=get_storage_client(settings),
        classifier=MediaTypeClassifier(settings.allowed_video_tokens),
        probe=AspectProbe(runner, ffprobe_path=settings.ffprobe_path),
        rewriter=FastStartRewriter(runner, ffmpeg_path=settings.ffmpeg_path),
        key_deriver=KeyDeriver(),
        staging=StagingArea(settings.staging_dir),
        bucket_name=settings.s3_bucket_name,
        max_upload_bytes=settings.max_video_upload_bytes,
        chunk_size=settings.upload_chunk_size_bytes,
    )


def get_thumbnail_service(
    settings: Settings = Depends(get_settings),
    store: VideoStore = Depends(get_video_store),
) -> ThumbnailService:
    return ThumbnailService(store, max_bytes=settings.max_thumbnail_upload_bytes)


# =============================================================================
# Routes
# =============================================================================


@router.post("/video/{video_id}", response_model=VideoResponse, summary="Upload a video file")
async def upload_video(
    video_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    service: VideoUploadService = Depends(get_video_upload_service),
    signer: URLSigner = Depends(get_url_signer),
) -> VideoResponse:
    source = MultipartUploadSource(request, "video")
    try:
        record = await service.upload_video(parse_video_id(video_id), user_id, source)
    finally:
        await source.aclose()

    return VideoResponse.from_record(signer.sign(record))


@router.post(
    "/thumbnail/{video_id}", response_model=VideoResponse, summary="Upload a thumbnail image"
)
async def upload_thumbnail(
    video_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    service: ThumbnailService = Depends(get_thumbnail_service),
    signer: URLSigner = Depends(get_url_signer),
) -> VideoResponse:
    source = MultipartUploadSource(request, "thumbnail")
    try:
        record = await service.upload_thumbnail(parse_video_id(video_id), user_id, source)
    finally:
        await source.aclose()

    return VideoResponse.from_record(signer.sign_if_uploaded(record))
