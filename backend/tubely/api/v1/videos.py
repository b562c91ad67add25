"""
Video metadata endpoints.

Records are created before any upload. Every read path expands a stored
``bucket,key`` reference into a short-lived presigned URL before the record
is returned; records without an uploaded video are returned unsigned.

Endpoints:
    POST   /videos             Create a record owned by the caller (201)
    GET    /videos             List the caller's records, newest first
    GET    /videos/{video_id}  Fetch one record
    DELETE /videos/{video_id}  Delete a record the caller owns (204)
"""

import logging

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from tubely.config import Settings, get_settings
from tubely.core.auth import get_current_user_id
from tubely.core.database import get_db_client
from tubely.core.exceptions import AuthorizationError, BadRequestError
from tubely.core.storage import get_storage_client
from tubely.models.video import VideoCreate, VideoResponse
from tubely.services.url_signer import URLSigner
from tubely.services.video_store import VideoStore


logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Dependencies
# =============================================================================


def get_video_store() -> VideoStore:
    return VideoStore(get_db_client().get_videos_collection())


def get_url_signer(settings: Settings = Depends(get_settings)) -> URLSigner:
    return URLSigner(get_storage_client(settings), ttl_seconds=settings.signed_url_ttl_seconds)


def parse_video_id(video_id: str) -> str:
    """Validate a path id as a UUID and return its canonical form."""
    try:
        return str(UUID(video_id))
    except ValueError as e:
        raise BadRequestError("Invalid video ID", details={"video_id": video_id}) from e


# =============================================================================
# Routes
# =============================================================================


@router.post(
    "",
    response_model=VideoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a video record",
)
async def create_video(
    params: VideoCreate,
    user_id: str = Depends(get_current_user_id),
    store: VideoStore = Depends(get_video_store),
) -> VideoResponse:
    record = await store.create(user_id, params)
    return VideoResponse.from_record(record)


@router.get("", response_model=list[VideoResponse], summary="List the caller's videos")
async def list_videos(
    user_id: str = Depends(get_current_user_id),
    store: VideoStore = Depends(get_video_store),
    signer: URLSigner = Depends(get_url_signer),
) -> list[VideoResponse]:
    records = await store.list_by_user(user_id)
    return [VideoResponse.from_record(signer.sign_if_uploaded(record)) for record in records]


@router.get("/{video_id}", response_model=VideoResponse, summary="Get a video record")
async def get_video(
    video_id: str,
    _user_id: str = Depends(get_current_user_id),
    store: VideoStore = Depends(get_video_store),
    signer: URLSigner = Depends(get_url_signer),
) -> VideoResponse:
    # Any authenticated caller may read a record; only owners may change it
    record = await store.get(parse_video_id(video_id))
    return VideoResponse.from_record(signer.sign_if_uploaded(record))


@router.delete(
    "/{video_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a video record",
)
async def delete_video(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    store: VideoStore = Depends(get_video_store),
) -> Response:
    # The stored object, if any, is left in place
    record = await store.get(parse_video_id(video_id))
    if not record.is_owned_by(user_id):
        raise AuthorizationError("You can't delete this video")

    await store.delete(record.id)
    logger.info("Video deleted by owner", extra={"video_id": record.id, "user_id": user_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
