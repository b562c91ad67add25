"""
Pytest Configuration and Test Fixtures for the Tubely Backend

This module provides:
- Test Settings with isolated staging directory and JWT secret
- Fake process runner standing in for ffprobe/ffmpeg
- Fake object store recording puts and presign calls
- In-memory video record store
- Fake upload sources for the service layer
- FastAPI TestClient with dependency overrides and auth headers
"""

import json

from collections.abc import Generator, Sequence
from datetime import UTC, datetime
from io import BytesIO
from pathlib import Path
from typing import NamedTuple

import pytest

from fastapi.testclient import TestClient

from tubely.config import Settings
from tubely.core.exceptions import NotFoundError, PersistenceError, SigningError, StoreError
from tubely.models.video import VideoCreate, VideoRecord
from tubely.services.aspect_probe import AspectProbe
from tubely.services.faststart import FastStartRewriter
from tubely.services.media_types import MediaTypeClassifier
from tubely.services.object_keys import KeyDeriver
from tubely.services.process_runner import ProcessResult
from tubely.services.staging import StagingArea
from tubely.services.upload_service import VideoUploadService


OWNER_ID = "owner-user-id"
OTHER_USER_ID = "other-user-id"
TEST_BUCKET = "test-bucket"
TEST_SECRET_KEY = "test-secret-key-for-jwt-signing-minimum-32-chars"

# Marker prepended by the fake ffmpeg so tests can tell the copies apart
FASTSTART_HEADER = b"FASTSTART:"

SAMPLE_VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"fake-mp4-payload" * 8


def ffprobe_json(width: int, height: int) -> bytes:
    """ffprobe ``-show_streams`` output with an audio stream before the video stream."""
    return json.dumps(
        {
            "streams": [
                {"index": 0, "codec_type": "audio", "codec_name": "aac"},
                {"index": 1, "codec_type": "video", "codec_name": "h264", "width": width, "height": height},
            ]
        }
    ).encode()


# ==============================================================================
# Fakes
# ==============================================================================


class FakeProcessRunner:
    """
    Stands in for ffprobe/ffmpeg.

    The fake ffmpeg writes ``FASTSTART_HEADER + input bytes`` to its output
    path. The fake ffprobe returns ``probe_output`` and records the bytes of
    the file it was pointed at.
    """

    def __init__(
        self,
        probe_output: bytes | None = None,
        probe_exit: int = 0,
        ffmpeg_exit: int = 0,
        probe_error: Exception | None = None,
        ffmpeg_error: Exception | None = None,
        produce_output: bool = True,
    ) -> None:
        self.probe_output = probe_output if probe_output is not None else ffprobe_json(1920, 1080)
        self.probe_exit = probe_exit
        self.ffmpeg_exit = ffmpeg_exit
        self.probe_error = probe_error
        self.ffmpeg_error = ffmpeg_error
        self.produce_output = produce_output

        self.calls: list[list[str]] = []
        self.probed: list[tuple[Path, bytes]] = []
        self.rewritten: list[tuple[Path, Path]] = []

    def run(self, args: Sequence[str]) -> ProcessResult:
        command = list(args)
        self.calls.append(command)

        if command[0] == "ffprobe":
            if self.probe_error is not None:
                raise self.probe_error
            path = Path(command[-1])
            self.probed.append((path, path.read_bytes()))
            return ProcessResult(stdout=self.probe_output, exit_status=self.probe_exit)

        if command[0] == "ffmpeg":
            if self.ffmpeg_error is not None:
                raise self.ffmpeg_error
            source = Path(command[command.index("-i") + 1])
            target = Path(command[-1])
            if self.produce_output:
                target.write_bytes(FASTSTART_HEADER + source.read_bytes())
            self.rewritten.append((source, target))
            return ProcessResult(stdout=b"", exit_status=self.ffmpeg_exit)

        raise FileNotFoundError(command[0])


class PutCall(NamedTuple):
    bucket: str
    key: str
    content_type: str
    data: bytes


class FakeObjectStore:
    """Object store that keeps put payloads in memory and fakes presigned URLs."""

    def __init__(self, fail_put: bool = False, fail_sign: bool = False) -> None:
        self.fail_put = fail_put
        self.fail_sign = fail_sign
        self.puts: list[PutCall] = []
        self.presign_calls: list[tuple[str, str, int]] = []

    def put_file(self, bucket: str, key: str, file_path: str, content_type: str) -> None:
        if self.fail_put:
            raise StoreError(f"Failed to store object {key}")
        self.puts.append(PutCall(bucket, key, content_type, Path(file_path).read_bytes()))

    def presign_get(self, bucket: str, key: str, ttl_seconds: int) -> str:
        self.presign_calls.append((bucket, key, ttl_seconds))
        if self.fail_sign:
            raise SigningError(f"Failed to sign object {key}")
        return f"https://s3.test/{bucket}/{key}?X-Amz-Expires={ttl_seconds}"


class InMemoryVideoStore:
    """Dict-backed replacement for ``VideoStore``."""

    def __init__(self) -> None:
        self.records: dict[str, VideoRecord] = {}
        self.update_calls = 0
        self.fail_update = False

    def add(self, record: VideoRecord) -> VideoRecord:
        self.records[record.id] = record.model_copy()
        return record

    async def get(self, video_id: str) -> VideoRecord:
        if video_id not in self.records:
            raise NotFoundError("Couldn't find video", details={"video_id": video_id})
        return self.records[video_id].model_copy()

    async def create(self, user_id: str, params: VideoCreate) -> VideoRecord:
        record = VideoRecord(user_id=user_id, title=params.title, description=params.description)
        return self.add(record)

    async def update(self, record: VideoRecord) -> VideoRecord:
        self.update_calls += 1
        if self.fail_update or record.id not in self.records:
            raise PersistenceError(f"Failed to update video {record.id}")
        updated = record.model_copy(update={"updated_at": datetime.now(UTC)})
        self.records[record.id] = updated
        return updated.model_copy()

    async def delete(self, video_id: str) -> None:
        if self.records.pop(video_id, None) is None:
            raise NotFoundError("Couldn't find video")

    async def list_by_user(self, user_id: str) -> list[VideoRecord]:
        owned = [r for r in self.records.values() if r.user_id == user_id]
        return sorted(owned, key=lambda r: r.created_at, reverse=True)


class FakeUploadedFile:
    def __init__(self, data: bytes, content_type: str | None) -> None:
        self.content_type = content_type
        self._buffer = BytesIO(data)
        self.read_sizes: list[int] = []

    async def read(self, size: int = -1) -> bytes:
        self.read_sizes.append(size)
        return self._buffer.read(size)


class FakeUploadSource:
    """Upload source with a fixed body; ``missing=True`` simulates an absent form part."""

    def __init__(
        self,
        data: bytes = SAMPLE_VIDEO_BYTES,
        content_type: str | None = "video/mp4",
        declared_length: int | None = None,
        missing: bool = False,
        overhead_bytes: int = 0,
    ) -> None:
        self.declared_length = declared_length
        self.overhead_bytes = overhead_bytes
        self.missing = missing
        self.opened_with: int | None = None
        self.file = FakeUploadedFile(data, content_type)

    async def open(self, max_bytes: int) -> FakeUploadedFile | None:
        self.opened_with = max_bytes
        if self.missing:
            return None
        return self.file


# ==============================================================================
# Settings and Auth Fixtures
# ==============================================================================


@pytest.fixture
def staging_root(tmp_path: Path) -> Path:
    root = tmp_path / "staging"
    root.mkdir()
    return root


@pytest.fixture
def mock_settings(staging_root: Path) -> Settings:
    """Settings isolated from the environment, with staging under tmp_path."""
    return Settings(
        app_env="testing",
        app_name="tubely-test",
        debug=True,
        secret_key=TEST_SECRET_KEY,
        mongodb_uri="mongodb://localhost:27017",
        mongodb_db_name="test_tubely",
        s3_endpoint_url="http://localhost:9000",
        s3_access_key_id="test-access-key",
        s3_secret_access_key="test-secret-key",
        s3_bucket_name=TEST_BUCKET,
        s3_region="us-east-1",
        signed_url_ttl_seconds=60,
        jwt_algorithm="HS256",
        jwt_expiration_hours=24,
        staging_dir=str(staging_root),
    )


@pytest.fixture
def auth_headers(mock_settings: Settings) -> dict[str, str]:
    from tubely.core.auth import create_local_jwt

    token = create_local_jwt(OWNER_ID, "owner@tubely.com", mock_settings)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers(mock_settings: Settings) -> dict[str, str]:
    from tubely.core.auth import create_local_jwt

    token = create_local_jwt(OTHER_USER_ID, "other@tubely.com", mock_settings)
    return {"Authorization": f"Bearer {token}"}


# ==============================================================================
# Pipeline Fixtures
# ==============================================================================


@pytest.fixture
def process_runner() -> FakeProcessRunner:
    return FakeProcessRunner()


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def video_store() -> InMemoryVideoStore:
    return InMemoryVideoStore()


@pytest.fixture
def owned_video(video_store: InMemoryVideoStore) -> VideoRecord:
    return video_store.add(VideoRecord(user_id=OWNER_ID, title="Boots review"))


def build_upload_service(
    video_store: InMemoryVideoStore,
    object_store: FakeObjectStore,
    process_runner: FakeProcessRunner,
    staging_root: Path,
    max_upload_bytes: int = 1 << 30,
    chunk_size: int = 16,
) -> VideoUploadService:
    return VideoUploadService(
        store=video_store,
        object_store=object_store,
        classifier=MediaTypeClassifier(),
        probe=AspectProbe(process_runner),
        rewriter=FastStartRewriter(process_runner),
        key_deriver=KeyDeriver(),
        staging=StagingArea(staging_root),
        bucket_name=TEST_BUCKET,
        max_upload_bytes=max_upload_bytes,
        chunk_size=chunk_size,
    )


@pytest.fixture
def upload_service(
    video_store: InMemoryVideoStore,
    object_store: FakeObjectStore,
    process_runner: FakeProcessRunner,
    staging_root: Path,
) -> VideoUploadService:
    return build_upload_service(video_store, object_store, process_runner, staging_root)


# ==============================================================================
# API Fixtures
# ==============================================================================


@pytest.fixture
def test_client(
    mock_settings: Settings,
    video_store: InMemoryVideoStore,
    object_store: FakeObjectStore,
    upload_service: VideoUploadService,
) -> Generator[TestClient, None, None]:
    """TestClient with storage, records and the pipeline replaced by fakes."""
    from tubely.api.v1.upload import get_thumbnail_service, get_video_upload_service
    from tubely.api.v1.videos import get_url_signer, get_video_store
    from tubely.config import get_settings
    from tubely.main import app
    from tubely.services.thumbnail_service import ThumbnailService
    from tubely.services.url_signer import URLSigner

    app.dependency_overrides[get_settings] = lambda: mock_settings
    app.dependency_overrides[get_video_store] = lambda: video_store
    app.dependency_overrides[get_url_signer] = lambda: URLSigner(
        object_store, ttl_seconds=mock_settings.signed_url_ttl_seconds
    )
    app.dependency_overrides[get_video_upload_service] = lambda: upload_service
    app.dependency_overrides[get_thumbnail_service] = lambda: ThumbnailService(
        video_store, max_bytes=mock_settings.max_thumbnail_upload_bytes
    )

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()
