"""
Tests for stored reference handling and read-time URL signing.
"""

import pytest

from tubely.core.exceptions import InvalidReferenceError, SigningError
from tubely.models.video import VideoRecord
from tubely.services.url_signer import URLSigner, compose_reference, parse_reference

from tests.conftest import OWNER_ID, FakeObjectStore


class TestReferences:
    """Test bucket,key reference parsing."""

    def test_parse_reference(self) -> None:
        assert parse_reference("mybucket,abc123") == ("mybucket", "abc123")

    def test_compose_and_parse_agree(self) -> None:
        reference = compose_reference("tubely-videos", "landscape/abc.mp4")
        assert reference == "tubely-videos,landscape/abc.mp4"
        assert parse_reference(reference) == ("tubely-videos", "landscape/abc.mp4")

    @pytest.mark.parametrize("reference", ["", None, "nobucket", ",key", "bucket,", "a,b,c", ","])
    def test_invalid_references(self, reference: str | None) -> None:
        with pytest.raises(InvalidReferenceError) as exc_info:
            parse_reference(reference)
        assert exc_info.value.kind == "invalid_video_reference"


class TestURLSigner:
    """Test presigned URL expansion."""

    def test_sign_replaces_reference_only(self) -> None:
        store = FakeObjectStore()
        record = VideoRecord(user_id=OWNER_ID, title="Clip", video_url="mybucket,abc123")

        signed = URLSigner(store, ttl_seconds=60).sign(record)

        assert signed.video_url == "https://s3.test/mybucket/abc123?X-Amz-Expires=60"
        assert signed.model_dump(exclude={"video_url"}) == record.model_dump(exclude={"video_url"})
        assert record.video_url == "mybucket,abc123"

    def test_signing_twice_presigns_twice(self) -> None:
        store = FakeObjectStore()
        signer = URLSigner(store)
        record = VideoRecord(user_id=OWNER_ID, title="Clip", video_url="mybucket,abc123")

        signer.sign(record)
        signer.sign(record)

        assert store.presign_calls == [("mybucket", "abc123", 60), ("mybucket", "abc123", 60)]

    @pytest.mark.parametrize("reference", ["", "nobucket", "bucket,"])
    def test_invalid_reference_never_reaches_presigner(self, reference: str) -> None:
        store = FakeObjectStore()
        with pytest.raises(InvalidReferenceError):
            URLSigner(store).sign_reference(reference)
        assert store.presign_calls == []

    def test_sign_if_uploaded_leaves_pending_records(self) -> None:
        store = FakeObjectStore()
        record = VideoRecord(user_id=OWNER_ID, title="Clip")

        assert URLSigner(store).sign_if_uploaded(record) is record
        assert store.presign_calls == []

    def test_signing_failure_propagates(self) -> None:
        signer = URLSigner(FakeObjectStore(fail_sign=True))
        record = VideoRecord(user_id=OWNER_ID, title="Clip", video_url="mybucket,abc123")
        with pytest.raises(SigningError):
            signer.sign(record)
