import asyncio

import pytest
from sqlalchemy import func, select

from app.core.exceptions import ConflictError, PayloadTooLargeError, ValidationError
from app.models.video import Video
from app.services.thumbnail_service import ThumbnailResolver
from app.services.upload_service import ReceivedUpload, check_content_length, ingest_upload, receive_upload
from app.services.video_service import create_video
from tests.fakes import MULTIPART_CONTENT_TYPE, HangingExtractor, WorkingExtractor, body_stream, multipart_body

HEADERS = {"content-type": MULTIPART_CONTENT_TYPE}


def _body(file=b"data", **fields):
    files = [("file", "clip.mp4", file)] if file is not None else []
    return body_stream(multipart_body(fields=list(fields.items()), files=files))


@pytest.mark.asyncio
class TestReceiveUpload:
    async def test_parses_fields(self, storage):
        received = await receive_upload(HEADERS, _body(title=" Title ", thumbnail="data:x"), storage)

        assert received.title == "Title"
        assert received.description == ""
        assert received.thumbnail == "data:x"
        assert received.filename.endswith(".mp4")
        assert storage.path_for(received.filename).read_bytes() == b"data"

    async def test_missing_title_rolls_back(self, storage):
        with pytest.raises(ValidationError):
            await receive_upload(HEADERS, _body(description="d"), storage)

        assert storage.list_names() == []

    async def test_file_field_must_be_a_file(self, storage):
        with pytest.raises(ValidationError):
            await receive_upload(HEADERS, _body(file=None, file_name="clip.mp4", title="t"), storage)
        with pytest.raises(ValidationError):
            await receive_upload(HEADERS, body_stream(multipart_body(fields=[("file", "just text"), ("title", "t")])), storage)

        assert storage.list_names() == []

    async def test_oversized_file_is_rejected(self, storage):
        with pytest.raises(PayloadTooLargeError):
            await receive_upload(HEADERS, _body(file=b"v" * 2048, title="t"), storage, max_bytes=1024)

        assert storage.list_names() == []

    async def test_announced_oversized_body_is_refused_unread(self, storage):
        consumed = []

        async def body():
            consumed.append(1)
            yield b""

        headers = {**HEADERS, "content-length": str(10 * 1024 * 1024)}
        with pytest.raises(PayloadTooLargeError):
            await receive_upload(headers, body(), storage, max_bytes=1024, max_field_bytes=1024)

        assert consumed == []
        assert storage.list_names() == []


class TestCheckContentLength:
    def test_within_limit(self):
        check_content_length({"content-length": "100"}, 100)

    def test_over_limit(self):
        with pytest.raises(PayloadTooLargeError):
            check_content_length({"content-length": "101"}, 100)

    @pytest.mark.parametrize("headers", [{}, {"content-length": ""}, {"content-length": "lots"}])
    def test_missing_or_unparseable_is_left_to_streaming(self, headers):
        check_content_length(headers, 100)


@pytest.mark.asyncio
class TestIngestUpload:
    async def test_commits_with_thumbnail(self, db_session, storage, make_user):
        user, _ = await make_user("alice")
        filename = storage.save_bytes(b"video", ".mp4")
        resolver = ThumbnailResolver(storage, WorkingExtractor())

        video_id = await ingest_upload(db_session, storage, resolver, user.id, ReceivedUpload(filename, "t", ""))

        video = (await db_session.execute(select(Video).where(Video.id == video_id))).scalar_one()
        assert video.filename == filename
        assert storage.exists(video.thumbnail_filename)
        assert video.uploader_id == user.id
        assert video.likes == 0

    async def test_failed_commit_removes_staged_files(self, db_session, storage):
        filename = storage.save_bytes(b"video", ".mp4")
        resolver = ThumbnailResolver(storage, WorkingExtractor())

        # no such user: the foreign key rejects the insert
        with pytest.raises(ConflictError):
            await ingest_upload(db_session, storage, resolver, 9999, ReceivedUpload(filename, "t", ""))

        assert storage.list_names() == []
        assert await db_session.scalar(select(func.count(Video.id))) == 0

    async def test_cancelled_upload_removes_video_and_partial_thumbnail(self, db_session, storage, make_user):
        user, _ = await make_user("alice")
        filename = storage.save_bytes(b"video", ".mp4")
        extractor = HangingExtractor()
        resolver = ThumbnailResolver(storage, extractor)

        task = asyncio.create_task(
            ingest_upload(db_session, storage, resolver, user.id, ReceivedUpload(filename, "t", ""))
        )
        await extractor.started.wait()
        assert len(storage.list_names()) == 2
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert storage.list_names() == []
        assert await db_session.scalar(select(func.count(Video.id))) == 0


@pytest.mark.asyncio
async def test_create_video_surfaces_constraint_violation(db_session):
    with pytest.raises(ConflictError):
        await create_video(
            db_session,
            title="t",
            description=None,
            filename="a.mp4",
            thumbnail_filename=None,
            uploader_id=12345,
        )
