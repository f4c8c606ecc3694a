"""Video ingestion: stage the upload, resolve a thumbnail, commit metadata."""
import logging
from dataclasses import dataclass
from typing import AsyncIterable, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import PayloadTooLargeError, ValidationError
from app.services.cleanup_service import rollback_staged
from app.services.form_parser import MB, UploadFormParser
from app.services.storage_service import LocalStorage
from app.services.thumbnail_service import ThumbnailResolver
from app.services.video_service import create_video

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "file and title are required"

TEXT_FIELDS = ("title", "description", "thumbnail")
# boundaries and part headers
FORM_OVERHEAD_BYTES = 64 * 1024


@dataclass
class ReceivedUpload:
    filename: str
    title: str
    description: str
    thumbnail: str | None = None


def body_limit(max_bytes: int, max_field_bytes: int) -> int:
    """Largest request body a valid upload can have."""
    return max_bytes + len(TEXT_FIELDS) * max_field_bytes + FORM_OVERHEAD_BYTES


def check_content_length(headers: Mapping[str, str], limit: int) -> None:
    """Refuse a body that announces itself as too large before reading any of it."""
    content_length = headers.get("content-length")
    if not content_length:
        return
    try:
        size = int(content_length)
    except ValueError:
        # the streaming cap still applies
        return
    if size > limit:
        raise PayloadTooLargeError(f"request body too large (max {limit // MB}MB)")


async def receive_upload(
    headers: Mapping[str, str],
    stream: AsyncIterable[bytes],
    storage: LocalStorage,
    max_bytes: int | None = None,
    max_field_bytes: int = MB,
) -> ReceivedUpload:
    """Stream the body, staging the `file` part and parsing the text fields.

    A staged file is rolled back before a missing title is reported.
    """
    if max_bytes is not None:
        check_content_length(headers, body_limit(max_bytes, max_field_bytes))

    parser = UploadFormParser(storage, max_file_bytes=max_bytes, max_field_bytes=max_field_bytes)
    form = await parser.parse(headers.get("content-type", ""), stream)
    if form.file_name is None:
        raise ValidationError(REQUIRED_FIELDS_MESSAGE)

    title = (form.get("title") or "").strip()
    if not title:
        rollback_staged(storage, form.file_name)
        raise ValidationError(REQUIRED_FIELDS_MESSAGE)

    return ReceivedUpload(
        filename=form.file_name,
        title=title,
        description=form.get("description") or "",
        thumbnail=form.get("thumbnail") or None,
    )


async def ingest_upload(
    db: AsyncSession,
    storage: LocalStorage,
    resolver: ThumbnailResolver,
    uploader_id: int,
    received: ReceivedUpload,
) -> int:
    thumbnail_filename = None
    try:
        thumbnail_filename = await resolver.resolve(received.filename, received.thumbnail)
        video_id = await create_video(
            db,
            title=received.title,
            description=received.description,
            filename=received.filename,
            thumbnail_filename=thumbnail_filename,
            uploader_id=uploader_id,
        )
    except BaseException:
        rollback_staged(storage, received.filename, thumbnail_filename)
        raise
    logger.info(
        "Video %s stored as %s (thumbnail: %s)", video_id, received.filename, thumbnail_filename or "none"
    )
    return video_id
