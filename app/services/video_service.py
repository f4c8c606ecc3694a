"""Video business logic: metadata writes and the public listing."""
import logging

from sqlalchemy import desc, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import ConflictError, NotFoundError
from app.models.video import Video
from app.schemas.video import VideoResponse

logger = logging.getLogger(__name__)

MEDIA_PREFIX = "/uploads"


async def create_video(
    db: AsyncSession,
    *,
    title: str,
    description: str | None,
    filename: str,
    thumbnail_filename: str | None,
    uploader_id: int | None,
) -> int:
    """Insert and commit one video row; return its id.

    A constraint violation is rolled back and surfaced as ConflictError.
    """
    video = Video(
        title=title,
        description=description,
        filename=filename,
        thumbnail_filename=thumbnail_filename,
        uploader_id=uploader_id,
    )
    db.add(video)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.error("Video insert rejected by constraint: %s", e.orig)
        raise ConflictError("video conflicts with existing data") from e
    return video.id


async def get_video(db: AsyncSession, video_id: int) -> Video:
    result = await db.execute(
        select(Video).where(Video.id == video_id).options(selectinload(Video.uploader))
    )
    video = result.scalar_one_or_none()
    if not video:
        raise NotFoundError("not found")
    return video


async def list_videos(db: AsyncSession, skip: int = 0, limit: int = 50) -> list[Video]:
    q = (
        select(Video)
        .order_by(desc(Video.created_at), desc(Video.id))
        .offset(skip)
        .limit(limit)
        .options(selectinload(Video.uploader))
    )
    result = await db.execute(q)
    return list(result.scalars().all())


async def like_video(db: AsyncSession, video_id: int) -> int:
    """Increment the like counter in one statement and return the new value."""
    result = await db.execute(
        update(Video).where(Video.id == video_id).values(likes=Video.likes + 1).returning(Video.likes)
    )
    likes = result.scalar_one_or_none()
    if likes is None:
        raise NotFoundError("not found")
    await db.commit()
    return likes


def media_url(filename: str | None) -> str | None:
    return f"{MEDIA_PREFIX}/{filename}" if filename else None


def video_to_response(video: Video) -> VideoResponse:
    uploader = video.uploader
    return VideoResponse(
        id=video.id,
        title=video.title,
        description=video.description,
        url=media_url(video.filename),
        thumbnail_url=media_url(video.thumbnail_filename),
        likes=video.likes or 0,
        created_at=video.created_at,
        uploader=uploader.username if uploader else None,
    )
