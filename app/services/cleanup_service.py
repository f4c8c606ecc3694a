"""Removal of stored files: rollback of failed uploads and owner-requested deletion."""
import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError, InternalError, NotFoundError
from app.models.video import Video
from app.services.storage_service import LocalStorage

logger = logging.getLogger(__name__)


def rollback_staged(storage: LocalStorage, *names: str | None) -> None:
    """Remove files staged by a request that is about to fail."""
    for name in names:
        if not name:
            continue
        try:
            storage.remove(name)
        except OSError as e:
            logger.error("Rollback could not remove staged file %s: %s", name, e)


def _remove_best_effort(storage: LocalStorage, name: str) -> OSError | None:
    try:
        if not storage.remove(name):
            logger.info("File %s already missing, nothing to remove", name)
    except OSError as e:
        logger.error("Failed to remove %s: %s", name, e)
        return e
    return None


async def delete_video(
    db: AsyncSession,
    storage: LocalStorage,
    video_id: int,
    requester_id: int,
    strict: bool = False,
) -> None:
    """Delete an owned video: its files first, then its row (comments cascade).

    Missing files are fine. Other filesystem errors are logged and the row is
    still removed, unless strict is set, in which case InternalError is raised
    and the row is kept.
    """
    result = await db.execute(select(Video).where(Video.id == video_id))
    video = result.scalar_one_or_none()
    if not video:
        raise NotFoundError("not found")
    # a NULL uploader (user removed) matches nobody
    if video.uploader_id is None or video.uploader_id != requester_id:
        raise ForbiddenError("forbidden")

    failures = []
    for name in (video.filename, video.thumbnail_filename):
        if name:
            error = _remove_best_effort(storage, name)
            if error is not None:
                failures.append(name)

    if failures and strict:
        raise InternalError(f"could not remove files: {', '.join(failures)}")

    await db.execute(delete(Video).where(Video.id == video_id))
    await db.commit()
    logger.info("Video %s deleted by user %s", video_id, requester_id)


async def find_orphaned_files(db: AsyncSession, storage: LocalStorage) -> list[str]:
    """Files in the storage directory that no video row references."""
    result = await db.execute(select(Video.filename, Video.thumbnail_filename))
    referenced = set()
    for filename, thumbnail_filename in result.all():
        referenced.add(filename)
        if thumbnail_filename:
            referenced.add(thumbnail_filename)
    return [name for name in storage.list_names() if name not in referenced]
