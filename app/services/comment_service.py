"""Comment business logic."""
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.models.comment import Comment
from app.services.video_service import get_video

DEFAULT_AUTHOR = "Anonymous"


async def list_comments(db: AsyncSession, video_id: int) -> list[Comment]:
    result = await db.execute(
        select(Comment)
        .where(Comment.video_id == video_id)
        .order_by(desc(Comment.created_at), desc(Comment.id))
    )
    return list(result.scalars().all())


async def add_comment(db: AsyncSession, video_id: int, author: str | None, text: str | None) -> Comment:
    text = (text or "").strip()
    if not text:
        raise ValidationError("text required")
    await get_video(db, video_id)
    comment = Comment(video_id=video_id, author=(author or "").strip() or DEFAULT_AUTHOR, text=text)
    db.add(comment)
    await db.commit()
    return comment
