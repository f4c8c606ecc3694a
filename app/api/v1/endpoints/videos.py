"""Video upload, listing, likes, comments and deletion."""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, get_thumbnail_resolver
from app.core.config import settings
from app.models.user import User
from app.schemas.comment import CommentCreate, CommentListResponse, CommentResponse
from app.schemas.video import LikeResponse, OkResponse, UploadResponse, VideoListResponse, VideoResponse
from app.services.cleanup_service import delete_video
from app.services.comment_service import add_comment, list_comments
from app.services.storage_service import LocalStorage, get_storage
from app.services.thumbnail_service import ThumbnailResolver
from app.services.upload_service import ingest_upload, receive_upload
from app.services.video_service import get_video, like_video, list_videos, video_to_response

router = APIRouter(prefix="/videos", tags=["videos"])


@router.get("", response_model=VideoListResponse)
async def list_videos_endpoint(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    videos = await list_videos(db, skip=skip, limit=limit)
    return VideoListResponse(videos=[video_to_response(v) for v in videos])


@router.post("", response_model=UploadResponse)
async def upload_video(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
    resolver: ThumbnailResolver = Depends(get_thumbnail_resolver),
):
    """Multipart fields: file (required), title (required), description, thumbnail (data URL)."""
    received = await receive_upload(
        request.headers,
        request.stream(),
        storage,
        max_bytes=settings.MAX_UPLOAD_MB * 1024 * 1024,
        max_field_bytes=settings.MAX_FORM_FIELD_MB * 1024 * 1024,
    )
    video_id = await ingest_upload(db, storage, resolver, current_user.id, received)
    return UploadResponse(id=video_id)


@router.get("/{video_id}", response_model=VideoResponse)
async def get_video_endpoint(
    video_id: int,
    db: AsyncSession = Depends(get_db),
):
    return video_to_response(await get_video(db, video_id))


@router.delete("/{video_id}", response_model=OkResponse)
async def delete_video_endpoint(
    video_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
):
    await delete_video(db, storage, video_id, current_user.id, strict=settings.STRICT_DELETE)
    return OkResponse()


@router.post("/{video_id}/like", response_model=LikeResponse)
async def like_video_endpoint(
    video_id: int,
    db: AsyncSession = Depends(get_db),
):
    return LikeResponse(likes=await like_video(db, video_id))


@router.get("/{video_id}/comments", response_model=CommentListResponse)
async def list_comments_endpoint(
    video_id: int,
    db: AsyncSession = Depends(get_db),
):
    comments = await list_comments(db, video_id)
    return CommentListResponse(comments=[CommentResponse.model_validate(c) for c in comments])


@router.post("/{video_id}/comments", response_model=OkResponse)
async def create_comment_endpoint(
    video_id: int,
    data: CommentCreate,
    db: AsyncSession = Depends(get_db),
):
    await add_comment(db, video_id, data.author, data.text)
    return OkResponse()
