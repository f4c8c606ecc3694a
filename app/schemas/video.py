"""Pydantic schemas for Video."""
from datetime import datetime

from pydantic import BaseModel


class VideoResponse(BaseModel):
    id: int
    title: str
    description: str | None = None
    url: str
    thumbnail_url: str | None = None
    likes: int = 0
    created_at: datetime
    uploader: str | None = None


class VideoListResponse(BaseModel):
    videos: list[VideoResponse]


class UploadResponse(BaseModel):
    ok: bool = True
    id: int


class OkResponse(BaseModel):
    ok: bool = True


class LikeResponse(BaseModel):
    likes: int
