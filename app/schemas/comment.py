"""Pydantic schemas for Comment."""
from datetime import datetime

from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    author: str | None = Field(None, max_length=100)
    text: str | None = None


class CommentResponse(BaseModel):
    id: int
    author: str | None = None
    text: str
    created_at: datetime

    model_config = {"from_attributes": True}


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]
