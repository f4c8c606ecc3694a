"""Pydantic schemas for User."""
from datetime import datetime

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    username: str
    password: str


class UserResponse(BaseModel):
    id: int
    username: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class Token(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse


class RegisterResponse(BaseModel):
    ok: bool = True
    id: int
