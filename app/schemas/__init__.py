from app.schemas.user import (
    UserCreate,
    UserResponse,
    Token,
    LoginRequest,
    RegisterResponse,
)
from app.schemas.video import VideoResponse, VideoListResponse, UploadResponse, OkResponse, LikeResponse
from app.schemas.comment import CommentCreate, CommentResponse, CommentListResponse
