from app.models.user import User
from app.models.video import Video
from app.models.comment import Comment

__all__ = ["User", "Video", "Comment"]
