"""SQLAlchemy declarative base and model imports for Alembic and create_all."""
from app.db.session import Base  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.video import Video  # noqa: F401
from app.models.comment import Comment  # noqa: F401

__all__ = ["Base", "User", "Video", "Comment"]
