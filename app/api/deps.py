"""API dependencies: auth, db session, storage and thumbnail pipeline."""
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import AuthError
from app.core.security import verify_token
from app.db.session import get_db
from app.models.user import User
from app.services.auth_service import get_user_by_id
from app.services.frame_extractor import FrameExtractor, get_frame_extractor
from app.services.storage_service import LocalStorage, get_storage
from app.services.thumbnail_service import ThumbnailResolver

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not credentials:
        raise AuthError("Authorization required")
    user_id = verify_token(credentials.credentials)
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise AuthError("Invalid token")
    return user


def get_thumbnail_resolver(
    storage: LocalStorage = Depends(get_storage),
    extractor: FrameExtractor = Depends(get_frame_extractor),
) -> ThumbnailResolver:
    return ThumbnailResolver(storage, extractor, offset=settings.THUMB_TIME_SECONDS)
