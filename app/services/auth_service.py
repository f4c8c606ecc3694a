"""Authentication business logic."""
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthError, ConflictError
from app.core.security import create_access_token, get_password_hash, verify_password
from app.models.user import User
from app.schemas.user import Token, UserCreate, UserResponse


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    """Insert a user; the unique username constraint surfaces as ConflictError."""
    user = User(
        username=data.username,
        password_hash=get_password_hash(data.password),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("username already taken") from e
    return user


async def authenticate_user(db: AsyncSession, username: str, password: str) -> User:
    user = await get_user_by_username(db, username)
    if not user or not verify_password(password, user.password_hash):
        raise AuthError("invalid credentials")
    return user


def user_to_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, username=user.username, created_at=user.created_at)


def create_token_for_user(user: User) -> Token:
    return Token(token=create_access_token(user.id, user.username), user=user_to_response(user))
