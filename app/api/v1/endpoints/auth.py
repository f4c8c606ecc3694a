"""Auth endpoints: register, login, me."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.models.user import User
from app.schemas.user import LoginRequest, RegisterResponse, Token, UserCreate, UserResponse
from app.services.auth_service import authenticate_user, create_token_for_user, create_user, user_to_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse)
async def register(
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
):
    logger.info("Register attempt: %s", data.username)
    user = await create_user(db, data)
    logger.info("Register success: %s %s", user.id, user.username)
    return RegisterResponse(id=user.id)


@router.post("/login", response_model=Token)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate_user(db, data.username, data.password)
    logger.info("Login success: %s %s", user.id, user.username)
    return create_token_for_user(user)


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return user_to_response(current_user)
