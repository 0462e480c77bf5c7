"""
Authentication endpoints: register, login and the current user.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from campustix.db.session import get_db
from campustix.schemas.user import (
    UserCreate, UserResponse, UserLogin, Token, RegistrationResponse,
)
from campustix.services.auth_service import (
    register_user, authenticate_user, get_user, issue_token,
)
from campustix.core.security import get_current_user_id

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new student account and sign it in."""
    user = await register_user(db, user_data)
    return RegistrationResponse(
        **UserResponse.model_validate(user).model_dump(),
        access_token=issue_token(user),
    )


@router.post("/login", response_model=Token)
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive a JWT access token."""
    token = await authenticate_user(db, login_data)
    return Token(access_token=token)


@router.get("/me", response_model=UserResponse)
async def me(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await get_user(db, user_id)
