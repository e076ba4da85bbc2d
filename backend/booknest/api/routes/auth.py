"""
Authentication endpoints: register, login and profile.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from booknest.db.session import get_db
from booknest.schemas.user import (
    UserCreate,
    UserLogin,
    UserUpdate,
    UserResponse,
    AuthResponse,
    RegisterResponse,
)
from booknest.services.auth_service import (
    register_user,
    authenticate_user,
    get_profile,
    update_profile,
    issue_token,
)
from booknest.core.security import get_current_user_id

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new account. Returns the user and an access token."""
    user = await register_user(db, user_data)
    return RegisterResponse(
        access_token=issue_token(user),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive a JWT access token."""
    user, token = await authenticate_user(db, login_data)
    return AuthResponse(access_token=token, user=UserResponse.model_validate(user))


@router.get("/profile", response_model=UserResponse)
async def read_profile(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await get_profile(db, user_id)


@router.patch("/profile", response_model=UserResponse)
async def edit_profile(
    update_data: UserUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Update first and/or last name."""
    return await update_profile(db, user_id, update_data)
