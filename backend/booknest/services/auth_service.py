"""
Authentication service handling registration, login and profile management.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from booknest.models.user import User
from booknest.schemas.user import UserCreate, UserLogin, UserUpdate
from booknest.services.user_service import get_user_by_email, get_user_by_id
from booknest.core.security import hash_password, verify_password, create_access_token
from booknest.core.logging import get_logger

logger = get_logger(__name__)


def issue_token(user: User) -> str:
    return create_access_token(user_id=user.id, email=user.email, role=user.role)


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """
    Register a new user with hashed password.
    Raises 409 if the email (case-insensitive) already exists.
    """
    if await get_user_by_email(db, user_data.email):
        logger.warning("registration_failed", reason="email_exists", email=user_data.email)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    user = User(
        email=user_data.email,
        hashed_password=hash_password(user_data.password),
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        role=user_data.role.value,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race against a concurrent registration; get_db rolls back
        logger.warning("registration_failed", reason="email_exists_race", email=user_data.email)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )
    await db.refresh(user)

    logger.info("user_registered", user_id=user.id, email=user.email, role=user.role)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> tuple[User, str]:
    """
    Authenticate user and return (user, JWT access token).
    Raises 401 if credentials are invalid or the account is deactivated.
    """
    user = await get_user_by_email(db, login_data.email)

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=login_data.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        logger.warning("login_failed", email=login_data.email, reason="inactive")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is deactivated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = issue_token(user)
    logger.info("user_logged_in", user_id=user.id)
    return user, token


async def get_profile(db: AsyncSession, user_id: int) -> User:
    user = await get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def update_profile(db: AsyncSession, user_id: int, update_data: UserUpdate) -> User:
    user = await get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    changes = update_data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(user, field, value)

    await db.flush()
    await db.refresh(user)

    logger.info("profile_updated", user_id=user.id, fields=sorted(changes))
    return user
