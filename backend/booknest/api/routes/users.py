"""
User directory endpoints (admin only).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from booknest.db.session import get_db
from booknest.schemas.user import UserResponse
from booknest.services.user_service import list_users
from booknest.core.security import TokenData, require_admin

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/", response_model=list[UserResponse])
async def list_users_endpoint(
    _admin: TokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await list_users(db)
