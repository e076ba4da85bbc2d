"""
Password hashing (bcrypt) and bearer token handling (PyJWT, HS256).

Tokens carry the subject id, email and role; authorization decisions are
made from the token claims without a database round trip.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from booknest.core.config import get_settings
from booknest.core.logging import get_logger
from booknest.models.enums import UserRole

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class TokenData:
    user_id: int
    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def hash_password(password: str) -> str:
    rounds = get_settings().BCRYPT_ROUNDS
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(user_id: int, email: str, role: str, expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": UserRole(role).value,
        "iss": settings.TOKEN_ISSUER,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_access_token(token: str) -> TokenData:
    """
    Decode and validate a bearer token.
    Raises 401 on a bad signature, expiry, wrong issuer or missing claims.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            issuer=settings.TOKEN_ISSUER,
            options={"require": ["sub", "exp", "iss"]},
        )
        return TokenData(
            user_id=int(payload["sub"]),
            email=payload.get("email", ""),
            role=UserRole(payload.get("role", UserRole.PARTICIPANT.value)),
        )
    except jwt.ExpiredSignatureError:
        logger.info("token_expired")
        raise _credentials_error("Token has expired")
    except (jwt.InvalidTokenError, ValueError, KeyError) as e:
        logger.warning("token_invalid", error=str(e))
        raise _credentials_error()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> TokenData:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _credentials_error("Not authenticated")
    return decode_access_token(credentials.credentials)


async def get_current_user_id(current_user: TokenData = Depends(get_current_user)) -> int:
    return current_user.user_id


async def require_admin(current_user: TokenData = Depends(get_current_user)) -> TokenData:
    if not current_user.is_admin:
        logger.warning("admin_required", user_id=current_user.user_id, role=current_user.role.value)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator role required",
        )
    return current_user
