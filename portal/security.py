"""
portal/security.py
Password hashing, JWT tokens and authentication dependencies
"""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, ExpiredSignatureError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.config import settings
from portal.database import get_db
from portal.errors import ErrorCode, UnauthorizedError
from portal.orm.user import User

logger = logging.getLogger(__name__)

RESET_PURPOSE = "password_reset"

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

# bcrypt blocks the event loop, so hashing runs in a small thread pool
_executor = None


def get_executor():
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(max_workers=4)
    return _executor


def normalize_password(password: str) -> str:
    """
    bcrypt only supports 72 bytes.
    Truncate after UTF-8 encoding.
    """
    encoded = password.encode("utf-8")
    if len(encoded) > 72:
        encoded = encoded[:72]
    return encoded.decode("utf-8", errors="ignore")


def hash_password(password: str) -> str:
    return pwd_context.hash(normalize_password(password))


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(normalize_password(plain), hashed)


async def hash_password_async(password: str) -> str:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(get_executor(), hash_password, password)


async def verify_password_async(plain: str, hashed: str) -> bool:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(get_executor(), verify_password, plain, hashed)


# ================= TOKENS =================

def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {
        "sub": user.user_id,
        "role": user.role.value,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def _password_fingerprint(user: User) -> str:
    # Ties a reset token to the current hash, so it stops working once used
    return user.password_hash[-12:]


def create_reset_token(user: User) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "sub": user.user_id,
        "purpose": RESET_PURPOSE,
        "fp": _password_fingerprint(user),
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def read_reset_token(token: str) -> Optional[dict]:
    """Decoded reset claims, or None when the token is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("purpose") != RESET_PURPOSE or not payload.get("sub"):
        return None
    return payload


def reset_token_matches(user: User, payload: dict) -> bool:
    return payload.get("fp") == _password_fingerprint(user)


# ================= DEPENDENCIES =================

async def _user_from_token(token: str, db: AsyncSession) -> User:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise UnauthorizedError("Token has expired", code=ErrorCode.AUTH_EXPIRED)
    except JWTError:
        raise UnauthorizedError("Invalid or expired token", code=ErrorCode.AUTH_INVALID)

    user_id = payload.get("sub")
    if not user_id or payload.get("purpose"):
        raise UnauthorizedError("Invalid token payload", code=ErrorCode.AUTH_INVALID)

    result = await db.execute(select(User).where(User.user_id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise UnauthorizedError("User not found or inactive", code=ErrorCode.AUTH_INVALID)
    return user


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Authenticated user from the bearer token; 401 without one."""
    if not token:
        raise UnauthorizedError()
    return await _user_from_token(token, db)


async def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """
    Authenticated user when a valid token is sent, else None.
    Used to attribute audit entries on endpoints that are open.
    """
    if not token:
        return None
    try:
        return await _user_from_token(token, db)
    except UnauthorizedError:
        logger.debug("[Auth] Ignoring invalid token on open endpoint")
        return None


def actor_name(user: Optional[User]) -> str:
    return user.username if user else "system"
