"""
portal/routes/auth.py
Login, current user and password management
"""
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.config import settings
from portal.database import get_db
from portal.errors import ErrorCode, BadRequestError, ForbiddenError, NotFoundError, UnauthorizedError
from portal.orm.base import utcnow
from portal.orm.user import User
from portal.rate_limit import limiter
from portal.schemas.auth_schemas import (
    LoginRequest,
    LoginResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
)
from portal.schemas.user_schemas import UserResponse
from portal.security import (
    create_access_token,
    create_reset_token,
    get_current_user,
    hash_password_async,
    read_reset_token,
    reset_token_matches,
    verify_password_async,
)
from portal.services.audit_service import AuditAction, client_ip, record_audit
from portal.services.user_service import user_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

INVALID_LOGIN = "Invalid username, password, or role."
FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent."


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(request: Request, credentials: LoginRequest, db: AsyncSession = Depends(get_db)):
    """
    Authenticate with username, password and role.

    The role must match the account: a teacher cannot sign in on the
    student form.
    """
    result = await db.execute(
        select(User).where(User.username == credentials.username, User.role == credentials.role)
    )
    user = result.scalar_one_or_none()

    if not user or not await verify_password_async(credentials.password, user.password_hash):
        logger.warning(f"[Auth] Failed login for '{credentials.username}' as {credentials.role.value}")
        raise UnauthorizedError(INVALID_LOGIN, code=ErrorCode.INVALID_CREDENTIALS)

    if not user.is_active:
        logger.warning(f"[Auth] Inactive account login attempt: {user.user_id}")
        raise ForbiddenError("Account is inactive. Please contact support.", code=ErrorCode.ACCOUNT_INACTIVE)

    user.last_login = utcnow()
    await db.commit()
    await db.refresh(user)

    logger.info(f"[Auth] {user.user_id} logged in as {user.role.value}")
    await record_audit(db, user.username, AuditAction.USER_LOGIN, "User", user.user_id, ip_address=client_ip(request))

    return LoginResponse(
        message="Login successful.",
        user=await user_to_dict(db, user),
        access_token=create_access_token(user),
    )


@router.get("/me", response_model=UserResponse)
async def read_current_user(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_to_dict(db, current_user)


@router.post("/change-password")
async def change_password(
    request: Request,
    payload: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(User).where(User.user_id == payload.user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User", payload.user_id)

    if not await verify_password_async(payload.current_password, user.password_hash):
        logger.warning(f"[Auth] Wrong current password for {user.user_id}")
        raise ForbiddenError("Incorrect current password.", code=ErrorCode.INVALID_CREDENTIALS)

    user.password_hash = await hash_password_async(payload.new_password)
    await db.commit()

    logger.info(f"[Auth] Password changed for {user.user_id}")
    await record_audit(db, user.username, AuditAction.PASSWORD_CHANGED, "User", user.user_id, ip_address=client_ip(request))
    return {"success": True, "message": "Password changed successfully."}


@router.post("/forgot-password")
async def forgot_password(payload: ForgotPasswordRequest, db: AsyncSession = Depends(get_db)):
    """
    Issue a reset token when the email belongs to an account.

    The response is identical either way so it cannot be used to probe
    which emails are registered.
    """
    result = await db.execute(select(User).where(User.email == payload.email))
    user = result.scalar_one_or_none()
    if user and user.is_active:
        token = create_reset_token(user)
        # No mail transport: the token is only logged
        logger.info(f"[Auth] Password reset token issued for {user.user_id}: {token}")
    else:
        logger.info("[Auth] Password reset requested for unknown email")
    return {"success": True, "message": FORGOT_PASSWORD_MESSAGE}


@router.post("/reset-password")
async def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
):
    claims = read_reset_token(payload.token)
    user = None
    if claims:
        result = await db.execute(select(User).where(User.user_id == claims["sub"]))
        user = result.scalar_one_or_none()

    if not user or not reset_token_matches(user, claims):
        raise BadRequestError("Invalid or expired token, or user not found.", code=ErrorCode.INVALID_RESET_TOKEN)

    user.password_hash = await hash_password_async(payload.new_password)
    await db.commit()

    logger.info(f"[Auth] Password reset for {user.user_id}")
    await record_audit(db, user.username, AuditAction.PASSWORD_RESET, "User", user.user_id, ip_address=client_ip(request))
    return {"success": True, "message": "Password has been reset successfully."}
