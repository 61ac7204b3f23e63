"""
portal/routes/users.py
User administration
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from portal.database import get_db
from portal.errors import ConflictError, NotFoundError
from portal.orm.department import Department
from portal.orm.user import User, UserRole
from portal.schemas.user_schemas import UserCreate, UserUpdate
from portal.security import actor_name, get_optional_user, hash_password_async
from portal.services.audit_service import AuditAction, client_ip, record_audit
from portal.services.user_service import ensure_not_last_admin, user_to_dict, users_to_dicts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


async def _get_user(db: AsyncSession, user_id: str) -> User:
    user = (await db.execute(select(User).where(User.user_id == user_id))).scalar_one_or_none()
    if not user:
        raise NotFoundError("User", user_id)
    return user


async def _check_department(db: AsyncSession, department_id: Optional[str]) -> None:
    if department_id and not await db.get(Department, department_id):
        raise NotFoundError("Department", department_id)


@router.get("")
async def list_users(
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    query = select(User)
    if role:
        query = query.where(User.role == role)
    if is_active is not None:
        query = query.where(User.is_active == is_active)
    result = await db.execute(query.order_by(User.role, User.last_name, User.first_name))
    return await users_to_dicts(db, list(result.scalars().all()))


@router.post("", status_code=201)
async def create_user(
    request: Request,
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    """
    Create an account. user_id is the username, and the initial
    password is the username unless one is given.
    """
    clash = await db.execute(
        select(User.user_id).where(or_(User.username == payload.username, User.email == payload.email))
    )
    if clash.first():
        raise ConflictError("A user with this username or email already exists.")
    await _check_department(db, payload.department_id)

    data = payload.model_dump(exclude={"password"})
    user = User(
        user_id=payload.username,
        password_hash=await hash_password_async(payload.password or payload.username),
        **data,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"[Users] Created {user.user_id} ({user.role.value})")
    await record_audit(
        db, actor_name(actor), AuditAction.CREATE, "User", user.user_id,
        details=f"Created {user.role.value} account", ip_address=client_ip(request),
    )
    return {"success": True, "message": "User created successfully.", "data": await user_to_dict(db, user)}


@router.get("/{user_id}")
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    return await user_to_dict(db, await _get_user(db, user_id))


@router.put("/{user_id}")
async def update_user(
    request: Request,
    user_id: str,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    user = await _get_user(db, user_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    if changes.get("email") and changes["email"] != user.email:
        clash = await db.execute(select(User.user_id).where(User.email == changes["email"], User.user_id != user_id))
        if clash.first():
            raise ConflictError("A user with this email already exists.")
    if "department_id" in changes:
        await _check_department(db, changes["department_id"])

    for field, value in changes.items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)

    await record_audit(
        db, actor_name(actor), AuditAction.UPDATE, "User", user_id,
        details=f"Updated fields: {', '.join(sorted(changes)) or 'none'}", ip_address=client_ip(request),
    )
    return {"success": True, "message": "User updated successfully.", "data": await user_to_dict(db, user)}


@router.delete("/{user_id}")
async def delete_user(
    request: Request,
    user_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    user = await _get_user(db, user_id)
    await ensure_not_last_admin(db, user)

    await db.delete(user)
    await db.commit()

    logger.info(f"[Users] Deleted {user_id}")
    await record_audit(db, actor_name(actor), AuditAction.DELETE, "User", user_id, ip_address=client_ip(request))
    return {"success": True, "message": "User deleted successfully."}
