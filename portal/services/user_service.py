"""
portal/services/user_service.py
User serialization and account rules
"""
import logging
from typing import Any, Dict, List

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from portal.errors import ErrorCode
from portal.exceptions import PermissionDeniedError
from portal.orm.department import Department
from portal.orm.user import User, UserRole
from portal.schemas.user_schemas import UserResponse

logger = logging.getLogger(__name__)


async def users_to_dicts(db: AsyncSession, users: List[User]) -> List[Dict[str, Any]]:
    """Serialize users without hashes, adding department_name."""
    dept_ids = {u.department_id for u in users if u.department_id}
    names = {}
    if dept_ids:
        result = await db.execute(select(Department.id, Department.name).where(Department.id.in_(dept_ids)))
        names = dict(result.all())

    payload = []
    for user in users:
        data = UserResponse.model_validate(user).model_dump(mode="json")
        data["department_name"] = names.get(user.department_id)
        payload.append(data)
    return payload


async def user_to_dict(db: AsyncSession, user: User) -> Dict[str, Any]:
    return (await users_to_dicts(db, [user]))[0]


async def ensure_not_last_admin(db: AsyncSession, user: User) -> None:
    if user.role != UserRole.ADMIN:
        return
    admins = (await db.execute(
        select(func.count(User.user_id)).where(User.role == UserRole.ADMIN)
    )).scalar_one()
    if admins <= 1:
        logger.warning(f"[Users] Refused to delete the only admin {user.user_id}")
        raise PermissionDeniedError("Cannot delete the only Admin user.", code=ErrorCode.LAST_ADMIN)
