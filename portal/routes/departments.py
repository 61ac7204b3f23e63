"""
portal/routes/departments.py
Department CRUD
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.database import get_db
from portal.errors import ConflictError, NotFoundError
from portal.orm.department import Department
from portal.orm.user import User
from portal.schemas.catalog_schemas import DepartmentCreate, DepartmentUpdate, DepartmentResponse
from portal.security import actor_name, get_optional_user
from portal.services.audit_service import AuditAction, client_ip, record_audit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/departments", tags=["Departments"])


def _dump(department: Department) -> dict:
    return DepartmentResponse.model_validate(department).model_dump(mode="json")


async def _get_department(db: AsyncSession, department_id: str) -> Department:
    department = await db.get(Department, department_id)
    if not department:
        raise NotFoundError("Department", department_id)
    return department


async def _ensure_unique_name(db: AsyncSession, name: str, exclude_id: Optional[str] = None) -> None:
    query = select(Department.id).where(Department.name == name)
    if exclude_id:
        query = query.where(Department.id != exclude_id)
    if (await db.execute(query)).first():
        raise ConflictError(f"Department '{name}' already exists.")


@router.get("")
async def list_departments(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Department).order_by(Department.name))
    return [_dump(d) for d in result.scalars().all()]


@router.post("", status_code=201)
async def create_department(
    request: Request,
    payload: DepartmentCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    await _ensure_unique_name(db, payload.name)
    department = Department(**payload.model_dump())
    db.add(department)
    await db.commit()
    await db.refresh(department)

    await record_audit(db, actor_name(actor), AuditAction.CREATE, "Department", department.id,
                       details=department.name, ip_address=client_ip(request))
    return {"success": True, "message": "Department created successfully.", "data": _dump(department)}


@router.get("/{department_id}")
async def get_department(department_id: str, db: AsyncSession = Depends(get_db)):
    return _dump(await _get_department(db, department_id))


@router.put("/{department_id}")
async def update_department(
    request: Request,
    department_id: str,
    payload: DepartmentUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    department = await _get_department(db, department_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if changes.get("name"):
        await _ensure_unique_name(db, changes["name"], exclude_id=department_id)

    for field, value in changes.items():
        setattr(department, field, value)
    await db.commit()
    await db.refresh(department)

    await record_audit(db, actor_name(actor), AuditAction.UPDATE, "Department", department_id,
                       ip_address=client_ip(request))
    return {"success": True, "message": "Department updated successfully.", "data": _dump(department)}


@router.delete("/{department_id}")
async def delete_department(
    request: Request,
    department_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    department = await _get_department(db, department_id)
    await db.delete(department)
    await db.commit()

    await record_audit(db, actor_name(actor), AuditAction.DELETE, "Department", department_id,
                       ip_address=client_ip(request))
    return {"success": True, "message": "Department deleted successfully."}
