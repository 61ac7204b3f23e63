"""
portal/routes/semesters.py
Semester CRUD
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.database import get_db
from portal.errors import ConflictError, NotFoundError, APIError, ErrorCode
from portal.orm.semester import Semester
from portal.orm.user import User
from portal.schemas.catalog_schemas import SemesterCreate, SemesterUpdate, SemesterResponse
from portal.security import actor_name, get_optional_user
from portal.services.audit_service import AuditAction, client_ip, record_audit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/semesters", tags=["Semesters"])


def _dump(semester: Semester) -> dict:
    return SemesterResponse.model_validate(semester).model_dump(mode="json")


async def _get_semester(db: AsyncSession, semester_id: str) -> Semester:
    semester = await db.get(Semester, semester_id)
    if not semester:
        raise NotFoundError("Semester", semester_id)
    return semester


async def _ensure_unique_name(db: AsyncSession, name: str, exclude_id: Optional[str] = None) -> None:
    query = select(Semester.id).where(Semester.name == name)
    if exclude_id:
        query = query.where(Semester.id != exclude_id)
    if (await db.execute(query)).first():
        raise ConflictError(f"Semester '{name}' already exists.")


@router.get("")
async def list_semesters(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Semester).order_by(Semester.start_date.desc()))
    return [_dump(s) for s in result.scalars().all()]


@router.post("", status_code=201)
async def create_semester(
    request: Request,
    payload: SemesterCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    await _ensure_unique_name(db, payload.name)
    semester = Semester(**payload.model_dump())
    db.add(semester)
    await db.commit()
    await db.refresh(semester)

    await record_audit(db, actor_name(actor), AuditAction.CREATE, "Semester", semester.id,
                       details=semester.name, ip_address=client_ip(request))
    return {"success": True, "message": "Semester created successfully.", "data": _dump(semester)}


@router.get("/{semester_id}")
async def get_semester(semester_id: str, db: AsyncSession = Depends(get_db)):
    return _dump(await _get_semester(db, semester_id))


@router.put("/{semester_id}")
async def update_semester(
    request: Request,
    semester_id: str,
    payload: SemesterUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    semester = await _get_semester(db, semester_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if changes.get("name"):
        await _ensure_unique_name(db, changes["name"], exclude_id=semester_id)

    start = changes.get("start_date", semester.start_date)
    end = changes.get("end_date", semester.end_date)
    if end < start:
        raise APIError(422, "Validation Error", "end_date must not be before start_date", ErrorCode.VALIDATION_ERROR)

    for field, value in changes.items():
        setattr(semester, field, value)
    await db.commit()
    await db.refresh(semester)

    await record_audit(db, actor_name(actor), AuditAction.UPDATE, "Semester", semester_id,
                       ip_address=client_ip(request))
    return {"success": True, "message": "Semester updated successfully.", "data": _dump(semester)}


@router.delete("/{semester_id}")
async def delete_semester(
    request: Request,
    semester_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    semester = await _get_semester(db, semester_id)
    await db.delete(semester)
    await db.commit()

    await record_audit(db, actor_name(actor), AuditAction.DELETE, "Semester", semester_id,
                       ip_address=client_ip(request))
    return {"success": True, "message": "Semester deleted successfully."}
