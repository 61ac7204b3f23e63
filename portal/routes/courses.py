"""
portal/routes/courses.py
Course catalog CRUD
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.database import get_db
from portal.errors import ConflictError, NotFoundError
from portal.orm.course import Course
from portal.orm.department import Department
from portal.orm.user import User
from portal.schemas.catalog_schemas import CourseCreate, CourseUpdate, CourseResponse
from portal.security import actor_name, get_optional_user
from portal.services.audit_service import AuditAction, client_ip, record_audit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/courses", tags=["Courses"])


def _dump(course: Course) -> dict:
    return CourseResponse.model_validate(course).model_dump(mode="json")


async def _get_course(db: AsyncSession, course_id: str) -> Course:
    course = await db.get(Course, course_id)
    if not course:
        raise NotFoundError("Course", course_id)
    return course


async def _ensure_unique_code(db: AsyncSession, code: str, exclude_id: Optional[str] = None) -> None:
    query = select(Course.id).where(Course.course_code == code)
    if exclude_id:
        query = query.where(Course.id != exclude_id)
    if (await db.execute(query)).first():
        raise ConflictError(f"Course code '{code}' already exists.")


async def _check_department(db: AsyncSession, department_id: str) -> None:
    if not await db.get(Department, department_id):
        raise NotFoundError("Department", department_id)


@router.get("")
async def list_courses(
    department_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    query = select(Course)
    if department_id:
        query = query.where(Course.department_id == department_id)
    result = await db.execute(query.order_by(Course.course_code))
    return [_dump(c) for c in result.scalars().all()]


@router.post("", status_code=201)
async def create_course(
    request: Request,
    payload: CourseCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    await _ensure_unique_code(db, payload.course_code)
    await _check_department(db, payload.department_id)

    course = Course(**payload.model_dump())
    db.add(course)
    await db.commit()
    await db.refresh(course)

    logger.info(f"[Catalog] Created course {course.course_code}")
    await record_audit(db, actor_name(actor), AuditAction.CREATE, "Course", course.id,
                       details=course.course_code, ip_address=client_ip(request))
    return {"success": True, "message": "Course created successfully.", "data": _dump(course)}


@router.get("/{course_id}")
async def get_course(course_id: str, db: AsyncSession = Depends(get_db)):
    return _dump(await _get_course(db, course_id))


@router.put("/{course_id}")
async def update_course(
    request: Request,
    course_id: str,
    payload: CourseUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    course = await _get_course(db, course_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if changes.get("course_code") and changes["course_code"] != course.course_code:
        await _ensure_unique_code(db, changes["course_code"], exclude_id=course_id)
    if changes.get("department_id"):
        await _check_department(db, changes["department_id"])

    for field, value in changes.items():
        setattr(course, field, value)
    await db.commit()
    await db.refresh(course)

    await record_audit(db, actor_name(actor), AuditAction.UPDATE, "Course", course_id,
                       ip_address=client_ip(request))
    return {"success": True, "message": "Course updated successfully.", "data": _dump(course)}


@router.delete("/{course_id}")
async def delete_course(
    request: Request,
    course_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    course = await _get_course(db, course_id)
    await db.delete(course)
    await db.commit()

    await record_audit(db, actor_name(actor), AuditAction.DELETE, "Course", course_id,
                       details=course.course_code, ip_address=client_ip(request))
    return {"success": True, "message": "Course deleted successfully."}
