"""
portal/routes/scheduled_courses.py
Course schedule: sections of catalog courses offered in a semester
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.database import get_db
from portal.errors import BadRequestError, ConflictError, NotFoundError
from portal.orm.course import Course
from portal.orm.facility import Room
from portal.orm.scheduled_course import ScheduledCourse
from portal.orm.semester import Semester
from portal.orm.user import User, UserRole
from portal.schemas.scheduling_schemas import ScheduledCourseCreate, ScheduledCourseUpdate, EnrollmentCheckResponse
from portal.security import actor_name, get_optional_user
from portal.services import enrollment_service
from portal.services.audit_service import AuditAction, client_ip, record_audit
from portal.services.catalog_service import delete_scheduled_course, enrich_scheduled_courses

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/scheduled-courses", tags=["Scheduled Courses"])

# An explicit null is ignored for these; other fields may be cleared
REQUIRED_FIELDS = ("course_id", "semester_id", "teacher_id", "section_number", "max_capacity")


async def _check_references(db: AsyncSession, fields: dict) -> None:
    """404 for any referenced course, semester, teacher or room that does not exist."""
    if fields.get("course_id") and not await db.get(Course, fields["course_id"]):
        raise NotFoundError("Course", fields["course_id"])
    if fields.get("semester_id") and not await db.get(Semester, fields["semester_id"]):
        raise NotFoundError("Semester", fields["semester_id"])
    if fields.get("room_id") and not await db.get(Room, fields["room_id"]):
        raise NotFoundError("Room", fields["room_id"])
    if fields.get("teacher_id"):
        teacher = await db.get(User, fields["teacher_id"])
        if not teacher:
            raise NotFoundError("Teacher", fields["teacher_id"])
        if teacher.role != UserRole.TEACHER:
            raise BadRequestError(f"User '{teacher.user_id}' is not a teacher.")


async def _ensure_unique_section(
    db: AsyncSession,
    course_id: str,
    semester_id: str,
    section_number: str,
    exclude_id: Optional[str] = None,
) -> None:
    query = select(ScheduledCourse.scheduled_course_id).where(
        ScheduledCourse.course_id == course_id,
        ScheduledCourse.semester_id == semester_id,
        ScheduledCourse.section_number == section_number,
    )
    if exclude_id:
        query = query.where(ScheduledCourse.scheduled_course_id != exclude_id)
    if (await db.execute(query)).first():
        raise ConflictError(f"Section {section_number} of this course is already scheduled in this semester.")


async def _enriched(db: AsyncSession, sc: ScheduledCourse) -> dict:
    return (await enrich_scheduled_courses(db, [sc]))[0]


@router.get("")
async def list_scheduled_courses(
    semester_id: Optional[str] = Query(None),
    teacher_id: Optional[str] = Query(None),
    course_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    query = select(ScheduledCourse)
    if semester_id:
        query = query.where(ScheduledCourse.semester_id == semester_id)
    if teacher_id:
        query = query.where(ScheduledCourse.teacher_id == teacher_id)
    if course_id:
        query = query.where(ScheduledCourse.course_id == course_id)
    result = await db.execute(query.order_by(ScheduledCourse.semester_id, ScheduledCourse.course_id, ScheduledCourse.section_number))
    return await enrich_scheduled_courses(db, list(result.scalars().all()))


@router.post("", status_code=201)
async def create_scheduled_course(
    request: Request,
    payload: ScheduledCourseCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    fields = payload.model_dump()
    await _check_references(db, fields)
    await _ensure_unique_section(db, payload.course_id, payload.semester_id, payload.section_number)

    sc = ScheduledCourse(**fields, current_enrollment=0)
    db.add(sc)
    await db.commit()
    await db.refresh(sc)

    logger.info(f"[Schedule] Created {sc.scheduled_course_id}")
    await record_audit(db, actor_name(actor), AuditAction.CREATE, "ScheduledCourse", sc.scheduled_course_id,
                       ip_address=client_ip(request))
    return {"success": True, "message": "Course scheduled successfully.", "data": await _enriched(db, sc)}


@router.get("/{scheduled_course_id}")
async def get_scheduled_course(scheduled_course_id: str, db: AsyncSession = Depends(get_db)):
    sc = await enrollment_service.get_scheduled_course(db, scheduled_course_id)
    return await _enriched(db, sc)


@router.get("/{scheduled_course_id}/enrollment-check", response_model=EnrollmentCheckResponse)
async def check_enrollment(scheduled_course_id: str, db: AsyncSession = Depends(get_db)):
    """Stored counter next to the count recomputed from registrations."""
    return await enrollment_service.enrollment_check(db, scheduled_course_id)


@router.put("/{scheduled_course_id}")
async def update_scheduled_course(
    request: Request,
    scheduled_course_id: str,
    payload: ScheduledCourseUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    sc = await enrollment_service.get_scheduled_course(db, scheduled_course_id)
    changes = payload.model_dump(exclude_unset=True)
    for field in REQUIRED_FIELDS:
        if field in changes and changes[field] is None:
            changes.pop(field)
    await _check_references(db, changes)

    key = (
        changes.get("course_id", sc.course_id),
        changes.get("semester_id", sc.semester_id),
        changes.get("section_number", sc.section_number),
    )
    if key != (sc.course_id, sc.semester_id, sc.section_number):
        await _ensure_unique_section(db, *key, exclude_id=scheduled_course_id)

    for field, value in changes.items():
        setattr(sc, field, value)
    await db.commit()
    await db.refresh(sc)

    await record_audit(db, actor_name(actor), AuditAction.UPDATE, "ScheduledCourse", scheduled_course_id,
                       ip_address=client_ip(request))
    return {"success": True, "message": "Scheduled course updated successfully.", "data": await _enriched(db, sc)}


@router.delete("/{scheduled_course_id}")
async def remove_scheduled_course(
    request: Request,
    scheduled_course_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    sc = await enrollment_service.get_scheduled_course(db, scheduled_course_id)
    removed = await delete_scheduled_course(db, sc)

    await record_audit(db, actor_name(actor), AuditAction.DELETE, "ScheduledCourse", scheduled_course_id,
                       details=f"Removed {removed['registrations']} registration(s)", ip_address=client_ip(request))
    return {"success": True, "message": "Scheduled course deleted successfully.", "removed": removed}
