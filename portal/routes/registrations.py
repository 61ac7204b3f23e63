"""
portal/routes/registrations.py
Student registrations

All counter bookkeeping lives in portal.services.enrollment_service;
these handlers only validate, serialize and audit.
"""
import logging
from typing import Optional, List

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.database import get_db
from portal.orm.course import Course
from portal.orm.registration import Registration
from portal.orm.scheduled_course import ScheduledCourse
from portal.orm.user import User
from portal.schemas.scheduling_schemas import RegistrationCreate, RegistrationUpdate, RegistrationResponse
from portal.security import actor_name, get_optional_user
from portal.services import enrollment_service
from portal.services.audit_service import AuditAction, client_ip, record_audit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/registrations", tags=["Registrations"])


def _dump(registration: Registration) -> dict:
    return RegistrationResponse.model_validate(registration).model_dump(mode="json")


async def _with_course_info(db: AsyncSession, registrations: List[Registration]) -> List[dict]:
    sc_ids = {r.scheduled_course_id for r in registrations}
    rows = (await db.execute(
        select(ScheduledCourse.scheduled_course_id, Course.course_code, Course.title)
        .join(Course, Course.id == ScheduledCourse.course_id)
        .where(ScheduledCourse.scheduled_course_id.in_(sc_ids))
    )).all() if sc_ids else []
    info = {sc_id: (code, title) for sc_id, code, title in rows}

    payload = []
    for r in registrations:
        code, title = info.get(r.scheduled_course_id, (None, None))
        payload.append({**_dump(r), "course_code": code, "title": title})
    return payload


async def _with_student_info(db: AsyncSession, registrations: List[Registration]) -> List[dict]:
    student_ids = {r.student_id for r in registrations}
    students = {}
    if student_ids:
        result = await db.execute(select(User).where(User.user_id.in_(student_ids)))
        students = {u.user_id: u for u in result.scalars().all()}

    payload = []
    for r in registrations:
        student = students.get(r.student_id)
        payload.append({
            **_dump(r),
            "first_name": student.first_name if student else None,
            "last_name": student.last_name if student else None,
            "email": student.email if student else None,
            "current_final_grade": r.final_grade,
            "current_grade_points": r.grade_points,
        })
    return payload


@router.get("")
async def list_registrations(
    student_id: Optional[str] = Query(None),
    scheduled_course_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Filter by student (rows carry course_code/title) or by scheduled
    course (rows carry the student's name, email and current grade).
    """
    registrations = await enrollment_service.list_registrations(db, student_id, scheduled_course_id)
    if student_id:
        return await _with_course_info(db, registrations)
    if scheduled_course_id:
        return await _with_student_info(db, registrations)
    return [_dump(r) for r in registrations]


@router.post("", status_code=201)
async def create_registration(
    request: Request,
    payload: RegistrationCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    registration, message = await enrollment_service.create_registration(
        db,
        student_id=payload.student_id,
        scheduled_course_id=payload.scheduled_course_id,
        manual_override=payload.manual_override,
    )
    data = _dump(registration)

    details = "manual override" if payload.manual_override else None
    await record_audit(db, actor_name(actor), AuditAction.REGISTRATION_CREATED, "Registration",
                       registration.registration_id, details=details, ip_address=client_ip(request))
    return {"success": True, "message": message, "data": data}


@router.post("/drop/{registration_id}")
async def drop_registration(
    request: Request,
    registration_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    registration = await enrollment_service.drop_registration(db, registration_id)
    data = _dump(registration)

    await record_audit(db, actor_name(actor), AuditAction.COURSE_DROPPED, "Registration",
                       registration_id, ip_address=client_ip(request))
    return {"success": True, "message": "Course dropped successfully.", "data": data}


@router.get("/{registration_id}")
async def get_registration(registration_id: str, db: AsyncSession = Depends(get_db)):
    return _dump(await enrollment_service.get_registration(db, registration_id))


@router.put("/{registration_id}")
async def update_registration(
    request: Request,
    registration_id: str,
    payload: RegistrationUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("status") is None:
        changes.pop("status", None)
    registration = await enrollment_service.update_registration(db, registration_id, changes)
    data = _dump(registration)

    await record_audit(db, actor_name(actor), AuditAction.REGISTRATION_UPDATED, "Registration",
                       registration_id, details=f"status={registration.status.value}", ip_address=client_ip(request))
    return {"success": True, "message": "Registration updated successfully.", "data": data}


@router.delete("/{registration_id}")
async def delete_registration(
    request: Request,
    registration_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    await enrollment_service.delete_registration(db, registration_id)

    await record_audit(db, actor_name(actor), AuditAction.REGISTRATION_DELETED, "Registration",
                       registration_id, ip_address=client_ip(request))
    return {"success": True, "message": "Registration deleted successfully."}
