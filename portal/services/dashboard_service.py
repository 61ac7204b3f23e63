"""
portal/services/dashboard_service.py
Role dashboards: staff metrics, student and teacher overviews
"""
import logging
from typing import Dict, Any

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from portal.exceptions import NotFoundError, RuleViolationError
from portal.orm.assessment import Assessment
from portal.orm.base import utcnow
from portal.orm.registration import Registration, RegistrationStatus
from portal.orm.scheduled_course import ScheduledCourse
from portal.orm.user import User, UserRole
from portal.schemas.communication_schemas import AnnouncementResponse, AuditLogResponse
from portal.schemas.scheduling_schemas import AssessmentResponse
from portal.services.announcement_service import announcement_feed
from portal.services.audit_service import list_audit_logs
from portal.services.catalog_service import enrich_scheduled_courses

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 5
ANNOUNCEMENT_LIMIT = 5
UPCOMING_ASSESSMENT_LIMIT = 10


def _announcements(items):
    return [AnnouncementResponse.model_validate(a).model_dump(mode="json") for a in items]


async def _get_user(db: AsyncSession, user_id: str, role: UserRole) -> User:
    user = (await db.execute(select(User).where(User.user_id == user_id))).scalar_one_or_none()
    if not user:
        raise NotFoundError(role.value, user_id)
    if user.role != role:
        raise RuleViolationError(f"User '{user_id}' is not a {role.value}.")
    return user


async def staff_dashboard(db: AsyncSession) -> Dict[str, Any]:
    total_users = (await db.execute(select(func.count(User.user_id)))).scalar_one()
    active_courses = (await db.execute(select(func.count(ScheduledCourse.scheduled_course_id)))).scalar_one()
    enrollment = (await db.execute(
        select(func.count(Registration.registration_id)).where(
            Registration.status == RegistrationStatus.REGISTERED
        )
    )).scalar_one()
    recent = await list_audit_logs(db, limit=RECENT_ACTIVITY_LIMIT)

    return {
        "total_users": total_users,
        "active_courses": active_courses,
        "student_enrollment": enrollment,
        "recent_activity": [AuditLogResponse.model_validate(e).model_dump(mode="json") for e in recent],
    }


async def student_dashboard(db: AsyncSession, student_id: str) -> Dict[str, Any]:
    student = await _get_user(db, student_id, UserRole.STUDENT)

    rows = (await db.execute(
        select(ScheduledCourse)
        .join(Registration, Registration.scheduled_course_id == ScheduledCourse.scheduled_course_id)
        .where(
            Registration.student_id == student_id,
            Registration.status == RegistrationStatus.REGISTERED,
        )
    )).scalars().all()
    courses = await enrich_scheduled_courses(db, list(rows))

    upcoming = []
    if rows:
        result = await db.execute(
            select(Assessment)
            .where(
                Assessment.scheduled_course_id.in_([sc.scheduled_course_id for sc in rows]),
                Assessment.due_date >= utcnow(),
            )
            .order_by(Assessment.due_date)
            .limit(UPCOMING_ASSESSMENT_LIMIT)
        )
        upcoming = [AssessmentResponse.model_validate(a).model_dump(mode="json") for a in result.scalars().all()]

    feed = await announcement_feed(db, UserRole.STUDENT, student.department_id, limit=ANNOUNCEMENT_LIMIT)
    return {
        "student_id": student_id,
        "registered_courses": courses,
        "registered_credits": sum(c.get("credits") or 0 for c in courses),
        "upcoming_assessments": upcoming,
        "announcements": _announcements(feed),
    }


async def teacher_dashboard(db: AsyncSession, teacher_id: str) -> Dict[str, Any]:
    teacher = await _get_user(db, teacher_id, UserRole.TEACHER)

    rows = (await db.execute(
        select(ScheduledCourse).where(ScheduledCourse.teacher_id == teacher_id)
    )).scalars().all()
    courses = await enrich_scheduled_courses(db, list(rows))

    feed = await announcement_feed(db, UserRole.TEACHER, teacher.department_id, limit=ANNOUNCEMENT_LIMIT)
    return {
        "teacher_id": teacher_id,
        "assigned_courses": courses,
        "total_students": sum(c["current_enrollment"] for c in courses),
        "announcements": _announcements(feed),
    }


async def dashboard_for(db: AsyncSession, user: User) -> Dict[str, Any]:
    if user.role == UserRole.STUDENT:
        data = await student_dashboard(db, user.user_id)
    elif user.role == UserRole.TEACHER:
        data = await teacher_dashboard(db, user.user_id)
    else:
        data = await staff_dashboard(db)
    return {"role": user.role.value, **data}
