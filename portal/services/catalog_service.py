"""
portal/services/catalog_service.py
Read-side enrichment for rooms and scheduled courses, plus cascade delete
"""
import logging
from typing import Dict, Any, List, Iterable

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from portal.orm.assessment import Assessment, StudentAssessmentScore
from portal.orm.course import Course
from portal.orm.course_material import CourseMaterial
from portal.orm.facility import Building, Room
from portal.orm.registration import Registration
from portal.orm.scheduled_course import ScheduledCourse
from portal.orm.semester import Semester
from portal.orm.user import User
from portal.schemas.catalog_schemas import RoomResponse
from portal.schemas.scheduling_schemas import ScheduledCourseResponse

logger = logging.getLogger(__name__)

UNKNOWN_BUILDING = "Unknown Building"
NOT_AVAILABLE = "N/A"


async def _by_id(db: AsyncSession, model, key_column, ids: Iterable[str]) -> Dict[str, Any]:
    ids = {i for i in ids if i}
    if not ids:
        return {}
    result = await db.execute(select(model).where(key_column.in_(ids)))
    return {getattr(row, key_column.key): row for row in result.scalars().all()}


async def enrich_rooms(db: AsyncSession, rooms: List[Room]) -> List[Dict[str, Any]]:
    buildings = await _by_id(db, Building, Building.id, (r.building_id for r in rooms))
    enriched = []
    for room in rooms:
        data = RoomResponse.model_validate(room).model_dump(mode="json")
        building = buildings.get(room.building_id)
        data["building_name"] = building.name if building else UNKNOWN_BUILDING
        enriched.append(data)
    return enriched


def format_schedule(sc: ScheduledCourse) -> str:
    if not sc.days_of_week and not sc.start_time:
        return NOT_AVAILABLE
    return f"{sc.days_of_week or ''} {sc.start_time or '?'}-{sc.end_time or '?'}".strip()


async def enrich_scheduled_courses(db: AsyncSession, courses: List[ScheduledCourse]) -> List[Dict[str, Any]]:
    """Attach course, semester, teacher and room display fields."""
    catalog = await _by_id(db, Course, Course.id, (sc.course_id for sc in courses))
    semesters = await _by_id(db, Semester, Semester.id, (sc.semester_id for sc in courses))
    teachers = await _by_id(db, User, User.user_id, (sc.teacher_id for sc in courses))
    rooms = await _by_id(db, Room, Room.id, (sc.room_id for sc in courses))
    buildings = await _by_id(db, Building, Building.id, (r.building_id for r in rooms.values()))

    enriched = []
    for sc in courses:
        data = ScheduledCourseResponse.model_validate(sc).model_dump(mode="json")
        course = catalog.get(sc.course_id)
        semester = semesters.get(sc.semester_id)
        teacher = teachers.get(sc.teacher_id)
        room = rooms.get(sc.room_id)

        if course:
            data.update(
                course_code=course.course_code,
                title=course.title,
                credits=course.credits,
                description=course.description,
            )
        data["semester_name"] = semester.name if semester else None
        data["teacher_name"] = teacher.full_name if teacher else NOT_AVAILABLE
        if room:
            building = buildings.get(room.building_id)
            data["room_name"] = f"{room.room_number} ({building.name if building else UNKNOWN_BUILDING})"
        else:
            data["room_name"] = NOT_AVAILABLE
        data["schedule"] = format_schedule(sc)
        enriched.append(data)
    return enriched


async def delete_scheduled_course(db: AsyncSession, sc: ScheduledCourse) -> Dict[str, int]:
    """
    Delete an offering together with its registrations, materials,
    assessments and scores.
    """
    sc_id = sc.scheduled_course_id
    assessment_ids = select(Assessment.id).where(Assessment.scheduled_course_id == sc_id)

    scores = await db.execute(
        delete(StudentAssessmentScore).where(StudentAssessmentScore.assessment_id.in_(assessment_ids))
    )
    assessments = await db.execute(delete(Assessment).where(Assessment.scheduled_course_id == sc_id))
    materials = await db.execute(delete(CourseMaterial).where(CourseMaterial.scheduled_course_id == sc_id))
    registrations = await db.execute(delete(Registration).where(Registration.scheduled_course_id == sc_id))
    await db.delete(sc)
    await db.commit()

    removed = {
        "registrations": registrations.rowcount,
        "materials": materials.rowcount,
        "assessments": assessments.rowcount,
        "scores": scores.rowcount,
    }
    logger.info(f"[Schedule] Deleted {sc_id} with {removed}")
    return removed
