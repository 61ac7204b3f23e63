"""
portal/services/grading_service.py
Assessment scores, final grade calculation and GPA history

GRADE SCALE (score out of 100 -> letter, points on a 4.0 scale):
    >= 90  A   4.0
    >= 85  A-  3.7
    >= 80  B+  3.3
    >= 75  B   3.0
    >= 70  B-  2.7
    >= 65  C+  2.3
    >= 60  C   2.0
    >= 55  C-  1.7
    >= 50  D   1.0
    else   F   0.0
"""
import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Tuple, Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.errors import ErrorCode
from portal.exceptions import NotFoundError, RuleViolationError
from portal.orm.assessment import Assessment, StudentAssessmentScore
from portal.orm.course import Course
from portal.orm.registration import Registration, RegistrationStatus
from portal.orm.scheduled_course import ScheduledCourse
from portal.orm.semester import Semester
from portal.orm.user import User

logger = logging.getLogger(__name__)

GRADE_SCALE: List[Tuple[float, str, float]] = [
    (90, "A", 4.0),
    (85, "A-", 3.7),
    (80, "B+", 3.3),
    (75, "B", 3.0),
    (70, "B-", 2.7),
    (65, "C+", 2.3),
    (60, "C", 2.0),
    (55, "C-", 1.7),
    (50, "D", 1.0),
]
FAILING_GRADE = ("F", 0.0)


class FinalGradeStatus:
    NO_ASSESSMENTS = "NoAssessments"
    PENDING_GRADING = "PendingGrading"
    ERROR = "Error"
    CALCULATED = "Calculated"


# Dropped students are not graded
GRADABLE_STATUSES = (RegistrationStatus.REGISTERED, RegistrationStatus.COMPLETED)


def grade_for_score(score: float) -> Tuple[str, float]:
    """Letter grade and grade points for a score out of 100."""
    for threshold, letter, points in GRADE_SCALE:
        if score >= threshold:
            return letter, points
    return FAILING_GRADE


# ================= SCORES =================

async def get_assessment(db: AsyncSession, assessment_id: str) -> Assessment:
    result = await db.execute(select(Assessment).where(Assessment.id == assessment_id))
    assessment = result.scalar_one_or_none()
    if not assessment:
        raise NotFoundError("Assessment", assessment_id)
    return assessment


async def record_scores(
    db: AsyncSession,
    assessment_id: str,
    entries: List[Dict[str, Any]],
) -> List[StudentAssessmentScore]:
    """
    Upsert per-student scores for one assessment.

    Scores must lie in [0, max_score]; a null score clears the grade
    but keeps the feedback. The whole batch is rejected on the first
    invalid entry.
    """
    assessment = await get_assessment(db, assessment_id)

    for entry in entries:
        score = entry.get("score")
        if score is not None and not (0 <= score <= assessment.max_score):
            raise RuleViolationError(
                f"Score {score} for student '{entry['student_id']}' is outside 0-{assessment.max_score:g}.",
                code=ErrorCode.SCORE_OUT_OF_RANGE,
            )

    enrolled = await db.execute(
        select(Registration.student_id).where(
            Registration.scheduled_course_id == assessment.scheduled_course_id
        )
    )
    enrolled_ids = set(enrolled.scalars().all())
    unknown = [e["student_id"] for e in entries if e["student_id"] not in enrolled_ids]
    if unknown:
        raise RuleViolationError(
            f"Students not registered in this course: {', '.join(unknown)}"
        )

    existing = await db.execute(
        select(StudentAssessmentScore).where(StudentAssessmentScore.assessment_id == assessment_id)
    )
    by_student = {row.student_id: row for row in existing.scalars().all()}

    saved = []
    for entry in entries:
        row = by_student.get(entry["student_id"])
        if row is None:
            row = StudentAssessmentScore(assessment_id=assessment_id, student_id=entry["student_id"])
            db.add(row)
            by_student[entry["student_id"]] = row
        row.score = entry.get("score")
        row.feedback = entry.get("feedback")
        saved.append(row)

    await db.commit()
    logger.info(f"[Grading] Recorded {len(saved)} score(s) for assessment {assessment_id}")
    return saved


async def list_student_assessments(
    db: AsyncSession,
    scheduled_course_id: Optional[str] = None,
    student_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    query = select(StudentAssessmentScore, Assessment).join(
        Assessment, Assessment.id == StudentAssessmentScore.assessment_id
    )
    if scheduled_course_id:
        query = query.where(Assessment.scheduled_course_id == scheduled_course_id)
    if student_id:
        query = query.where(StudentAssessmentScore.student_id == student_id)
    query = query.order_by(Assessment.due_date, StudentAssessmentScore.student_id)

    result = await db.execute(query)
    return [
        {
            "id": score.id,
            "assessment_id": assessment.id,
            "assessment_name": assessment.name,
            "assessment_type": assessment.type,
            "max_score": assessment.max_score,
            "due_date": assessment.due_date,
            "scheduled_course_id": assessment.scheduled_course_id,
            "student_id": score.student_id,
            "score": score.score,
            "feedback": score.feedback,
        }
        for score, assessment in result.all()
    ]


# ================= FINAL GRADES =================

def calculate_final_grade(
    assessments: List[Assessment],
    student_scores: Dict[str, Optional[float]],
) -> Dict[str, Any]:
    """
    Final grade for one student from their per-assessment scores.

    student_scores maps assessment id to score (None when ungraded).
    """
    if not assessments:
        return {"status": FinalGradeStatus.NO_ASSESSMENTS}

    fully_graded = all(student_scores.get(a.id) is not None for a in assessments)
    if not fully_graded:
        return {"status": FinalGradeStatus.PENDING_GRADING}

    total_max = sum(a.max_score or 0 for a in assessments)
    if total_max == 0:
        return {"status": FinalGradeStatus.ERROR}

    total = sum(student_scores[a.id] for a in assessments)
    numeric = max(0.0, min(100.0, total / total_max * 100))
    letter, points = grade_for_score(numeric)
    return {
        "status": FinalGradeStatus.CALCULATED,
        "numeric_score": round(numeric, 2),
        "final_grade": letter,
        "grade_points": points,
    }


async def compute_final_grades(db: AsyncSession, scheduled_course_id: str) -> List[Dict[str, Any]]:
    sc_result = await db.execute(
        select(ScheduledCourse).where(ScheduledCourse.scheduled_course_id == scheduled_course_id)
    )
    if not sc_result.scalar_one_or_none():
        raise NotFoundError("Scheduled course", scheduled_course_id)

    assessments = (await db.execute(
        select(Assessment).where(Assessment.scheduled_course_id == scheduled_course_id)
    )).scalars().all()

    registrations = (await db.execute(
        select(Registration, User)
        .outerjoin(User, User.user_id == Registration.student_id)
        .where(
            Registration.scheduled_course_id == scheduled_course_id,
            Registration.status.in_(GRADABLE_STATUSES),
        )
        .order_by(Registration.student_id)
    )).all()

    scores: Dict[str, Dict[str, Optional[float]]] = {}
    if assessments:
        rows = (await db.execute(
            select(StudentAssessmentScore).where(
                StudentAssessmentScore.assessment_id.in_([a.id for a in assessments])
            )
        )).scalars().all()
        for row in rows:
            scores.setdefault(row.student_id, {})[row.assessment_id] = row.score

    entries = []
    for registration, student in registrations:
        calc = calculate_final_grade(assessments, scores.get(registration.student_id, {}))
        calculated = calc["status"] == FinalGradeStatus.CALCULATED
        has_changed = calculated and (
            calc["final_grade"] != registration.final_grade
            or calc["grade_points"] != registration.grade_points
        )
        entries.append({
            "registration_id": registration.registration_id,
            "student_id": registration.student_id,
            "first_name": student.first_name if student else None,
            "last_name": student.last_name if student else None,
            "status": calc["status"],
            "numeric_score": calc.get("numeric_score"),
            "final_grade": calc.get("final_grade"),
            "grade_points": calc.get("grade_points"),
            "current_final_grade": registration.final_grade,
            "current_grade_points": registration.grade_points,
            "has_changed": has_changed,
        })
    return entries


async def save_final_grades(db: AsyncSession, scheduled_course_id: str) -> Dict[str, int]:
    """
    Write every calculated, changed grade onto its registration.

    Registrations are updated directly: grades do not change status,
    so enrollment counters are unaffected.
    """
    entries = await compute_final_grades(db, scheduled_course_id)
    to_save = {e["registration_id"]: e for e in entries if e["status"] == FinalGradeStatus.CALCULATED and e["has_changed"]}

    if to_save:
        result = await db.execute(
            select(Registration).where(Registration.registration_id.in_(list(to_save)))
        )
        for registration in result.scalars().all():
            entry = to_save[registration.registration_id]
            registration.final_grade = entry["final_grade"]
            registration.grade_points = entry["grade_points"]
        await db.commit()

    calculated = sum(1 for e in entries if e["status"] == FinalGradeStatus.CALCULATED)
    counts = {
        "updated": len(to_save),
        "unchanged": calculated - len(to_save),
        "skipped": len(entries) - calculated,
    }
    logger.info(f"[Grading] Final grades for {scheduled_course_id}: {counts}")
    return counts


# ================= ACADEMIC HISTORY =================

def _gpa(quality_points: float, credits: int) -> float:
    return round(quality_points / credits, 2) if credits else 0.0


async def academic_history(db: AsyncSession, student_id: str) -> Dict[str, Any]:
    """
    Graded registrations grouped by academic year then semester.

    GPAs are credit-weighted: sum(credits * grade_points) / sum(credits).
    """
    student = (await db.execute(select(User).where(User.user_id == student_id))).scalar_one_or_none()
    if not student:
        raise NotFoundError("Student", student_id)

    rows = (await db.execute(
        select(Registration, Course, Semester)
        .join(ScheduledCourse, ScheduledCourse.scheduled_course_id == Registration.scheduled_course_id)
        .join(Course, Course.id == ScheduledCourse.course_id)
        .join(Semester, Semester.id == ScheduledCourse.semester_id)
        .where(
            Registration.student_id == student_id,
            Registration.status != RegistrationStatus.DROPPED,
            Registration.final_grade.is_not(None),
            Registration.grade_points.is_not(None),
        )
        .order_by(Semester.start_date, Course.course_code)
    )).all()

    years: "OrderedDict[int, OrderedDict[str, Dict[str, Any]]]" = OrderedDict()
    for registration, course, semester in rows:
        semesters = years.setdefault(semester.academic_year, OrderedDict())
        bucket = semesters.setdefault(semester.id, {
            "semester_id": semester.id,
            "name": semester.name,
            "term": semester.term.value,
            "courses": [],
        })
        bucket["courses"].append({
            "course_code": course.course_code,
            "title": course.title,
            "credits": course.credits,
            "final_grade": registration.final_grade,
            "grade_points": registration.grade_points,
            "quality_points": round(course.credits * registration.grade_points, 2),
        })

    academic_years = []
    total_credits = 0
    total_quality = 0.0
    for year, semesters in years.items():
        year_credits = 0
        year_quality = 0.0
        semester_list = []
        for bucket in semesters.values():
            credits = sum(c["credits"] for c in bucket["courses"])
            quality = sum(c["credits"] * c["grade_points"] for c in bucket["courses"])
            bucket["credits"] = credits
            bucket["semester_gpa"] = _gpa(quality, credits)
            semester_list.append(bucket)
            year_credits += credits
            year_quality += quality
        academic_years.append({
            "year": f"Academic Year {year}",
            "academic_year": year,
            "semesters": semester_list,
            "credits": year_credits,
            "annual_gpa": _gpa(year_quality, year_credits),
        })
        total_credits += year_credits
        total_quality += year_quality

    return {
        "student_id": student_id,
        "academic_years": academic_years,
        "total_credits": total_credits,
        "cumulative_gpa": _gpa(total_quality, total_credits),
    }
