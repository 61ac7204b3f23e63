"""
portal/routes/assessments.py
Assessments, per-student scores and final grades
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from portal.database import get_db
from portal.orm.assessment import Assessment, StudentAssessmentScore
from portal.orm.user import User
from portal.schemas.scheduling_schemas import (
    AssessmentCreate,
    AssessmentUpdate,
    AssessmentResponse,
    ScoresUpdate,
    StudentAssessmentResponse,
    FinalGradeEntry,
    FinalGradesSaveResult,
)
from portal.security import actor_name, get_optional_user
from portal.services import enrollment_service, grading_service
from portal.services.audit_service import AuditAction, client_ip, record_audit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assessments", tags=["Assessments"])
student_assessments_router = APIRouter(prefix="/api/student-assessments", tags=["Assessments"])
grading_router = APIRouter(prefix="/api/grading", tags=["Grading"])
students_router = APIRouter(prefix="/api/students", tags=["Students"])


def _dump(assessment: Assessment) -> dict:
    return AssessmentResponse.model_validate(assessment).model_dump(mode="json")


# ============================================================================
# ASSESSMENTS
# ============================================================================

@router.get("")
async def list_assessments(
    scheduled_course_id: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Assessment)
        .where(Assessment.scheduled_course_id == scheduled_course_id)
        .order_by(Assessment.due_date)
    )
    return [_dump(a) for a in result.scalars().all()]


@router.post("", status_code=201)
async def create_assessment(
    request: Request,
    payload: AssessmentCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    await enrollment_service.get_scheduled_course(db, payload.scheduled_course_id)

    assessment = Assessment(**payload.model_dump())
    db.add(assessment)
    await db.commit()
    await db.refresh(assessment)

    await record_audit(db, actor_name(actor), AuditAction.CREATE, "Assessment", assessment.id,
                       details=assessment.name, ip_address=client_ip(request))
    return {"success": True, "message": "Assessment created successfully.", "data": _dump(assessment)}


@router.get("/{assessment_id}")
async def get_assessment(assessment_id: str, db: AsyncSession = Depends(get_db)):
    return _dump(await grading_service.get_assessment(db, assessment_id))


@router.put("/{assessment_id}/scores")
async def record_scores(
    request: Request,
    assessment_id: str,
    payload: ScoresUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    """Upsert scores and feedback for students registered in the course."""
    saved = await grading_service.record_scores(
        db, assessment_id, [entry.model_dump() for entry in payload.scores]
    )
    data = [
        {"id": s.id, "assessment_id": s.assessment_id, "student_id": s.student_id,
         "score": s.score, "feedback": s.feedback}
        for s in saved
    ]

    await record_audit(db, actor_name(actor), AuditAction.SCORES_RECORDED, "Assessment", assessment_id,
                       details=f"{len(saved)} score(s)", ip_address=client_ip(request))
    return {"success": True, "message": f"Saved {len(saved)} score(s).", "data": data}


@router.put("/{assessment_id}")
async def update_assessment(
    request: Request,
    assessment_id: str,
    payload: AssessmentUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    assessment = await grading_service.get_assessment(db, assessment_id)
    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(assessment, field, value)
    await db.commit()
    await db.refresh(assessment)

    await record_audit(db, actor_name(actor), AuditAction.UPDATE, "Assessment", assessment_id,
                       ip_address=client_ip(request))
    return {"success": True, "message": "Assessment updated successfully.", "data": _dump(assessment)}


@router.delete("/{assessment_id}")
async def delete_assessment(
    request: Request,
    assessment_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    assessment = await grading_service.get_assessment(db, assessment_id)
    await db.execute(delete(StudentAssessmentScore).where(StudentAssessmentScore.assessment_id == assessment_id))
    await db.delete(assessment)
    await db.commit()

    await record_audit(db, actor_name(actor), AuditAction.DELETE, "Assessment", assessment_id,
                       ip_address=client_ip(request))
    return {"success": True, "message": "Assessment deleted successfully."}


# ============================================================================
# SCORES, FINAL GRADES, HISTORY
# ============================================================================

@student_assessments_router.get("", response_model=List[StudentAssessmentResponse])
async def list_student_assessments(
    scheduled_course_id: Optional[str] = Query(None),
    student_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await grading_service.list_student_assessments(db, scheduled_course_id, student_id)


@grading_router.get("/{scheduled_course_id}/final-grades", response_model=List[FinalGradeEntry])
async def preview_final_grades(scheduled_course_id: str, db: AsyncSession = Depends(get_db)):
    return await grading_service.compute_final_grades(db, scheduled_course_id)


@grading_router.post("/{scheduled_course_id}/final-grades", response_model=FinalGradesSaveResult)
async def submit_final_grades(
    request: Request,
    scheduled_course_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    counts = await grading_service.save_final_grades(db, scheduled_course_id)

    await record_audit(db, actor_name(actor), AuditAction.GRADES_SUBMITTED, "ScheduledCourse",
                       scheduled_course_id, details=f"{counts['updated']} grade(s) updated",
                       ip_address=client_ip(request))
    return FinalGradesSaveResult(
        message=f"{counts['updated']} final grade(s) saved.",
        **counts,
    )


@students_router.get("/{student_id}/academic-history")
async def get_academic_history(student_id: str, db: AsyncSession = Depends(get_db)):
    return await grading_service.academic_history(db, student_id)
