"""
portal/orm/assessment.py
Assessments and per-student scores
"""
from sqlalchemy import Column, String, Text, Float, DateTime, ForeignKey, UniqueConstraint

from portal.orm.base import BaseModel, id_factory


class Assessment(BaseModel):
    __tablename__ = "assessments"

    id = Column(String(64), primary_key=True, default=id_factory("asm"))
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    max_score = Column(Float, nullable=False)
    due_date = Column(DateTime, nullable=False)
    type = Column(String(64), nullable=False)
    scheduled_course_id = Column(
        String(64),
        ForeignKey("scheduled_courses.scheduled_course_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )


class StudentAssessmentScore(BaseModel):
    """
    One student's result on one assessment.

    score is NULL until the teacher grades the submission.
    """
    __tablename__ = "student_assessment_scores"
    __table_args__ = (
        UniqueConstraint("assessment_id", "student_id", name="uq_score_assessment_student"),
    )

    id = Column(String(64), primary_key=True, default=id_factory("sas"))
    assessment_id = Column(String(64), ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(String(64), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    score = Column(Float, nullable=True)
    feedback = Column(Text, nullable=True)
