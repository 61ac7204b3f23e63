"""
portal/schemas/scheduling_schemas.py
Scheduled courses, registrations, course materials and assessments
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from portal.orm.course_material import MaterialType
from portal.orm.registration import RegistrationStatus
from portal.schemas.common import to_naive_utc

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


# ---------------------------------------------------------------------------
# Scheduled courses
# ---------------------------------------------------------------------------

class ScheduledCourseCreate(BaseModel):
    course_id: str = Field(..., min_length=1)
    semester_id: str = Field(..., min_length=1)
    teacher_id: str = Field(..., min_length=1)
    room_id: Optional[str] = None
    section_number: str = Field(..., min_length=1, max_length=16)
    max_capacity: int = Field(..., ge=0)
    days_of_week: Optional[str] = Field(None, max_length=32)
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)


class ScheduledCourseUpdate(BaseModel):
    """current_enrollment is maintained by registrations and is not accepted here."""
    course_id: Optional[str] = None
    semester_id: Optional[str] = None
    teacher_id: Optional[str] = None
    room_id: Optional[str] = None
    section_number: Optional[str] = Field(None, min_length=1, max_length=16)
    max_capacity: Optional[int] = Field(None, ge=0)
    days_of_week: Optional[str] = Field(None, max_length=32)
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)


class ScheduledCourseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    scheduled_course_id: str
    course_id: str
    semester_id: str
    teacher_id: str
    room_id: Optional[str] = None
    section_number: str
    max_capacity: int
    current_enrollment: int
    days_of_week: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    # Enriched for list views
    course_code: Optional[str] = None
    title: Optional[str] = None
    credits: Optional[int] = None
    description: Optional[str] = None
    semester_name: Optional[str] = None
    teacher_name: Optional[str] = None
    room_name: Optional[str] = None
    schedule: Optional[str] = None


class EnrollmentCheckResponse(BaseModel):
    scheduled_course_id: str
    stored_enrollment: int
    actual_enrollment: int
    max_capacity: int
    consistent: bool


# ---------------------------------------------------------------------------
# Registrations
# ---------------------------------------------------------------------------

class RegistrationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_id: str = Field(..., min_length=1)
    scheduled_course_id: str = Field(..., min_length=1)
    manual_override: bool = Field(False, alias="manualOverride")


class RegistrationUpdate(BaseModel):
    status: Optional[RegistrationStatus] = None
    final_grade: Optional[str] = Field(None, max_length=4)
    grade_points: Optional[float] = Field(None, ge=0, le=4.0)


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    registration_id: str
    student_id: str
    scheduled_course_id: str
    registration_date: datetime
    status: RegistrationStatus
    final_grade: Optional[str] = None
    grade_points: Optional[float] = None
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Course materials
# ---------------------------------------------------------------------------

class CourseMaterialCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    material_type: MaterialType
    file_path: Optional[str] = None
    url: Optional[str] = None
    scheduled_course_id: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_link(self):
        if self.material_type == MaterialType.LINK and not self.url:
            raise ValueError("url is required for Link materials")
        return self


class CourseMaterialUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    material_type: Optional[MaterialType] = None
    file_path: Optional[str] = None
    url: Optional[str] = None


class CourseMaterialResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str] = None
    material_type: MaterialType
    file_path: Optional[str] = None
    url: Optional[str] = None
    scheduled_course_id: str
    created_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Assessments & scores
# ---------------------------------------------------------------------------

class AssessmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    max_score: float = Field(..., gt=0)
    due_date: datetime
    type: str = Field(..., min_length=1, max_length=64)
    scheduled_course_id: str = Field(..., min_length=1)

    @field_validator("due_date")
    @classmethod
    def normalize_due(cls, v):
        return to_naive_utc(v)


class AssessmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    max_score: Optional[float] = Field(None, gt=0)
    due_date: Optional[datetime] = None
    type: Optional[str] = Field(None, min_length=1, max_length=64)

    @field_validator("due_date")
    @classmethod
    def normalize_due(cls, v):
        return to_naive_utc(v)


class AssessmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    max_score: float
    due_date: datetime
    type: str
    scheduled_course_id: str


class ScoreEntry(BaseModel):
    student_id: str = Field(..., min_length=1)
    score: Optional[float] = None
    feedback: Optional[str] = None


class ScoresUpdate(BaseModel):
    scores: List[ScoreEntry] = Field(..., min_length=1)


class StudentAssessmentResponse(BaseModel):
    id: str
    assessment_id: str
    assessment_name: str
    assessment_type: str
    max_score: float
    due_date: datetime
    scheduled_course_id: str
    student_id: str
    score: Optional[float] = None
    feedback: Optional[str] = None


# ---------------------------------------------------------------------------
# Grading
# ---------------------------------------------------------------------------

class FinalGradeEntry(BaseModel):
    registration_id: str
    student_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    status: str
    numeric_score: Optional[float] = None
    final_grade: Optional[str] = None
    grade_points: Optional[float] = None
    current_final_grade: Optional[str] = None
    current_grade_points: Optional[float] = None
    has_changed: bool = False


class FinalGradesSaveResult(BaseModel):
    success: bool = True
    message: str
    updated: int
    unchanged: int
    skipped: int
