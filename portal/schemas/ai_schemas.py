"""
portal/schemas/ai_schemas.py
Request/Response schemas for the AI assistants
"""
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class CourseQuestionRequest(BaseModel):
    """Either pass material text directly or a scheduled course to read it from."""
    question_text: str = Field(..., min_length=1)
    course_material_context_text: Optional[str] = None
    scheduled_course_id: Optional[str] = None

    @model_validator(mode="after")
    def require_context(self):
        if not (self.course_material_context_text or self.scheduled_course_id):
            raise ValueError("course_material_context_text or scheduled_course_id is required")
        return self


class CourseQuestionResponse(BaseModel):
    answer: str


class AcademicInsightsRequest(BaseModel):
    student_progress_summary: Optional[str] = None
    student_id: Optional[str] = None
    student_academic_interests: Optional[str] = None

    @model_validator(mode="after")
    def require_progress(self):
        if not (self.student_progress_summary or self.student_id):
            raise ValueError("student_progress_summary or student_id is required")
        return self


class AcademicInsightsResponse(BaseModel):
    insights: str


class FeedbackSuggestionsRequest(BaseModel):
    submission_text: str = Field(..., min_length=1)
    assessment_criteria: Optional[str] = None


class FeedbackSuggestionsResponse(BaseModel):
    feedback_suggestions: str


class AnnouncementDraftRequest(BaseModel):
    key_points: str = Field(..., min_length=1)
    target_audience: str = Field(..., min_length=1)
    desired_tone: str = Field(..., min_length=1)
    cotbe_context: Optional[str] = None


class AnnouncementDraftResponse(BaseModel):
    announcement_draft: str


class LogSummaryRequest(BaseModel):
    """Without a snippet the most recent audit entries are summarised."""
    log_data_snippet: Optional[str] = None
    limit: int = Field(20, ge=1, le=200)


class LogSummaryResponse(BaseModel):
    summary: str


class PortalHelpRequest(BaseModel):
    user_query: str = Field(..., min_length=1)
    portal_functionality_context: Optional[str] = None


class PortalHelpResponse(BaseModel):
    answer: str
    cached: bool = False
