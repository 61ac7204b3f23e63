"""
portal/routes/ai_assistant.py
Gemini-backed assistants

Errors:
- 400 oversized input or instruction-override phrases
- 422 missing fields
- 502 model failure
- 503 assistants disabled or GEMINI_API_KEY unset
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portal.ai import service as ai_service
from portal.database import get_db
from portal.schemas.ai_schemas import (
    CourseQuestionRequest, CourseQuestionResponse,
    AcademicInsightsRequest, AcademicInsightsResponse,
    FeedbackSuggestionsRequest, FeedbackSuggestionsResponse,
    AnnouncementDraftRequest, AnnouncementDraftResponse,
    LogSummaryRequest, LogSummaryResponse,
    PortalHelpRequest, PortalHelpResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["AI Assistants"])


@router.post("/course-question", response_model=CourseQuestionResponse)
async def course_question(payload: CourseQuestionRequest, db: AsyncSession = Depends(get_db)):
    answer = await ai_service.answer_course_question(
        db,
        question_text=payload.question_text,
        course_material_context_text=payload.course_material_context_text,
        scheduled_course_id=payload.scheduled_course_id,
    )
    return CourseQuestionResponse(answer=answer)


@router.post("/academic-insights", response_model=AcademicInsightsResponse)
async def academic_insights(payload: AcademicInsightsRequest, db: AsyncSession = Depends(get_db)):
    insights = await ai_service.academic_insights(
        db,
        student_progress_summary_text=payload.student_progress_summary,
        student_id=payload.student_id,
        student_academic_interests=payload.student_academic_interests,
    )
    return AcademicInsightsResponse(insights=insights)


@router.post("/feedback-suggestions", response_model=FeedbackSuggestionsResponse)
async def feedback_suggestions(payload: FeedbackSuggestionsRequest):
    suggestions = await ai_service.feedback_suggestions(
        submission_text=payload.submission_text,
        assessment_criteria=payload.assessment_criteria,
    )
    return FeedbackSuggestionsResponse(feedback_suggestions=suggestions)


@router.post("/announcement-draft", response_model=AnnouncementDraftResponse)
async def announcement_draft(payload: AnnouncementDraftRequest):
    draft = await ai_service.draft_announcement(
        key_points=payload.key_points,
        target_audience=payload.target_audience,
        desired_tone=payload.desired_tone,
        cotbe_context=payload.cotbe_context,
    )
    return AnnouncementDraftResponse(announcement_draft=draft)


@router.post("/log-summary", response_model=LogSummaryResponse)
async def log_summary(payload: LogSummaryRequest, db: AsyncSession = Depends(get_db)):
    summary = await ai_service.summarize_logs(db, log_data_snippet=payload.log_data_snippet, limit=payload.limit)
    return LogSummaryResponse(summary=summary)


@router.post("/portal-help", response_model=PortalHelpResponse)
async def portal_help(payload: PortalHelpRequest):
    answer, cached = await ai_service.portal_help(
        user_query=payload.user_query,
        portal_functionality_context=payload.portal_functionality_context,
    )
    return PortalHelpResponse(answer=answer, cached=cached)
