"""
portal/ai/service.py
Gemini-backed portal assistants

FLOW (every assistant):
1. Feature flag and API key check (503 when unavailable)
2. Input guard (size limit, instruction-override phrases)
3. Optional context lookup from the database
4. Template fill and model call (502 on model failure)

The model's text is returned unmodified.
"""
import hashlib
import logging
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.ai.guards import enforce_input_rules
from portal.ai.prompts import AssistantKind, build_prompt
from portal.config import settings
from portal.config.feature_flags import FeatureFlags
from portal.exceptions import AIServiceError, AINotConfiguredError, NotFoundError
from portal.orm.course import Course
from portal.orm.course_material import CourseMaterial
from portal.orm.registration import Registration, RegistrationStatus
from portal.orm.scheduled_course import ScheduledCourse
from portal.services.audit_service import list_audit_logs
from portal.services.grading_service import academic_history

logger = logging.getLogger(__name__)

_help_cache: Dict[str, str] = {}
CACHE_MAX_SIZE = 100


def _get_cache_key(query: str, context: Optional[str]) -> str:
    raw = f"{query.strip().lower()}\x00{(context or '').strip()}"
    return "help:" + hashlib.sha256(raw.encode("utf-8")).hexdigest()


def _cache_get(key: str) -> Optional[str]:
    return _help_cache.get(key)


def _cache_set(key: str, value: str) -> None:
    """Set in cache, evicting the oldest entry when full"""
    if len(_help_cache) >= CACHE_MAX_SIZE:
        oldest = next(iter(_help_cache))
        del _help_cache[oldest]
    _help_cache[key] = value


def clear_cache() -> None:
    _help_cache.clear()


def _ensure_available() -> None:
    if not FeatureFlags.FEATURE_AI_ASSISTANTS:
        raise AINotConfiguredError("AI assistants are disabled.")
    if not settings.gemini_configured:
        logger.warning("[AI] GEMINI_API_KEY is not set; assistant request refused")
        raise AINotConfiguredError()


async def _call_llm(prompt: str) -> str:
    """
    Call Gemini.

    Any client error, or an empty reply, becomes AIServiceError.
    """
    import google.generativeai as genai

    try:
        genai.configure(api_key=settings.GEMINI_API_KEY)
        model = genai.GenerativeModel(settings.GEMINI_MODEL)
        response = await model.generate_content_async(prompt)
        text = response.text
    except Exception as e:
        logger.error(f"[LLM] Generation error: {e}")
        raise AIServiceError("The AI service failed to produce a response.") from e

    if not text or not text.strip():
        logger.error("[LLM] Empty response")
        raise AIServiceError("The AI service returned an empty response.")
    return text


async def _generate(kind: AssistantKind, **fields) -> str:
    prompt = build_prompt(kind, **fields)
    logger.info(f"[AI] {kind.value} request ({len(prompt)} chars)")
    return await _call_llm(prompt)


# ================= CONTEXT =================

async def course_material_context(db: AsyncSession, scheduled_course_id: str) -> str:
    """Plain-text digest of a scheduled course and its materials."""
    result = await db.execute(
        select(ScheduledCourse, Course)
        .join(Course, Course.id == ScheduledCourse.course_id)
        .where(ScheduledCourse.scheduled_course_id == scheduled_course_id)
    )
    row = result.first()
    if not row:
        raise NotFoundError("Scheduled course", scheduled_course_id)
    sc, course = row

    lines = [f"Course: {course.course_code} {course.title} (section {sc.section_number})"]
    if course.description:
        lines.append(f"Description: {course.description}")

    materials = await db.execute(
        select(CourseMaterial)
        .where(CourseMaterial.scheduled_course_id == scheduled_course_id)
        .order_by(CourseMaterial.created_at)
    )
    for material in materials.scalars().all():
        entry = f"- {material.title} [{material.material_type.value}]"
        if material.description:
            entry += f": {material.description}"
        if material.url:
            entry += f" ({material.url})"
        lines.append(entry)
    return "\n".join(lines)


async def student_progress_summary(db: AsyncSession, student_id: str) -> str:
    history = await academic_history(db, student_id)

    lines = [f"Cumulative GPA: {history['cumulative_gpa']:.2f} over {history['total_credits']} credits"]
    for year in history["academic_years"]:
        for semester in year["semesters"]:
            lines.append(f"{semester['name']} (GPA {semester['semester_gpa']:.2f}):")
            for c in semester["courses"]:
                lines.append(f"- {c['course_code']} {c['title']}, {c['credits']} credits, grade {c['final_grade']}")

    current = await db.execute(
        select(Course.course_code, Course.title)
        .join(ScheduledCourse, ScheduledCourse.course_id == Course.id)
        .join(Registration, Registration.scheduled_course_id == ScheduledCourse.scheduled_course_id)
        .where(
            Registration.student_id == student_id,
            Registration.status == RegistrationStatus.REGISTERED,
        )
    )
    in_progress = [f"{code} {title}" for code, title in current.all()]
    if in_progress:
        lines.append("Currently registered: " + "; ".join(in_progress))
    return "\n".join(lines)


async def recent_log_snippet(db: AsyncSession, limit: int) -> str:
    entries = await list_audit_logs(db, limit=limit)
    return "\n".join(
        f"{e.timestamp.isoformat()} {e.username} {e.action_type} "
        f"{e.target_entity_type or '-'}:{e.target_entity_id or '-'} {e.details or ''}".rstrip()
        for e in entries
    )


# ================= ASSISTANTS =================

async def answer_course_question(
    db: AsyncSession,
    *,
    question_text: str,
    course_material_context_text: Optional[str] = None,
    scheduled_course_id: Optional[str] = None,
) -> str:
    _ensure_available()
    enforce_input_rules(
        {"question_text": question_text, "context": course_material_context_text},
        question_field="question_text",
    )
    context = course_material_context_text
    if not context:
        context = await course_material_context(db, scheduled_course_id)
    return await _generate(AssistantKind.COURSE_QUESTION, question=question_text, context=context)


async def academic_insights(
    db: AsyncSession,
    *,
    student_progress_summary_text: Optional[str] = None,
    student_id: Optional[str] = None,
    student_academic_interests: Optional[str] = None,
) -> str:
    _ensure_available()
    enforce_input_rules({
        "progress": student_progress_summary_text,
        "interests": student_academic_interests,
    })
    progress = student_progress_summary_text
    if not progress:
        progress = await student_progress_summary(db, student_id)
    return await _generate(
        AssistantKind.ACADEMIC_INSIGHTS,
        progress=progress,
        interests=student_academic_interests,
    )


async def feedback_suggestions(*, submission_text: str, assessment_criteria: Optional[str] = None) -> str:
    _ensure_available()
    enforce_input_rules({"submission": submission_text, "criteria": assessment_criteria})
    return await _generate(
        AssistantKind.FEEDBACK_SUGGESTIONS,
        submission=submission_text,
        criteria=assessment_criteria,
    )


async def draft_announcement(
    *,
    key_points: str,
    target_audience: str,
    desired_tone: str,
    cotbe_context: Optional[str] = None,
) -> str:
    _ensure_available()
    enforce_input_rules({
        "key_points": key_points,
        "target_audience": target_audience,
        "desired_tone": desired_tone,
        "context": cotbe_context,
    })
    return await _generate(
        AssistantKind.ANNOUNCEMENT_DRAFT,
        key_points=key_points,
        audience=target_audience,
        tone=desired_tone,
        context=cotbe_context,
    )


async def summarize_logs(db: AsyncSession, *, log_data_snippet: Optional[str] = None, limit: int = 20) -> str:
    _ensure_available()
    enforce_input_rules({"logs": log_data_snippet})
    logs = log_data_snippet or await recent_log_snippet(db, limit)
    return await _generate(AssistantKind.LOG_SUMMARY, logs=logs)


async def portal_help(*, user_query: str, portal_functionality_context: Optional[str] = None):
    """
    Answer a how-to question. Identical questions are served from cache.

    Returns (answer, cached).
    """
    _ensure_available()
    enforce_input_rules(
        {"user_query": user_query, "context": portal_functionality_context},
        question_field="user_query",
    )

    cache_key = _get_cache_key(user_query, portal_functionality_context)
    cached = _cache_get(cache_key)
    if cached is not None:
        logger.info("[AI] portal_help served from cache")
        return cached, True

    answer = await _generate(
        AssistantKind.PORTAL_HELP,
        query=user_query,
        context=portal_functionality_context,
    )
    _cache_set(cache_key, answer)
    return answer, False
