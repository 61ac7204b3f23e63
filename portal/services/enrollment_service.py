"""
portal/services/enrollment_service.py
Registration lifecycle and enrollment counter bookkeeping

INVARIANT:
ScheduledCourse.current_enrollment equals the number of registrations
with status Registered for that scheduled course. Manual override is the
one sanctioned way to push the counter above max_capacity.

Every change to a registration's status goes through this module so the
counter is adjusted in exactly one place. Mutations run one at a time
under registration_lock(), and the counter moves in a single UPDATE
statement. Counters are also recomputed from scratch at startup
(reconcile_enrollment_counts).
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional, Tuple, Dict, Any, List

from sqlalchemy import select, func, case, update
from sqlalchemy.ext.asyncio import AsyncSession

from portal.config.feature_flags import FeatureFlags
from portal.errors import ErrorCode
from portal.exceptions import NotFoundError, RegistrationError, RuleViolationError
from portal.orm.base import utcnow
from portal.orm.registration import Registration, RegistrationStatus, ACTIVE_STATUSES
from portal.orm.scheduled_course import ScheduledCourse
from portal.orm.semester import Semester
from portal.orm.user import User, UserRole

logger = logging.getLogger(__name__)

REGISTERED_MESSAGE = "Student successfully registered for course."
OVERRIDE_NOTE = " (Capacity may be exceeded by manual override)."

# Duplicate and capacity checks must not interleave across awaits
_lock = None
_lock_loop = None


def registration_lock() -> asyncio.Lock:
    """Lock shared by every registration mutation on the running loop."""
    global _lock, _lock_loop
    loop = asyncio.get_running_loop()
    if _lock is None or _lock_loop is not loop:
        _lock = asyncio.Lock()
        _lock_loop = loop
    return _lock


# ================= LOOKUPS =================

async def get_scheduled_course(db: AsyncSession, scheduled_course_id: str) -> ScheduledCourse:
    result = await db.execute(
        select(ScheduledCourse)
        .where(ScheduledCourse.scheduled_course_id == scheduled_course_id)
        .execution_options(populate_existing=True)
    )
    sc = result.scalar_one_or_none()
    if not sc:
        raise NotFoundError("Scheduled course", scheduled_course_id)
    return sc


async def get_registration(db: AsyncSession, registration_id: str) -> Registration:
    result = await db.execute(
        select(Registration).where(Registration.registration_id == registration_id)
    )
    registration = result.scalar_one_or_none()
    if not registration:
        raise NotFoundError("Registration", registration_id)
    return registration


async def count_registered(db: AsyncSession, scheduled_course_id: str) -> int:
    result = await db.execute(
        select(func.count(Registration.registration_id)).where(
            Registration.scheduled_course_id == scheduled_course_id,
            Registration.status == RegistrationStatus.REGISTERED,
        )
    )
    return result.scalar_one()


# ================= COUNTER =================

async def _apply_enrollment_delta(db: AsyncSession, scheduled_course_id: str, delta: int) -> None:
    """Adjust the counter in the database, never letting it drop below zero."""
    moved = ScheduledCourse.current_enrollment + delta
    await db.execute(
        update(ScheduledCourse)
        .where(ScheduledCourse.scheduled_course_id == scheduled_course_id)
        .values(current_enrollment=case((moved < 0, 0), else_=moved))
        .execution_options(synchronize_session=False)
    )


def _status_delta(old_status: RegistrationStatus, new_status: RegistrationStatus) -> int:
    was_registered = old_status == RegistrationStatus.REGISTERED
    is_registered = new_status == RegistrationStatus.REGISTERED
    if was_registered and not is_registered:
        return -1
    if is_registered and not was_registered:
        return 1
    return 0


# ================= REGISTRATION WINDOW =================

def _within(now: datetime, start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is None and end is None:
        return False
    if start is not None and now < start:
        return False
    if end is not None and now > end:
        return False
    return True


def is_registration_open(semester: Semester, now: Optional[datetime] = None) -> bool:
    """
    True when now falls in the registration window or the add/drop window.
    A semester with no windows configured is always open.
    """
    now = now or utcnow()
    windows = [
        (semester.registration_start_date, semester.registration_end_date),
        (semester.add_drop_start_date, semester.add_drop_end_date),
    ]
    if all(start is None and end is None for start, end in windows):
        return True
    return any(_within(now, start, end) for start, end in windows)


async def _check_registration_window(db: AsyncSession, sc: ScheduledCourse) -> None:
    result = await db.execute(select(Semester).where(Semester.id == sc.semester_id))
    semester = result.scalar_one_or_none()
    if semester and not is_registration_open(semester):
        logger.info(f"[Registration] Window closed for {sc.scheduled_course_id} ({semester.name})")
        raise RuleViolationError(
            f"Registration for {semester.name} is not open.",
            code=ErrorCode.REGISTRATION_CLOSED,
        )


# ================= OPERATIONS =================

async def create_registration(
    db: AsyncSession,
    student_id: str,
    scheduled_course_id: str,
    manual_override: bool = False,
) -> Tuple[Registration, str]:
    """
    Register a student and bump the course counter.

    Returns the new registration and the user-facing message.
    """
    async with registration_lock():
        return await _create_registration(db, student_id, scheduled_course_id, manual_override)


async def _create_registration(
    db: AsyncSession,
    student_id: str,
    scheduled_course_id: str,
    manual_override: bool,
) -> Tuple[Registration, str]:
    existing = await db.execute(
        select(Registration.registration_id).where(
            Registration.student_id == student_id,
            Registration.scheduled_course_id == scheduled_course_id,
            Registration.status.in_(ACTIVE_STATUSES),
        )
    )
    if existing.first():
        raise RegistrationError("Student already registered or waitlisted for this course.")

    sc = await get_scheduled_course(db, scheduled_course_id)

    student = await db.execute(select(User).where(User.user_id == student_id))
    student = student.scalar_one_or_none()
    if not student:
        raise NotFoundError("Student", student_id)
    if student.role != UserRole.STUDENT:
        raise RuleViolationError(f"User '{student_id}' is not a student.")

    message = REGISTERED_MESSAGE
    if not manual_override:
        if FeatureFlags.ENFORCE_REGISTRATION_WINDOW:
            await _check_registration_window(db, sc)
        if sc.is_full:
            logger.info(f"[Registration] {scheduled_course_id} is full ({sc.current_enrollment}/{sc.max_capacity})")
            raise RegistrationError("Course is full.", code=ErrorCode.COURSE_FULL)
    elif sc.is_full:
        message += OVERRIDE_NOTE
        logger.warning(
            f"[Registration] Manual override for {student_id} in {scheduled_course_id} "
            f"({sc.current_enrollment}/{sc.max_capacity})"
        )

    registration = Registration(
        student_id=student_id,
        scheduled_course_id=scheduled_course_id,
        registration_date=utcnow(),
        status=RegistrationStatus.REGISTERED,
    )
    db.add(registration)
    await _apply_enrollment_delta(db, scheduled_course_id, 1)

    await db.commit()
    await db.refresh(registration)
    await db.refresh(sc)

    logger.info(
        f"[Registration] {student_id} registered in {scheduled_course_id} "
        f"(enrollment now {sc.current_enrollment}/{sc.max_capacity})"
    )
    return registration, message


async def update_registration(
    db: AsyncSession,
    registration_id: str,
    changes: Dict[str, Any],
) -> Registration:
    """
    Merge changes into a registration.

    Status transitions into or out of Registered move the counter.
    Re-registering is an administrative action, so capacity is not checked.
    """
    async with registration_lock():
        registration = await get_registration(db, registration_id)
        old_status = registration.status

        for field, value in changes.items():
            setattr(registration, field, value)

        delta = _status_delta(old_status, registration.status)
        if delta:
            await _apply_enrollment_delta(db, registration.scheduled_course_id, delta)
            logger.info(
                f"[Registration] {registration_id} {old_status.value} -> {registration.status.value}, "
                f"counter for {registration.scheduled_course_id} moved by {delta:+d}"
            )

        await db.commit()
        await db.refresh(registration)
        return registration


async def drop_registration(db: AsyncSession, registration_id: str) -> Registration:
    """Student-initiated drop; same bookkeeping as a status update."""
    return await update_registration(db, registration_id, {"status": RegistrationStatus.DROPPED})


async def delete_registration(db: AsyncSession, registration_id: str) -> Registration:
    async with registration_lock():
        registration = await get_registration(db, registration_id)

        if registration.status == RegistrationStatus.REGISTERED:
            await _apply_enrollment_delta(db, registration.scheduled_course_id, -1)

        await db.delete(registration)
        await db.commit()

    logger.info(f"[Registration] Deleted {registration_id}")
    return registration


async def list_registrations(
    db: AsyncSession,
    student_id: Optional[str] = None,
    scheduled_course_id: Optional[str] = None,
) -> List[Registration]:
    query = select(Registration)
    if student_id:
        query = query.where(Registration.student_id == student_id)
    elif scheduled_course_id:
        query = query.where(Registration.scheduled_course_id == scheduled_course_id)
    result = await db.execute(query.order_by(Registration.registration_date))
    return list(result.scalars().all())


# ================= RECONCILIATION =================

async def reconcile_enrollment_counts(db: AsyncSession) -> int:
    """
    Recompute every counter from registrations.

    Returns how many scheduled courses had a drifted counter.
    """
    counts_result = await db.execute(
        select(Registration.scheduled_course_id, func.count(Registration.registration_id))
        .where(Registration.status == RegistrationStatus.REGISTERED)
        .group_by(Registration.scheduled_course_id)
    )
    counts = dict(counts_result.all())

    result = await db.execute(select(ScheduledCourse).execution_options(populate_existing=True))
    corrected = 0
    for sc in result.scalars().all():
        actual = counts.get(sc.scheduled_course_id, 0)
        if sc.current_enrollment != actual:
            logger.warning(
                f"[Enrollment] Reconciled {sc.scheduled_course_id}: "
                f"{sc.current_enrollment} -> {actual}"
            )
            sc.current_enrollment = actual
            corrected += 1

    await db.commit()
    logger.info(f"[Enrollment] Counters reconciled ({corrected} corrected)")
    return corrected


async def enrollment_check(db: AsyncSession, scheduled_course_id: str) -> Dict[str, Any]:
    sc = await get_scheduled_course(db, scheduled_course_id)
    actual = await count_registered(db, scheduled_course_id)
    return {
        "scheduled_course_id": sc.scheduled_course_id,
        "stored_enrollment": sc.current_enrollment,
        "actual_enrollment": actual,
        "max_capacity": sc.max_capacity,
        "consistent": sc.current_enrollment == actual,
    }
