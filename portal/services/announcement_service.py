"""
portal/services/announcement_service.py
Audience matching for the announcement feed

AUDIENCE RULES:
- All Portal Users: everyone
- All Students / All Teachers: that role only
- All Staff: Staff Head and Admin
- Specific Department Students / Faculty: students / teachers whose
  department matches the announcement's department
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.orm.announcement import Announcement, AnnouncementStatus, TargetAudience
from portal.orm.base import utcnow
from portal.orm.user import UserRole

logger = logging.getLogger(__name__)

STAFF_ROLES = (UserRole.STAFF_HEAD, UserRole.ADMIN)


def audience_matches(
    announcement: Announcement,
    role: UserRole,
    department_id: Optional[str] = None,
) -> bool:
    audience = announcement.target_audience

    if audience == TargetAudience.ALL_USERS:
        return True
    if audience == TargetAudience.ALL_STUDENTS:
        return role == UserRole.STUDENT
    if audience == TargetAudience.ALL_TEACHERS:
        return role == UserRole.TEACHER
    if audience == TargetAudience.ALL_STAFF:
        return role in STAFF_ROLES

    same_department = department_id is not None and announcement.department_id == department_id
    if audience == TargetAudience.DEPARTMENT_STUDENTS:
        return role == UserRole.STUDENT and same_department
    if audience == TargetAudience.DEPARTMENT_FACULTY:
        return role == UserRole.TEACHER and same_department
    return False


async def announcement_feed(
    db: AsyncSession,
    role: UserRole,
    department_id: Optional[str] = None,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> List[Announcement]:
    """Published, already-live announcements for a role, newest first."""
    now = now or utcnow()
    result = await db.execute(
        select(Announcement)
        .where(
            Announcement.status == AnnouncementStatus.PUBLISHED,
            Announcement.publish_date <= now,
        )
        .order_by(Announcement.publish_date.desc())
    )
    feed = [a for a in result.scalars().all() if audience_matches(a, role, department_id)]

    logger.debug(f"[Announcements] Feed for {role.value}/{department_id}: {len(feed)} item(s)")
    return feed[:limit] if limit else feed
