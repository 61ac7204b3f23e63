"""
portal/services/audit_service.py
Audit trail helper

Every mutating handler calls record_audit() after its change succeeded.
Entries are append-only: no edits, no deletions.
"""
import logging
from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.config.feature_flags import FeatureFlags
from portal.orm.audit_log import AuditLogEntry
from portal.orm.base import utcnow

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50


class AuditAction:
    """Action types written to the audit log"""
    USER_LOGIN = "USER_LOGIN"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"
    PASSWORD_RESET = "PASSWORD_RESET"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    REGISTRATION_CREATED = "REGISTRATION_CREATED"
    REGISTRATION_UPDATED = "REGISTRATION_UPDATED"
    REGISTRATION_DELETED = "REGISTRATION_DELETED"
    COURSE_DROPPED = "COURSE_DROPPED"
    SCORES_RECORDED = "SCORES_RECORDED"
    GRADES_SUBMITTED = "GRADES_SUBMITTED"
    ANNOUNCEMENT_PUBLISHED = "ANNOUNCEMENT_PUBLISHED"


async def record_audit(
    db: AsyncSession,
    username: str,
    action_type: str,
    target_entity_type: Optional[str] = None,
    target_entity_id: Optional[str] = None,
    details: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> Optional[AuditLogEntry]:
    """
    Append an audit entry and commit it.

    Audit logging is best-effort: a failure is logged and None is
    returned so the already-committed action is not reported as failed.
    """
    if not FeatureFlags.FEATURE_AUDIT_LOG:
        return None

    try:
        entry = AuditLogEntry(
            timestamp=utcnow(),
            username=username or "system",
            action_type=action_type,
            target_entity_type=target_entity_type,
            target_entity_id=target_entity_id,
            details=details,
            ip_address=ip_address,
        )
        db.add(entry)
        await db.commit()
        await db.refresh(entry)

        logger.debug(f"[Audit] {action_type} by {entry.username} on {target_entity_type} {target_entity_id}")
        return entry

    except Exception as e:
        logger.error(f"[Audit] Failed to record {action_type}: {e}")
        await db.rollback()
        return None


async def list_audit_logs(
    db: AsyncSession,
    limit: int = DEFAULT_LIMIT,
    action_type: Optional[str] = None,
    username: Optional[str] = None,
) -> List[AuditLogEntry]:
    """Newest entries first."""
    query = select(AuditLogEntry)
    if action_type:
        query = query.where(AuditLogEntry.action_type == action_type)
    if username:
        query = query.where(AuditLogEntry.username == username)
    query = query.order_by(AuditLogEntry.timestamp.desc()).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())


def client_ip(request) -> Optional[str]:
    return request.client.host if request and request.client else None
