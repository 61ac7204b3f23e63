"""
portal/routes/announcements.py
Announcements CRUD and the role-filtered feed
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.database import get_db
from portal.errors import NotFoundError
from portal.orm.announcement import Announcement, AnnouncementStatus
from portal.orm.base import utcnow
from portal.orm.user import User, UserRole
from portal.schemas.communication_schemas import AnnouncementCreate, AnnouncementUpdate, AnnouncementResponse
from portal.security import actor_name, get_optional_user
from portal.services.announcement_service import announcement_feed
from portal.services.audit_service import AuditAction, client_ip, record_audit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/announcements", tags=["Announcements"])


def _dump(announcement: Announcement) -> dict:
    return AnnouncementResponse.model_validate(announcement).model_dump(mode="json")


async def _get_announcement(db: AsyncSession, announcement_id: str) -> Announcement:
    announcement = await db.get(Announcement, announcement_id)
    if not announcement:
        raise NotFoundError("Announcement", announcement_id)
    return announcement


@router.get("")
async def list_announcements(
    status: Optional[AnnouncementStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    query = select(Announcement)
    if status:
        query = query.where(Announcement.status == status)
    result = await db.execute(query.order_by(Announcement.publish_date.desc()))
    return [_dump(a) for a in result.scalars().all()]


@router.get("/feed")
async def get_feed(
    role: UserRole = Query(...),
    department_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Published announcements visible to the role, newest first."""
    return [_dump(a) for a in await announcement_feed(db, role, department_id)]


@router.post("", status_code=201)
async def create_announcement(
    request: Request,
    payload: AnnouncementCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    fields = payload.model_dump()
    fields["publish_date"] = fields["publish_date"] or utcnow()
    if not fields["author_id"] and actor:
        fields["author_id"] = actor.user_id

    announcement = Announcement(**fields)
    db.add(announcement)
    await db.commit()
    await db.refresh(announcement)

    action = AuditAction.ANNOUNCEMENT_PUBLISHED if announcement.status == AnnouncementStatus.PUBLISHED else AuditAction.CREATE
    await record_audit(db, actor_name(actor), action, "Announcement", announcement.announcement_id,
                       details=announcement.title, ip_address=client_ip(request))
    return {"success": True, "message": "Announcement created successfully.", "data": _dump(announcement)}


@router.get("/{announcement_id}")
async def get_announcement(announcement_id: str, db: AsyncSession = Depends(get_db)):
    return _dump(await _get_announcement(db, announcement_id))


@router.put("/{announcement_id}")
async def update_announcement(
    request: Request,
    announcement_id: str,
    payload: AnnouncementUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    announcement = await _get_announcement(db, announcement_id)
    was_published = announcement.status == AnnouncementStatus.PUBLISHED

    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(announcement, field, value)
    await db.commit()
    await db.refresh(announcement)

    published_now = not was_published and announcement.status == AnnouncementStatus.PUBLISHED
    action = AuditAction.ANNOUNCEMENT_PUBLISHED if published_now else AuditAction.UPDATE
    await record_audit(db, actor_name(actor), action, "Announcement", announcement_id,
                       ip_address=client_ip(request))
    return {"success": True, "message": "Announcement updated successfully.", "data": _dump(announcement)}


@router.delete("/{announcement_id}")
async def delete_announcement(
    request: Request,
    announcement_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    announcement = await _get_announcement(db, announcement_id)
    await db.delete(announcement)
    await db.commit()

    await record_audit(db, actor_name(actor), AuditAction.DELETE, "Announcement", announcement_id,
                       ip_address=client_ip(request))
    return {"success": True, "message": "Announcement deleted successfully."}
