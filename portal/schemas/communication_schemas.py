"""
portal/schemas/communication_schemas.py
Announcements and audit log entries
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portal.orm.announcement import AnnouncementStatus, TargetAudience
from portal.schemas.common import to_naive_utc


class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    author_id: Optional[str] = None
    target_audience: TargetAudience = TargetAudience.ALL_USERS
    status: AnnouncementStatus = AnnouncementStatus.DRAFT
    publish_date: Optional[datetime] = None
    department_id: Optional[str] = None

    @field_validator("publish_date")
    @classmethod
    def normalize_publish(cls, v):
        return to_naive_utc(v)


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    target_audience: Optional[TargetAudience] = None
    status: Optional[AnnouncementStatus] = None
    publish_date: Optional[datetime] = None
    department_id: Optional[str] = None

    @field_validator("publish_date")
    @classmethod
    def normalize_publish(cls, v):
        return to_naive_utc(v)


class AnnouncementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    announcement_id: str
    title: str
    content: str
    author_id: Optional[str] = None
    target_audience: TargetAudience
    status: AnnouncementStatus
    publish_date: datetime
    department_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    timestamp: datetime
    username: str
    action_type: str
    target_entity_type: Optional[str] = None
    target_entity_id: Optional[str] = None
    ip_address: Optional[str] = None
    details: Optional[str] = None
