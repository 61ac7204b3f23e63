"""
portal/orm/announcement.py
Portal announcements with audience targeting
"""
from enum import Enum

from sqlalchemy import Column, String, Text, DateTime, ForeignKey

from portal.orm.base import BaseModel, id_factory, utcnow, value_enum


class TargetAudience(str, Enum):
    ALL_USERS = "All Portal Users"
    ALL_STUDENTS = "All Students"
    ALL_TEACHERS = "All Teachers"
    ALL_STAFF = "All Staff"
    DEPARTMENT_STUDENTS = "Specific Department Students"
    DEPARTMENT_FACULTY = "Specific Department Faculty"


class AnnouncementStatus(str, Enum):
    DRAFT = "Draft"
    PUBLISHED = "Published"
    ARCHIVED = "Archived"


class Announcement(BaseModel):
    __tablename__ = "announcements"

    announcement_id = Column(String(64), primary_key=True, default=id_factory("anno"))
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    author_id = Column(String(64), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    target_audience = Column(value_enum(TargetAudience), nullable=False, default=TargetAudience.ALL_USERS)
    status = Column(value_enum(AnnouncementStatus), nullable=False, default=AnnouncementStatus.DRAFT, index=True)
    publish_date = Column(DateTime, nullable=False, default=utcnow, index=True)
    department_id = Column(String(64), ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)
