"""
portal/orm/__init__.py
Import every model so Base.metadata knows all tables
"""
from portal.orm.base import Base, BaseModel, new_id, utcnow
from portal.orm.department import Department
from portal.orm.user import User, UserRole
from portal.orm.course import Course
from portal.orm.facility import Building, Room
from portal.orm.semester import Semester, Term
from portal.orm.scheduled_course import ScheduledCourse
from portal.orm.registration import Registration, RegistrationStatus, ACTIVE_STATUSES
from portal.orm.course_material import CourseMaterial, MaterialType
from portal.orm.assessment import Assessment, StudentAssessmentScore
from portal.orm.announcement import Announcement, TargetAudience, AnnouncementStatus
from portal.orm.audit_log import AuditLogEntry

__all__ = [
    "Base", "BaseModel", "new_id", "utcnow",
    "Department", "User", "UserRole", "Course", "Building", "Room",
    "Semester", "Term", "ScheduledCourse",
    "Registration", "RegistrationStatus", "ACTIVE_STATUSES",
    "CourseMaterial", "MaterialType",
    "Assessment", "StudentAssessmentScore",
    "Announcement", "TargetAudience", "AnnouncementStatus",
    "AuditLogEntry",
]
