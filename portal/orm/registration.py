"""
portal/orm/registration.py
Student registrations in scheduled courses
"""
from enum import Enum

from sqlalchemy import Column, String, Float, DateTime, ForeignKey

from portal.orm.base import BaseModel, id_factory, utcnow, value_enum


class RegistrationStatus(str, Enum):
    REGISTERED = "Registered"
    DROPPED = "Dropped"
    COMPLETED = "Completed"
    WAITLISTED = "Waitlisted"


# Statuses that block a second registration for the same section
ACTIVE_STATUSES = (RegistrationStatus.REGISTERED, RegistrationStatus.WAITLISTED)


class Registration(BaseModel):
    __tablename__ = "registrations"

    registration_id = Column(String(64), primary_key=True, default=id_factory("reg"))
    student_id = Column(String(64), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    scheduled_course_id = Column(
        String(64),
        ForeignKey("scheduled_courses.scheduled_course_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    registration_date = Column(DateTime, default=utcnow, nullable=False)
    status = Column(value_enum(RegistrationStatus), nullable=False, default=RegistrationStatus.REGISTERED, index=True)

    final_grade = Column(String(4), nullable=True)
    grade_points = Column(Float, nullable=True)

    def __repr__(self):
        return f"<Registration(id='{self.registration_id}', student='{self.student_id}', status='{self.status}')>"
