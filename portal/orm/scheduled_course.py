"""
portal/orm/scheduled_course.py
Course offerings: one section of a catalog course in a semester
"""
from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, CheckConstraint

from portal.orm.base import BaseModel, id_factory


class ScheduledCourse(BaseModel):
    """
    A section of a course taught in a semester.

    current_enrollment is a denormalised counter of Registered
    registrations. It is only changed by portal.services.enrollment_service.
    """
    __tablename__ = "scheduled_courses"
    __table_args__ = (
        UniqueConstraint("course_id", "semester_id", "section_number", name="uq_scheduled_course_section"),
        CheckConstraint("max_capacity >= 0", name="ck_scheduled_course_capacity"),
        CheckConstraint("current_enrollment >= 0", name="ck_scheduled_course_enrollment"),
    )

    scheduled_course_id = Column(String(64), primary_key=True, default=id_factory("sc"))
    course_id = Column(String(64), ForeignKey("courses.id", ondelete="RESTRICT"), nullable=False, index=True)
    semester_id = Column(String(64), ForeignKey("semesters.id", ondelete="RESTRICT"), nullable=False, index=True)
    teacher_id = Column(String(64), ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False, index=True)
    room_id = Column(String(64), ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True)

    section_number = Column(String(16), nullable=False)
    max_capacity = Column(Integer, nullable=False)
    current_enrollment = Column(Integer, nullable=False, default=0)

    days_of_week = Column(String(32), nullable=True)
    start_time = Column(String(8), nullable=True)
    end_time = Column(String(8), nullable=True)

    @property
    def is_full(self) -> bool:
        return self.current_enrollment >= self.max_capacity

    def __repr__(self):
        return (
            f"<ScheduledCourse(id='{self.scheduled_course_id}', "
            f"enrolled={self.current_enrollment}/{self.max_capacity})>"
        )
