"""
portal/orm/course.py
Course catalog entries (not tied to a semester)
"""
from sqlalchemy import Column, Integer, String, Text, ForeignKey, CheckConstraint

from portal.orm.base import BaseModel, id_factory


class Course(BaseModel):
    """
    A catalog course such as CS101.

    Offerings in a given semester live in ScheduledCourse.
    """
    __tablename__ = "courses"
    __table_args__ = (
        CheckConstraint("credits > 0", name="ck_course_credits_positive"),
    )

    id = Column(String(64), primary_key=True, default=id_factory("course"))
    course_code = Column(String(32), nullable=False, unique=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    credits = Column(Integer, nullable=False)
    department_id = Column(
        String(64),
        ForeignKey("departments.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    def __repr__(self):
        return f"<Course(id='{self.id}', code='{self.course_code}')>"
