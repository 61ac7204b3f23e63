"""
portal/orm/user.py
Portal user accounts for every role
"""
from enum import Enum

from sqlalchemy import Column, String, Boolean, Date, DateTime, ForeignKey

from portal.orm.base import BaseModel, utcnow, value_enum


class UserRole(str, Enum):
    STUDENT = "Student"
    TEACHER = "Teacher"
    STAFF_HEAD = "Staff Head"
    ADMIN = "Admin"


class User(BaseModel):
    """
    A portal account.

    user_id equals username, so ids read naturally in rosters and logs
    ("stud1", "teacher-2"). Role-specific attributes are nullable columns
    on the same table:
    - Student: department, enrollment_date, date_of_birth, address
    - Teacher: department, office_location
    - Staff Head / Admin: job_title
    """
    __tablename__ = "users"

    user_id = Column(String(64), primary_key=True)
    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    role = Column(value_enum(UserRole), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    date_joined = Column(DateTime, default=utcnow, nullable=False)
    last_login = Column(DateTime, nullable=True)

    department_id = Column(
        String(64),
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    enrollment_date = Column(Date, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    address = Column(String(255), nullable=True)
    phone_number = Column(String(32), nullable=True)
    office_location = Column(String(120), nullable=True)
    job_title = Column(String(120), nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<User(user_id='{self.user_id}', role='{self.role.value if self.role else None}')>"
