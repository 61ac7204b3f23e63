"""
portal/orm/semester.py
Academic terms with registration and add/drop windows
"""
from enum import Enum

from sqlalchemy import Column, Integer, String, Date, DateTime

from portal.orm.base import BaseModel, id_factory, value_enum


class Term(str, Enum):
    SEMESTER_ONE = "Semester One"
    SEMESTER_TWO = "Semester Two"
    FALL = "Fall"
    SPRING = "Spring"
    SUMMER = "Summer"
    WINTER = "Winter"


class Semester(BaseModel):
    __tablename__ = "semesters"

    id = Column(String(64), primary_key=True, default=id_factory("sem"))
    name = Column(String(100), nullable=False, unique=True, index=True)
    academic_year = Column(Integer, nullable=False, index=True)
    term = Column(value_enum(Term), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    # Window bounds are optional; an open bound means "no restriction"
    registration_start_date = Column(DateTime, nullable=True)
    registration_end_date = Column(DateTime, nullable=True)
    add_drop_start_date = Column(DateTime, nullable=True)
    add_drop_end_date = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Semester(id='{self.id}', name='{self.name}')>"
