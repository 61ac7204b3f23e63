"""
portal/schemas/catalog_schemas.py
Departments, courses, buildings, rooms and semesters
"""
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from portal.orm.semester import Term
from portal.schemas.common import to_naive_utc


# ---------------------------------------------------------------------------
# Departments
# ---------------------------------------------------------------------------

class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None


class DepartmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------

class CourseCreate(BaseModel):
    course_code: str = Field(..., min_length=1, max_length=32)
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    credits: int = Field(..., gt=0)
    department_id: str = Field(..., min_length=1)


class CourseUpdate(BaseModel):
    course_code: Optional[str] = Field(None, min_length=1, max_length=32)
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    credits: Optional[int] = Field(None, gt=0)
    department_id: Optional[str] = None


class CourseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    course_code: str
    title: str
    description: Optional[str] = None
    credits: int
    department_id: str


# ---------------------------------------------------------------------------
# Buildings & rooms
# ---------------------------------------------------------------------------

class BuildingCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    address: Optional[str] = None


class BuildingUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    address: Optional[str] = None


class BuildingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    address: Optional[str] = None


class RoomCreate(BaseModel):
    building_id: str = Field(..., min_length=1)
    room_number: str = Field(..., min_length=1, max_length=32)
    capacity: int = Field(..., ge=0)
    type: Optional[str] = None


class RoomUpdate(BaseModel):
    building_id: Optional[str] = None
    room_number: Optional[str] = Field(None, min_length=1, max_length=32)
    capacity: Optional[int] = Field(None, ge=0)
    type: Optional[str] = None


class RoomResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    building_id: str
    building_name: Optional[str] = None
    room_number: str
    capacity: int
    type: Optional[str] = None


# ---------------------------------------------------------------------------
# Semesters
# ---------------------------------------------------------------------------

class SemesterBase(BaseModel):
    registration_start_date: Optional[datetime] = None
    registration_end_date: Optional[datetime] = None
    add_drop_start_date: Optional[datetime] = None
    add_drop_end_date: Optional[datetime] = None

    @field_validator(
        "registration_start_date", "registration_end_date",
        "add_drop_start_date", "add_drop_end_date",
    )
    @classmethod
    def normalize_window(cls, v):
        return to_naive_utc(v)


class SemesterCreate(SemesterBase):
    name: str = Field(..., min_length=1, max_length=100)
    academic_year: int = Field(..., ge=1900, le=3000)
    term: Term
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class SemesterUpdate(SemesterBase):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    academic_year: Optional[int] = Field(None, ge=1900, le=3000)
    term: Optional[Term] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class SemesterResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    academic_year: int
    term: Term
    start_date: date
    end_date: date
    registration_start_date: Optional[datetime] = None
    registration_end_date: Optional[datetime] = None
    add_drop_start_date: Optional[datetime] = None
    add_drop_end_date: Optional[datetime] = None
