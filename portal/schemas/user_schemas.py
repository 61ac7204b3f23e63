"""
portal/schemas/user_schemas.py
Request/Response schemas for portal users
"""
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from portal.config import settings
from portal.orm.user import UserRole


class UserCreate(BaseModel):
    """Request to create a user. The initial password defaults to the username."""
    username: str = Field(..., min_length=1, max_length=64)
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: UserRole
    password: Optional[str] = Field(None, min_length=settings.MIN_PASSWORD_LENGTH)
    is_active: bool = True
    department_id: Optional[str] = None
    office_location: Optional[str] = None
    job_title: Optional[str] = None
    enrollment_date: Optional[date] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    phone_number: Optional[str] = None


class UserUpdate(BaseModel):
    """
    Profile update. user_id, username and role are immutable, so
    they are not part of the schema and are ignored if sent.
    """
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    is_active: Optional[bool] = None
    department_id: Optional[str] = None
    office_location: Optional[str] = None
    job_title: Optional[str] = None
    enrollment_date: Optional[date] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    phone_number: Optional[str] = None


class UserResponse(BaseModel):
    """User without password hash"""
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    username: str
    email: str
    role: UserRole
    first_name: str
    last_name: str
    is_active: bool
    date_joined: Optional[datetime] = None
    last_login: Optional[datetime] = None
    department_id: Optional[str] = None
    department_name: Optional[str] = None
    office_location: Optional[str] = None
    job_title: Optional[str] = None
    enrollment_date: Optional[date] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    phone_number: Optional[str] = None
