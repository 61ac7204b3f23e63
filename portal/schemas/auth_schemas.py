"""
portal/schemas/auth_schemas.py
Login and password management payloads
"""
from pydantic import BaseModel, EmailStr, Field

from portal.config import settings
from portal.orm.user import UserRole
from portal.schemas.user_schemas import UserResponse


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    role: UserRole


class LoginResponse(BaseModel):
    success: bool = True
    message: str
    user: UserResponse
    access_token: str
    token_type: str = "bearer"


class ChangePasswordRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=settings.MIN_PASSWORD_LENGTH)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=settings.MIN_PASSWORD_LENGTH)
