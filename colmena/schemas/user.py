from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID

from colmena.models.user import UserRole
from colmena.models.visit import as_utc


class UserLogin(BaseModel):
    """Schema for login request"""
    email: EmailStr = Field(..., description="Email address of the user")
    password: str = Field(..., min_length=1, description="Password for authentication (plain text)")


class UserResponse(BaseModel):
    """Schema for user response"""
    id: UUID
    name: str
    email: str
    role: UserRole
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", mode="after")
    @classmethod
    def created_at_in_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class LoginResponse(BaseModel):
    """Schema for login response with token and user info"""
    status: str = "success"
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class TokenData(BaseModel):
    """Schema for token payload data"""
    user_id: Optional[UUID] = None
    role: Optional[UserRole] = None
