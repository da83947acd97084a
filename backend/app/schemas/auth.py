from pydantic import EmailStr, Field, model_validator
from typing import Optional
from datetime import datetime

from app.models.user import UserRole, missing_role_fields
from app.schemas.common import RequestModel, ORMModel


def _blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


class UserRegister(RequestModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.STUDENT

    branch: Optional[str] = None
    department: Optional[str] = None
    course: Optional[str] = None

    @model_validator(mode='after')
    def validate_role_fields(self):
        """Students need branch and course; HODs need branch and department (department defaults to branch)"""
        if self.role == UserRole.ADMIN:
            raise ValueError("Admin accounts cannot be self-registered")

        missing_fields = missing_role_fields(
            self.role, {"branch": self.branch, "department": self.department, "course": self.course}
        )
        if missing_fields:
            raise ValueError(f"Required fields for {self.role.value}: {', '.join(missing_fields)}")

        if self.role == UserRole.HOD and _blank(self.department):
            self.department = self.branch
        return self


class UserLogin(RequestModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AdminBootstrap(RequestModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)


class ProfileUpdate(RequestModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)
    branch: Optional[str] = None
    department: Optional[str] = None
    course: Optional[str] = None


class UserSummary(ORMModel):
    id: str
    full_name: str
    email: str
    role: UserRole
    department: Optional[str] = None


class UserResponse(ORMModel):
    id: str
    full_name: str
    email: str
    role: UserRole
    department: Optional[str] = None
    branch: Optional[str] = None
    course: Optional[str] = None
    assigned_guide_id: Optional[str] = None
    created_at: datetime


class AuthResponse(ORMModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
