from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import List, Optional
from datetime import datetime

from thinkify.core.roles import UserRole

# Roles that can sign themselves up; admins are provisioned out of band
SELF_SERVICE_ROLES = (UserRole.STUDENT, UserRole.TEACHER)


class UserRegister(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.STUDENT

    # Role-specific details
    student_id: Optional[str] = None
    department: Optional[str] = None
    teacher_id: Optional[str] = None
    image: Optional[str] = None

    @model_validator(mode='after')
    def validate_role_fields(self):
        """Validate required fields for the chosen role"""
        if self.role not in SELF_SERVICE_ROLES:
            raise ValueError(f"Registration is open to: {', '.join(r.value for r in SELF_SERVICE_ROLES)}")

        missing_fields = []
        if self.role == UserRole.STUDENT:
            if not self.student_id or not self.student_id.strip():
                missing_fields.append('Student ID')
        if self.role == UserRole.TEACHER:
            if not self.department or not self.department.strip():
                missing_fields.append('Department')
            if not self.teacher_id or not self.teacher_id.strip():
                missing_fields.append('Teacher ID')

        if missing_fields:
            raise ValueError(f"Required fields for {self.role.value}s: {', '.join(missing_fields)}")

        return self


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: str
    full_name: str
    email: str
    role: UserRole
    department: Optional[str] = None
    student_id: Optional[str] = None
    teacher_id: Optional[str] = None
    permissions: List[str] = []
    image: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class StudentResponse(BaseModel):
    """Directory entry shown to teachers"""
    id: str
    full_name: str
    email: str
    student_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AuthData(BaseModel):
    token: str
    user: UserResponse


class TokenStatus(BaseModel):
    valid: bool
    user: UserResponse
