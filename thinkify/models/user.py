from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Text, JSON
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import validates
from datetime import datetime

from thinkify.core.database import Base
from thinkify.core.exceptions import ValidationError
from thinkify.core.roles import UserRole, default_permissions, has_permissions
from thinkify.core.types import GUID, generate_uuid


class User(Base):
    """User model"""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    role = Column(SQLEnum(UserRole), nullable=False, index=True)

    # Role-specific fields
    department = Column(String(255), nullable=True)  # required for teachers
    student_id = Column(String(100), unique=True, nullable=True)  # required for students
    teacher_id = Column(String(100), unique=True, nullable=True)  # required for teachers

    # Fine-grained capabilities, defaulted from role at creation
    permissions = Column(MutableList.as_mutable(JSON), nullable=False, default=list)

    image = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __init__(self, **kwargs):
        role = kwargs.get("role")
        if kwargs.get("permissions") is None:
            kwargs["permissions"] = default_permissions(role)
        kwargs.setdefault("is_active", True)
        now = datetime.utcnow()
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        super().__init__(**kwargs)

    @validates("email")
    def normalize_email(self, key, value):
        return value.strip().lower() if value else value

    @validates("role")
    def guard_role(self, key, value):
        if isinstance(value, str) and not isinstance(value, UserRole):
            try:
                value = UserRole(value)
            except ValueError:
                raise ValidationError(f"Invalid role: {value}", field="role")
        current = self.role
        if current is not None and value != current and self.permissions:
            raise ValidationError("Role cannot be changed once permissions are assigned", field="role")
        return value

    def has_permissions(self, required) -> bool:
        return has_permissions(self.role, self.permissions, required)

    def validate(self) -> None:
        """Raise ValidationError when required or role-specific fields are missing"""
        if not self.full_name or not self.full_name.strip():
            raise ValidationError("Full name is required", field="full_name")
        if not self.email:
            raise ValidationError("Email is required", field="email")
        if self.role is None:
            raise ValidationError("Role is required", field="role")
        if self.role == UserRole.STUDENT and not self.student_id:
            raise ValidationError("Student ID is required for students", field="student_id")
        if self.role == UserRole.TEACHER:
            if not self.department:
                raise ValidationError("Department is required for teachers", field="department")
            if not self.teacher_id:
                raise ValidationError("Teacher ID is required for teachers", field="teacher_id")

    def before_save(self) -> None:
        self.validate()
        self.updated_at = datetime.utcnow()

    def __repr__(self):
        return f"<User {self.email}>"
