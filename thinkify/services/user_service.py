"""
User Service - registration, credential checks and user directory queries
"""
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from thinkify.core.exceptions import ConflictError, UserNotFoundError
from thinkify.core.logging_config import logger
from thinkify.core.roles import UserRole
from thinkify.core.security import get_password_hash, verify_password
from thinkify.models.user import User
from thinkify.schemas.auth import UserRegister
from thinkify.utils.pagination import paginate


class UserService:
    """Account lifecycle and lookups"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: str) -> User:
        result = await self.db.execute(select(User).where(User.id == str(user_id)))
        user = result.scalar_one_or_none()
        if not user:
            raise UserNotFoundError(user_id)
        return user

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def _ensure_unique(self, data: UserRegister) -> None:
        clauses = [User.email == data.email.strip().lower()]
        if data.student_id:
            clauses.append(User.student_id == data.student_id)
        if data.teacher_id:
            clauses.append(User.teacher_id == data.teacher_id)

        result = await self.db.execute(select(User).where(or_(*clauses)))
        existing = result.scalars().first()
        if existing is None:
            return
        if existing.email == data.email.strip().lower():
            raise ConflictError("Email already registered", field="email")
        if data.student_id and existing.student_id == data.student_id:
            raise ConflictError("Student ID already registered", field="student_id")
        raise ConflictError("Teacher ID already registered", field="teacher_id")

    async def register(self, data: UserRegister) -> User:
        """Create an account; permissions default from the role"""
        await self._ensure_unique(data)

        user = User(
            full_name=data.full_name.strip(),
            email=data.email,
            hashed_password=get_password_hash(data.password),
            role=data.role,
            student_id=data.student_id if data.role == UserRole.STUDENT else None,
            department=data.department,
            teacher_id=data.teacher_id if data.role == UserRole.TEACHER else None,
            image=data.image,
        )
        self.db.add(user)
        await self.db.commit()

        logger.info(
            f"User registered: {user.email} ({user.role.value})",
            extra={"event_type": "user_registered", "user_role": user.role.value},
        )
        return user

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """User for valid credentials, None otherwise"""
        user = await self.get_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            return None
        return user

    async def list_students(self) -> List[User]:
        result = await self.db.execute(
            select(User).where(User.role == UserRole.STUDENT).order_by(User.full_name)
        )
        return list(result.scalars().all())

    async def count_by_role(self, role: UserRole) -> int:
        result = await self.db.execute(select(func.count(User.id)).where(User.role == role))
        return result.scalar() or 0

    async def list_users(self, role: Optional[UserRole] = None, page: int = 1, page_size: int = 20) -> dict:
        query = select(User).order_by(User.created_at.desc())
        if role is not None:
            query = query.where(User.role == role)
        return await paginate(self.db, query, page, page_size)
