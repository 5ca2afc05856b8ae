from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from thinkify.core.database import get_db
from thinkify.core.roles import UserRole
from thinkify.core.responses import success_response
from thinkify.models.user import User
from thinkify.modules.auth.dependencies import admin_only
from thinkify.schemas.auth import UserResponse
from thinkify.services.user_service import UserService

router = APIRouter()


@router.get("/users")
async def list_users(
    role: Optional[UserRole] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db)
):
    """User directory, newest accounts first"""
    result = await UserService(db).list_users(role, page, page_size)
    result["items"] = [UserResponse.model_validate(u) for u in result["items"]]
    return success_response("Users retrieved successfully", result)


@router.get("/users/{user_id}")
async def get_user(
    user_id: str,
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db)
):
    user = await UserService(db).get_by_id(user_id)
    return success_response("User retrieved successfully", UserResponse.model_validate(user))
