from fastapi import APIRouter

from thinkify.api.v1.endpoints import admin, health, polls, student, teacher, users

api_router = APIRouter()

api_router.include_router(health.router)


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check endpoint for load balancer"""
    return {"status": "healthy", "service": "thinkify-api"}


api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(teacher.router, prefix="/teacher", tags=["Teacher"])
api_router.include_router(student.router, prefix="/student", tags=["Student"])
api_router.include_router(polls.router, prefix="/polls", tags=["Polls"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
