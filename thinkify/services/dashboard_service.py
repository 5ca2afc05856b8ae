"""Teacher dashboard aggregation"""
from sqlalchemy.ext.asyncio import AsyncSession

from thinkify.core.config import settings
from thinkify.core.roles import UserRole
from thinkify.models.status import ItemStatus
from thinkify.models.user import User
from thinkify.schemas.assignment import AssignmentResponse
from thinkify.schemas.poll import PollResponse
from thinkify.services.assignment_service import AssignmentService
from thinkify.services.poll_service import PollService
from thinkify.services.user_service import UserService


async def build_teacher_dashboard(db: AsyncSession, teacher: User) -> dict:
    """Counts and recent items for the signed-in creator"""
    assignments = AssignmentService(db)
    polls = PollService(db)
    teacher_id = str(teacher.id)
    limit = settings.RECENT_ITEMS_LIMIT

    recent_assignments = await assignments.list_for_teacher(teacher_id, limit=limit)
    recent_polls = await polls.list_for_creator(teacher_id, limit=limit)

    return {
        "teacher": {
            "name": teacher.full_name,
            "email": teacher.email,
            "department": teacher.department,
        },
        "stats": {
            "total_assignments": await assignments.count_for_teacher(teacher_id),
            "active_assignments": await assignments.count_for_teacher(teacher_id, ItemStatus.ACTIVE),
            "total_polls": await polls.count_for_creator(teacher_id),
            "active_polls": await polls.count_for_creator(teacher_id, ItemStatus.ACTIVE),
            # All students in the system, not only those reached
            "students_count": await UserService(db).count_by_role(UserRole.STUDENT),
        },
        "recent_assignments": [AssignmentResponse.model_validate(a) for a in recent_assignments],
        "recent_polls": [PollResponse.model_validate(p) for p in recent_polls],
    }
