from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from thinkify.api.errors import CONTROLLER_FAILURES, controller_failure
from thinkify.core.database import get_db
from thinkify.core.roles import Permission, UserRole
from thinkify.core.responses import success_response
from thinkify.models.user import User
from thinkify.modules.auth.dependencies import role_based_auth, student_only
from thinkify.schemas.assignment import SubmissionCreate, SubmissionResponse
from thinkify.services.assignment_service import AssignmentService, student_view

router = APIRouter()

submitting_student = role_based_auth([UserRole.STUDENT], [Permission.SUBMIT_ASSIGNMENTS])


@router.get("/assignments")
async def get_student_assignments(
    student: User = Depends(student_only),
    db: AsyncSession = Depends(get_db)
):
    """Active and expired assignments addressed to the student, soonest deadline first"""
    try:
        assignments = await AssignmentService(db).list_for_student(student)
    except CONTROLLER_FAILURES as e:
        return await controller_failure(
            db, "Failed to retrieve assignments", e, "Failed to load assignments", "student_assignments"
        )
    return success_response(
        "Assignments retrieved successfully",
        [student_view(a, str(student.id)) for a in assignments],
    )


@router.get("/assignments/{assignment_id}")
async def get_student_assignment(
    assignment_id: str,
    student: User = Depends(student_only),
    db: AsyncSession = Depends(get_db)
):
    assignment = await AssignmentService(db).get_for_student(assignment_id, student)
    return success_response("Assignment retrieved successfully", student_view(assignment, str(student.id)))


@router.post("/assignments/{assignment_id}/submit", status_code=status.HTTP_201_CREATED)
async def submit_assignment(
    assignment_id: str,
    body: SubmissionCreate,
    student: User = Depends(submitting_student),
    db: AsyncSession = Depends(get_db)
):
    try:
        submission = await AssignmentService(db).submit(assignment_id, student, body)
    except CONTROLLER_FAILURES as e:
        return await controller_failure(db, "Failed to submit assignment", e, "Submission failed", "submit_assignment")
    return success_response(
        "Assignment submitted successfully",
        SubmissionResponse.model_validate(submission),
        status.HTTP_201_CREATED,
    )
