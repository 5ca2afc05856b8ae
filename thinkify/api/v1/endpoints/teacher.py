"""
Teacher routes: dashboard, assignments, polls and the student directory.

Every route is restricted to teachers; the ``-alt`` routes also admit admins.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from thinkify.api.errors import CONTROLLER_FAILURES, controller_failure
from thinkify.core.database import get_db
from thinkify.core.responses import success_response
from thinkify.models.status import ItemStatus
from thinkify.models.user import User
from thinkify.modules.auth.dependencies import teacher_only, teacher_or_admin
from thinkify.schemas.assignment import AssignmentCreate, AssignmentResponse, GradeRequest, SubmissionResponse
from thinkify.schemas.auth import StudentResponse
from thinkify.schemas.common import StatusUpdate
from thinkify.schemas.poll import PollCreate, PollResponse
from thinkify.services.assignment_service import AssignmentService
from thinkify.services.dashboard_service import build_teacher_dashboard
from thinkify.services.poll_service import PollService
from thinkify.services.user_service import UserService

router = APIRouter()


# ========== Dashboard ==========

async def _dashboard(db: AsyncSession, user: User):
    try:
        data = await build_teacher_dashboard(db, user)
    except CONTROLLER_FAILURES as e:
        return await controller_failure(db, "Internal Server Error", e, "Failed to load dashboard", "teacher_dashboard")
    return success_response("Teacher dashboard data retrieved successfully", data)


@router.get("/dashboard")
async def get_teacher_dashboard(
    teacher: User = Depends(teacher_only),
    db: AsyncSession = Depends(get_db)
):
    return await _dashboard(db, teacher)


@router.get("/dashboard-alt")
async def get_teacher_dashboard_alt(
    user: User = Depends(teacher_or_admin),
    db: AsyncSession = Depends(get_db)
):
    """Dashboard open to teachers and admins"""
    return await _dashboard(db, user)


# ========== Assignments ==========

async def _create_assignment(db: AsyncSession, user: User, data: AssignmentCreate):
    try:
        assignment = await AssignmentService(db).create(user, data)
    except CONTROLLER_FAILURES as e:
        return await controller_failure(
            db, "Failed to create assignment", e, "Assignment creation failed", "create_assignment"
        )
    return success_response(
        "Assignment created successfully",
        AssignmentResponse.model_validate(assignment),
        status.HTTP_201_CREATED,
    )


@router.post("/assignments", status_code=status.HTTP_201_CREATED)
async def create_assignment(
    data: AssignmentCreate,
    teacher: User = Depends(teacher_only),
    db: AsyncSession = Depends(get_db)
):
    return await _create_assignment(db, teacher, data)


@router.post("/assignments-alt", status_code=status.HTTP_201_CREATED)
async def create_assignment_alt(
    data: AssignmentCreate,
    user: User = Depends(teacher_or_admin),
    db: AsyncSession = Depends(get_db)
):
    return await _create_assignment(db, user, data)


@router.get("/assignments")
async def get_teacher_assignments(
    status_filter: Optional[ItemStatus] = Query(None, alias="status"),
    teacher: User = Depends(teacher_only),
    db: AsyncSession = Depends(get_db)
):
    """Assignments created by the teacher, newest first"""
    try:
        assignments = await AssignmentService(db).list_for_teacher(str(teacher.id), status_filter)
    except CONTROLLER_FAILURES as e:
        return await controller_failure(
            db, "Failed to retrieve assignments", e, "Failed to load assignments", "list_assignments"
        )
    return success_response(
        "Assignments retrieved successfully",
        [AssignmentResponse.model_validate(a) for a in assignments],
    )


@router.get("/assignments/{assignment_id}")
async def get_assignment_by_id(
    assignment_id: str,
    teacher: User = Depends(teacher_only),
    db: AsyncSession = Depends(get_db)
):
    assignment = await AssignmentService(db).get_for_teacher(assignment_id, str(teacher.id))
    return success_response("Assignment retrieved successfully", AssignmentResponse.model_validate(assignment))


@router.patch("/assignments/{assignment_id}/status")
async def update_assignment_status(
    assignment_id: str,
    body: StatusUpdate,
    teacher: User = Depends(teacher_only),
    db: AsyncSession = Depends(get_db)
):
    service = AssignmentService(db)
    try:
        assignment = await service.change_status(assignment_id, str(teacher.id), body.status)
    except CONTROLLER_FAILURES as e:
        return await controller_failure(
            db, "Failed to update assignment status", e, "Status update failed", "assignment_status"
        )
    return success_response("Assignment status updated successfully", AssignmentResponse.model_validate(assignment))


@router.put("/assignments/{assignment_id}/grade/{student_id}")
async def grade_assignment(
    assignment_id: str,
    student_id: str,
    body: GradeRequest,
    teacher: User = Depends(teacher_only),
    db: AsyncSession = Depends(get_db)
):
    """Grade the student's latest submission"""
    try:
        submission = await AssignmentService(db).grade(assignment_id, teacher, student_id, body)
    except CONTROLLER_FAILURES as e:
        return await controller_failure(db, "Failed to grade assignment", e, "Grading failed", "grade_assignment")
    return success_response("Assignment graded successfully", SubmissionResponse.model_validate(submission))


# ========== Polls ==========

async def _create_poll(db: AsyncSession, user: User, data: PollCreate):
    try:
        poll = await PollService(db).create(user, data)
    except CONTROLLER_FAILURES as e:
        return await controller_failure(db, "Failed to create poll", e, "Poll creation failed", "create_poll")
    return success_response("Poll created successfully", PollResponse.model_validate(poll), status.HTTP_201_CREATED)


@router.post("/polls", status_code=status.HTTP_201_CREATED)
async def create_poll(
    data: PollCreate,
    teacher: User = Depends(teacher_only),
    db: AsyncSession = Depends(get_db)
):
    return await _create_poll(db, teacher, data)


@router.post("/polls-alt", status_code=status.HTTP_201_CREATED)
async def create_poll_alt(
    data: PollCreate,
    user: User = Depends(teacher_or_admin),
    db: AsyncSession = Depends(get_db)
):
    return await _create_poll(db, user, data)


@router.get("/polls")
async def get_teacher_polls(
    status_filter: Optional[ItemStatus] = Query(None, alias="status"),
    teacher: User = Depends(teacher_only),
    db: AsyncSession = Depends(get_db)
):
    try:
        polls = await PollService(db).list_for_creator(str(teacher.id), status_filter)
    except CONTROLLER_FAILURES as e:
        return await controller_failure(db, "Failed to retrieve polls", e, "Failed to load polls", "list_polls")
    return success_response("Polls retrieved successfully", [PollResponse.model_validate(p) for p in polls])


@router.get("/polls/{poll_id}")
async def get_poll_by_id(
    poll_id: str,
    teacher: User = Depends(teacher_only),
    db: AsyncSession = Depends(get_db)
):
    """Poll with unrestricted results for its creator"""
    poll = await PollService(db).get_for_creator(poll_id, str(teacher.id))
    return success_response(
        "Poll retrieved successfully",
        {"poll": PollResponse.model_validate(poll), "results": poll.get_results()},
    )


@router.patch("/polls/{poll_id}/status")
async def update_poll_status(
    poll_id: str,
    body: StatusUpdate,
    teacher: User = Depends(teacher_only),
    db: AsyncSession = Depends(get_db)
):
    try:
        poll = await PollService(db).change_status(poll_id, str(teacher.id), body.status)
    except CONTROLLER_FAILURES as e:
        return await controller_failure(db, "Failed to update poll status", e, "Status update failed", "poll_status")
    return success_response("Poll status updated successfully", PollResponse.model_validate(poll))


# ========== Students ==========

@router.get("/students")
async def get_students(
    teacher: User = Depends(teacher_only),
    db: AsyncSession = Depends(get_db)
):
    """All students, by name"""
    try:
        students = await UserService(db).list_students()
    except CONTROLLER_FAILURES as e:
        return await controller_failure(db, "Failed to retrieve students", e, "Failed to load students", "list_students")
    return success_response("Students retrieved successfully", [StudentResponse.model_validate(s) for s in students])
