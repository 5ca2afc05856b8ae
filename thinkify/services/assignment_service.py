"""
Assignment Service - creation, listings, submission and grading
"""
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from thinkify.core.exceptions import AssignmentNotFoundError
from thinkify.core.logging_config import logger
from thinkify.models.assignment import Assignment, AssignmentSubmission
from thinkify.models.status import ItemStatus
from thinkify.models.user import User
from thinkify.schemas.assignment import (
    AssignmentCreate, GradeRequest, StudentAssignmentResponse, SubmissionCreate, SubmissionResponse,
)

# Statuses a student can see
STUDENT_VISIBLE_STATUSES = (ItemStatus.ACTIVE, ItemStatus.EXPIRED)


class AssignmentService:
    """Assignment aggregate persistence"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ========== Teacher side ==========

    async def create(self, teacher: User, data: AssignmentCreate) -> Assignment:
        assignment = Assignment(
            **data.model_dump(exclude={"resources"}),
            resources=[r.model_dump(mode="json", exclude_none=True) for r in data.resources],
            created_by=str(teacher.id),
            creator=teacher,
        )
        self.db.add(assignment)
        await self.db.commit()

        logger.info(
            f"Assignment created: {assignment.id}",
            extra={"event_type": "assignment_created", "assignment_id": str(assignment.id)},
        )
        return assignment

    async def list_for_teacher(self, teacher_id: str, status: Optional[ItemStatus] = None,
                               limit: Optional[int] = None) -> List[Assignment]:
        query = select(Assignment).where(Assignment.created_by == str(teacher_id))
        if status is not None:
            query = query.where(Assignment.status == status)
        query = query.order_by(Assignment.created_at.desc())
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_for_teacher(self, teacher_id: str, status: Optional[ItemStatus] = None) -> int:
        query = select(func.count(Assignment.id)).where(Assignment.created_by == str(teacher_id))
        if status is not None:
            query = query.where(Assignment.status == status)
        return (await self.db.execute(query)).scalar() or 0

    async def get_for_teacher(self, assignment_id: str, teacher_id: str) -> Assignment:
        """Assignment owned by the teacher, 404 otherwise"""
        result = await self.db.execute(
            select(Assignment).where(
                Assignment.id == str(assignment_id),
                Assignment.created_by == str(teacher_id),
            )
        )
        assignment = result.scalar_one_or_none()
        if not assignment:
            raise AssignmentNotFoundError(assignment_id)
        return assignment

    async def change_status(self, assignment_id: str, teacher_id: str, new_status: str) -> Assignment:
        assignment = await self.get_for_teacher(assignment_id, teacher_id)
        assignment.refresh_status()
        assignment.transition_to(new_status)
        await self.db.commit()
        return assignment

    async def grade(self, assignment_id: str, teacher: User, student_id: str,
                    data: GradeRequest) -> AssignmentSubmission:
        assignment = await self.get_for_teacher(assignment_id, str(teacher.id))
        submission = assignment.grade_submission(student_id, data.marks, data.feedback, teacher.id)
        await self.db.commit()

        logger.info(
            f"Submission graded: assignment={assignment.id} student={student_id} marks={data.marks}",
            extra={"event_type": "submission_graded", "assignment_id": str(assignment.id)},
        )
        return submission

    # ========== Student side ==========

    async def list_for_student(self, student: User) -> List[Assignment]:
        result = await self.db.execute(
            select(Assignment)
            .where(Assignment.status.in_(STUDENT_VISIBLE_STATUSES))
            .order_by(Assignment.deadline.asc())
        )
        return [a for a in result.scalars().all() if a.is_visible_to(student.id)]

    async def get_for_student(self, assignment_id: str, student: User) -> Assignment:
        """Assignment visible to the student, 404 otherwise"""
        result = await self.db.execute(
            select(Assignment).where(
                Assignment.id == str(assignment_id),
                Assignment.status.in_(STUDENT_VISIBLE_STATUSES),
            )
        )
        assignment = result.scalar_one_or_none()
        if not assignment or not assignment.is_visible_to(student.id):
            raise AssignmentNotFoundError(assignment_id)
        return assignment

    async def submit(self, assignment_id: str, student: User, data: SubmissionCreate) -> AssignmentSubmission:
        assignment = await self.get_for_student(assignment_id, student)
        submission = assignment.add_submission(
            student.id,
            data.content,
            [a.model_dump(mode="json", exclude_none=True) for a in data.attachments],
        )
        submission.student = student
        await self.db.commit()

        logger.info(
            f"Submission received: assignment={assignment.id} late={submission.is_late}",
            extra={"event_type": "submission_created", "assignment_id": str(assignment.id)},
        )
        return submission


def student_view(assignment: Assignment, student_id: str) -> StudentAssignmentResponse:
    """Assignment as shown to one student: only their own submissions"""
    view = StudentAssignmentResponse.model_validate(assignment)
    view.my_submissions = [
        SubmissionResponse.model_validate(s) for s in assignment.get_student_submissions(student_id)
    ]
    view.can_submit = assignment.can_student_submit(student_id)
    return view
