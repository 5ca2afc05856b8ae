from sqlalchemy import (
    Column, String, Integer, Float, Text, Boolean, DateTime, ForeignKey, JSON, Index, Enum as SQLEnum,
)
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import relationship
from datetime import datetime
from typing import Dict, List, Optional
import enum

from thinkify.core.database import Base
from thinkify.core.exceptions import SubmissionError, SubmissionNotFoundError, ValidationError
from thinkify.core.types import GUID, generate_uuid
from thinkify.models.status import DeadlineLifecycleMixin, ItemStatus


class AssignmentAudience(str, enum.Enum):
    """Who an assignment is handed out to"""
    ALL = "all"
    SPECIFIC = "specific"


class ResourceType(str, enum.Enum):
    LINK = "link"
    FILE = "file"
    VIDEO = "video"
    DOCUMENT = "document"


# Column limits
TITLE_MAX = 200
DESCRIPTION_MAX = 2000
SUBJECT_MAX = 100
INSTRUCTIONS_MAX = 3000
CONTENT_MAX = 5000
FEEDBACK_MAX = 1000
MIN_TOTAL_MARKS = 1
MAX_TOTAL_MARKS = 1000


class Assignment(DeadlineLifecycleMixin, Base):
    """Assignment model with its submissions loaded as one aggregate"""
    __tablename__ = "assignments"

    __table_args__ = (
        Index('ix_assignments_creator_status', 'created_by', 'status'),
        Index('ix_assignments_deadline', 'deadline'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(TITLE_MAX), nullable=False)
    description = Column(String(DESCRIPTION_MAX), nullable=False)
    subject = Column(String(SUBJECT_MAX), nullable=False)
    deadline = Column(DateTime, nullable=False)
    total_marks = Column(Integer, nullable=False)
    status = Column(SQLEnum(ItemStatus), default=ItemStatus.ACTIVE, nullable=False)

    audience = Column(SQLEnum(AssignmentAudience), default=AssignmentAudience.ALL, nullable=False)
    target_students = Column(MutableList.as_mutable(JSON), nullable=False, default=list)  # user ids
    created_by = Column(GUID, ForeignKey("users.id"), nullable=False)

    instructions = Column(Text, nullable=True)
    resources = Column(MutableList.as_mutable(JSON), nullable=False, default=list)  # [{title, url, type}]

    # Settings
    allow_late_submission = Column(Boolean, default=True, nullable=False)
    max_submissions = Column(Integer, default=1, nullable=False)
    auto_grade = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    creator = relationship("User", lazy="selectin")
    submissions = relationship(
        "AssignmentSubmission",
        back_populates="assignment",
        cascade="all, delete-orphan",
        order_by="AssignmentSubmission.submitted_at",
        lazy="selectin",
    )

    def __init__(self, **kwargs):
        kwargs.setdefault("status", ItemStatus.ACTIVE)
        kwargs.setdefault("audience", AssignmentAudience.ALL)
        kwargs.setdefault("target_students", [])
        kwargs.setdefault("resources", [])
        kwargs.setdefault("allow_late_submission", True)
        kwargs.setdefault("max_submissions", 1)
        kwargs.setdefault("auto_grade", False)
        kwargs.setdefault("submissions", [])
        now = datetime.utcnow()
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        super().__init__(**kwargs)

    @property
    def submission_count(self) -> int:
        return len(self.submissions)

    def _submissions_by_student(self) -> Dict[str, List["AssignmentSubmission"]]:
        index: Dict[str, List[AssignmentSubmission]] = {}
        for submission in self.submissions:
            index.setdefault(str(submission.student_id), []).append(submission)
        return index

    def get_student_submissions(self, student_id) -> List["AssignmentSubmission"]:
        return self._submissions_by_student().get(str(student_id), [])

    def get_student_submission(self, student_id) -> Optional["AssignmentSubmission"]:
        """Latest submission from a student, if any"""
        submissions = self.get_student_submissions(student_id)
        return submissions[-1] if submissions else None

    def is_visible_to(self, student_id) -> bool:
        if self.audience == AssignmentAudience.ALL:
            return True
        return str(student_id) in {str(s) for s in self.target_students or []}

    def can_student_submit(self, student_id) -> bool:
        if len(self.get_student_submissions(student_id)) >= self.max_submissions:
            return False
        return self.status == ItemStatus.ACTIVE or (
            self.allow_late_submission and self.status == ItemStatus.EXPIRED
        )

    def add_submission(self, student_id, content: str, attachments=None) -> "AssignmentSubmission":
        self.refresh_status()
        if not self.can_student_submit(student_id):
            raise SubmissionError("Student cannot submit to this assignment")
        if not content or not content.strip():
            raise SubmissionError("Submission content is required")
        if len(content) > CONTENT_MAX:
            raise SubmissionError(f"Submission content exceeds {CONTENT_MAX} characters")

        submission = AssignmentSubmission(
            student_id=str(student_id),
            content=content,
            attachments=list(attachments or []),
            is_late=self.is_expired,
        )
        self.submissions.append(submission)
        self.touch()
        return submission

    def grade_submission(self, student_id, marks: float, feedback: Optional[str], grader_id):
        submission = self.get_student_submission(student_id)
        if submission is None:
            raise SubmissionNotFoundError(str(student_id))
        self._check_marks(marks)
        if feedback is not None and len(feedback) > FEEDBACK_MAX:
            raise ValidationError(f"Feedback exceeds {FEEDBACK_MAX} characters", field="feedback")

        submission.marks = marks
        submission.feedback = feedback
        submission.graded_by = str(grader_id)
        submission.graded_at = datetime.utcnow()
        self.touch()
        return submission

    def _check_marks(self, marks) -> None:
        if marks is None:
            return
        if marks < 0:
            raise ValidationError("Marks cannot be negative", field="marks")
        if marks > self.total_marks:
            raise ValidationError("Marks cannot exceed total marks", field="marks")

    def validate(self) -> None:
        if not self.title or not self.title.strip():
            raise ValidationError("Title is required", field="title")
        if len(self.title) > TITLE_MAX:
            raise ValidationError(f"Title exceeds {TITLE_MAX} characters", field="title")
        if not self.description or not self.description.strip():
            raise ValidationError("Description is required", field="description")
        if len(self.description) > DESCRIPTION_MAX:
            raise ValidationError(f"Description exceeds {DESCRIPTION_MAX} characters", field="description")
        if not self.subject or not self.subject.strip():
            raise ValidationError("Subject is required", field="subject")
        if len(self.subject) > SUBJECT_MAX:
            raise ValidationError(f"Subject exceeds {SUBJECT_MAX} characters", field="subject")
        if self.instructions and len(self.instructions) > INSTRUCTIONS_MAX:
            raise ValidationError(f"Instructions exceed {INSTRUCTIONS_MAX} characters", field="instructions")
        if self.total_marks is None or not MIN_TOTAL_MARKS <= self.total_marks <= MAX_TOTAL_MARKS:
            raise ValidationError(
                f"Total marks must be between {MIN_TOTAL_MARKS} and {MAX_TOTAL_MARKS}", field="total_marks"
            )
        if self.max_submissions is None or self.max_submissions < 1:
            raise ValidationError("Max submissions must be at least 1", field="max_submissions")
        for resource in self.resources or []:
            kind = resource.get("type")
            if kind is not None and kind not in {t.value for t in ResourceType}:
                raise ValidationError(f"Invalid resource type: {kind}", field="resources")
        self.validate_deadline()
        for submission in self.submissions:
            self._check_marks(submission.marks)

    def before_save(self) -> None:
        self.refresh_status()
        self.validate()
        self.touch()

    def __repr__(self):
        return f"<Assignment {self.title}>"


class AssignmentSubmission(Base):
    """One submission by one student"""
    __tablename__ = "assignment_submissions"

    __table_args__ = (
        Index('ix_submissions_assignment_student', 'assignment_id', 'student_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    assignment_id = Column(GUID, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(GUID, ForeignKey("users.id"), nullable=False, index=True)
    submitted_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    content = Column(String(CONTENT_MAX), nullable=False)
    attachments = Column(MutableList.as_mutable(JSON), nullable=False, default=list)

    # Grading
    marks = Column(Float, nullable=True)
    feedback = Column(String(FEEDBACK_MAX), nullable=True)
    graded_at = Column(DateTime, nullable=True)
    graded_by = Column(GUID, ForeignKey("users.id"), nullable=True)
    is_late = Column(Boolean, default=False, nullable=False)

    assignment = relationship("Assignment", back_populates="submissions")
    student = relationship("User", foreign_keys=[student_id], lazy="selectin")

    def __init__(self, **kwargs):
        kwargs.setdefault("submitted_at", datetime.utcnow())
        kwargs.setdefault("attachments", [])
        kwargs.setdefault("is_late", False)
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<AssignmentSubmission {self.student_id} -> {self.assignment_id}>"
