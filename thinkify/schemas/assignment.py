from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

from thinkify.models.assignment import (
    AssignmentAudience, ResourceType,
    TITLE_MAX, DESCRIPTION_MAX, SUBJECT_MAX, INSTRUCTIONS_MAX, CONTENT_MAX, FEEDBACK_MAX,
    MIN_TOTAL_MARKS, MAX_TOTAL_MARKS,
)
from thinkify.models.status import ItemStatus
from thinkify.schemas.common import UserSummary, to_naive_utc


class Resource(BaseModel):
    title: Optional[str] = None
    url: Optional[str] = None
    type: Optional[ResourceType] = None


class Attachment(BaseModel):
    filename: Optional[str] = None
    original_name: Optional[str] = None
    mimetype: Optional[str] = None
    size: Optional[int] = None
    uploaded_at: Optional[datetime] = None


class AssignmentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=TITLE_MAX)
    description: str = Field(..., min_length=1, max_length=DESCRIPTION_MAX)
    subject: str = Field(..., min_length=1, max_length=SUBJECT_MAX)
    deadline: datetime
    total_marks: int = Field(..., ge=MIN_TOTAL_MARKS, le=MAX_TOTAL_MARKS)
    status: ItemStatus = ItemStatus.ACTIVE
    audience: AssignmentAudience = AssignmentAudience.ALL
    target_students: List[str] = []
    instructions: Optional[str] = Field(None, max_length=INSTRUCTIONS_MAX)
    resources: List[Resource] = []
    allow_late_submission: bool = True
    max_submissions: int = Field(1, ge=1)
    auto_grade: bool = False

    @field_validator('deadline')
    @classmethod
    def normalize_deadline(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @field_validator('title', 'description', 'subject')
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()


class GradeRequest(BaseModel):
    marks: float = Field(..., ge=0)
    feedback: Optional[str] = Field(None, max_length=FEEDBACK_MAX)


class SubmissionCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=CONTENT_MAX)
    attachments: List[Attachment] = []


class SubmissionResponse(BaseModel):
    id: str
    student_id: str
    student: Optional[UserSummary] = None
    submitted_at: datetime
    content: str
    attachments: List[Attachment] = []
    marks: Optional[float] = None
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None
    graded_by: Optional[str] = None
    is_late: bool

    class Config:
        from_attributes = True


class AssignmentSummary(BaseModel):
    """Assignment fields without submissions"""
    id: str
    title: str
    description: str
    subject: str
    deadline: datetime
    total_marks: int
    status: ItemStatus
    audience: AssignmentAudience
    instructions: Optional[str] = None
    resources: List[Resource] = []
    allow_late_submission: bool
    max_submissions: int
    auto_grade: bool
    created_by: str
    creator: Optional[UserSummary] = None
    submission_count: int
    is_expired: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AssignmentResponse(AssignmentSummary):
    """Creator's view, with every submission"""
    target_students: List[str] = []
    submissions: List[SubmissionResponse] = []


class StudentAssignmentResponse(AssignmentSummary):
    """Student's view, limited to their own submissions"""
    my_submissions: List[SubmissionResponse] = []
    can_submit: bool = False
