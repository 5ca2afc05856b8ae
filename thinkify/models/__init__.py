# Re-export all models for convenient imports
from thinkify.models.user import User
from thinkify.models.status import ItemStatus
from thinkify.models.assignment import Assignment, AssignmentSubmission, AssignmentAudience, ResourceType
from thinkify.models.poll import Poll, PollOption, PollVote, PollType, PollAudience, ShowResults

__all__ = [
    # User
    "User",
    # Lifecycle
    "ItemStatus",
    # Assignments
    "Assignment",
    "AssignmentSubmission",
    "AssignmentAudience",
    "ResourceType",
    # Polls
    "Poll",
    "PollOption",
    "PollVote",
    "PollType",
    "PollAudience",
    "ShowResults",
]
