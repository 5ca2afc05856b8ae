from sqlalchemy import (
    Column, String, Integer, Text, Boolean, DateTime, ForeignKey, JSON, Index, Enum as SQLEnum,
)
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import relationship
from sqlalchemy.ext.orderinglist import ordering_list
from datetime import datetime
from typing import Any, Dict, Iterable, List
import enum

from thinkify.core.database import Base
from thinkify.core.exceptions import PollVoteError, ValidationError
from thinkify.core.roles import UserRole
from thinkify.core.types import GUID, generate_uuid
from thinkify.models.status import DeadlineLifecycleMixin, ItemStatus, is_new


class PollType(str, enum.Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"


class PollAudience(str, enum.Enum):
    """Who may see and vote on a poll"""
    ALL = "all"
    STUDENTS = "students"
    TEACHERS = "teachers"
    SPECIFIC = "specific"


class ShowResults(str, enum.Enum):
    """When voters get to see the tally"""
    ALWAYS = "always"
    AFTER_VOTE = "after_vote"
    AFTER_DEADLINE = "after_deadline"


AUDIENCE_FOR_ROLE = {
    UserRole.STUDENT: PollAudience.STUDENTS,
    UserRole.TEACHER: PollAudience.TEACHERS,
}

TITLE_MAX = 200
DESCRIPTION_MAX = 1000
OPTION_TEXT_MAX = 200
CATEGORY_MAX = 50
TAG_MAX = 30
MIN_OPTIONS = 2


class Poll(DeadlineLifecycleMixin, Base):
    """Poll model with options and the voter audit log loaded as one aggregate"""
    __tablename__ = "polls"

    __table_args__ = (
        Index('ix_polls_creator_status', 'created_by', 'status'),
        Index('ix_polls_deadline', 'deadline'),
        Index('ix_polls_audience', 'audience'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(TITLE_MAX), nullable=False)
    description = Column(String(DESCRIPTION_MAX), nullable=False)
    type = Column(SQLEnum(PollType), default=PollType.SINGLE, nullable=False)
    deadline = Column(DateTime, nullable=False)
    is_anonymous = Column(Boolean, default=False, nullable=False)

    audience = Column(SQLEnum(PollAudience), default=PollAudience.ALL, nullable=False)
    target_users = Column(MutableList.as_mutable(JSON), nullable=False, default=list)  # user ids
    created_by = Column(GUID, ForeignKey("users.id"), nullable=False)

    status = Column(SQLEnum(ItemStatus), default=ItemStatus.ACTIVE, nullable=False)

    # Settings
    allow_multiple_votes = Column(Boolean, default=False, nullable=False)
    show_results = Column(SQLEnum(ShowResults), default=ShowResults.AFTER_VOTE, nullable=False)
    max_votes_per_user = Column(Integer, default=1, nullable=False)

    category = Column(String(CATEGORY_MAX), nullable=True)
    tags = Column(MutableList.as_mutable(JSON), nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    creator = relationship("User", lazy="selectin")
    options = relationship(
        "PollOption",
        back_populates="poll",
        cascade="all, delete-orphan",
        order_by="PollOption.position",
        collection_class=ordering_list("position"),
        lazy="selectin",
    )
    voters = relationship(
        "PollVote",
        back_populates="poll",
        cascade="all, delete-orphan",
        order_by="PollVote.voted_at",
        lazy="selectin",
    )

    def __init__(self, **kwargs):
        options = kwargs.pop("options", None) or []
        kwargs.setdefault("type", PollType.SINGLE)
        kwargs.setdefault("status", ItemStatus.ACTIVE)
        kwargs.setdefault("audience", PollAudience.ALL)
        kwargs.setdefault("target_users", [])
        kwargs.setdefault("is_anonymous", False)
        kwargs.setdefault("allow_multiple_votes", False)
        kwargs.setdefault("show_results", ShowResults.AFTER_VOTE)
        kwargs.setdefault("max_votes_per_user", 1)
        kwargs.setdefault("voters", [])
        kwargs.setdefault("tags", [])
        now = datetime.utcnow()
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        super().__init__(**kwargs)
        for option in options:
            self.options.append(option if isinstance(option, PollOption) else PollOption(text=option))

    # ---- derived views ----

    @property
    def total_votes(self) -> int:
        return sum(option.votes for option in self.options)

    @property
    def unique_voter_count(self) -> int:
        return len(self.voters)

    def _votes_by_user(self) -> Dict[str, List["PollVote"]]:
        index: Dict[str, List[PollVote]] = {}
        for vote in self.voters:
            index.setdefault(str(vote.user_id), []).append(vote)
        return index

    def get_user_votes(self, user_id) -> List["PollVote"]:
        return self._votes_by_user().get(str(user_id), [])

    def has_voted(self, user_id) -> bool:
        return bool(self.get_user_votes(user_id))

    def is_visible_to(self, user_id, role) -> bool:
        if self.audience == PollAudience.ALL:
            return True
        if self.audience == PollAudience.SPECIFIC:
            return str(user_id) in {str(u) for u in self.target_users or []}
        return AUDIENCE_FOR_ROLE.get(UserRole(role)) == self.audience

    # ---- voting ----

    def can_user_vote(self, user_id) -> bool:
        if self.status != ItemStatus.ACTIVE or self.is_expired:
            return False
        return len(self.get_user_votes(user_id)) < self.max_votes_per_user

    def add_vote(self, user_id, option_indexes: Iterable[int]) -> "PollVote":
        """Record one ballot.

        Rejects the ballot with PollVoteError when the poll is closed, the user
        already cast ``max_votes_per_user`` ballots, or the selection is empty or
        out of range. A ballot may name several options only on a multiple-choice
        poll with ``allow_multiple_votes`` set, so otherwise the option tallies
        always sum to the number of ballots. Repeated indexes count once.
        """
        if self.status != ItemStatus.ACTIVE or self.is_expired:
            raise PollVoteError("Poll is not open for voting")
        if not self.can_user_vote(user_id):
            raise PollVoteError("User has already used all votes on this poll")

        selected: List[int] = []
        for index in option_indexes:
            if isinstance(index, bool) or not isinstance(index, int):
                raise PollVoteError(f"Invalid option index: {index!r}")
            if index < 0 or index >= len(self.options):
                raise PollVoteError(f"Invalid option index: {index}")
            if index not in selected:
                selected.append(index)

        if not selected:
            raise PollVoteError("At least one option must be selected")
        if self.type == PollType.SINGLE and len(selected) > 1:
            raise PollVoteError("Single choice polls allow only one option")
        if len(selected) > 1 and not self.allow_multiple_votes:
            raise PollVoteError("This poll accepts one option per ballot")

        vote = PollVote(user_id=str(user_id), selected_options=selected)
        self.voters.append(vote)
        for index in selected:
            option = self.options[index]
            option.votes += 1
            if not self.is_anonymous:
                option.voters.append(str(user_id))
        self.touch()
        return vote

    def get_results(self, user_id=None) -> Dict[str, Any]:
        """Tally with one-decimal percentages, or a message while results are withheld"""
        if user_id is not None and self.show_results == ShowResults.AFTER_VOTE and not self.has_voted(user_id):
            return {"message": "Vote first to see results"}
        if self.show_results == ShowResults.AFTER_DEADLINE and not self.is_expired:
            return {"message": "Results will be available after deadline"}

        total = self.total_votes
        return {
            "total_votes": total,
            "unique_voters": self.unique_voter_count,
            "options": [
                {
                    "text": option.text,
                    "votes": option.votes,
                    "percentage": round(option.votes / total * 100, 1) if total > 0 else 0,
                    "voters": [] if self.is_anonymous else list(option.voters),
                }
                for option in self.options
            ],
        }

    # ---- persistence ----

    def validate(self) -> None:
        if not self.title or not self.title.strip():
            raise ValidationError("Title is required", field="title")
        if len(self.title) > TITLE_MAX:
            raise ValidationError(f"Title exceeds {TITLE_MAX} characters", field="title")
        if not self.description or not self.description.strip():
            raise ValidationError("Description is required", field="description")
        if len(self.description) > DESCRIPTION_MAX:
            raise ValidationError(f"Description exceeds {DESCRIPTION_MAX} characters", field="description")
        if is_new(self) and len(self.options) < MIN_OPTIONS:
            raise ValidationError(f"A poll needs at least {MIN_OPTIONS} options", field="options")
        for option in self.options:
            if not option.text or not option.text.strip():
                raise ValidationError("Option text is required", field="options")
            if len(option.text) > OPTION_TEXT_MAX:
                raise ValidationError(f"Option text exceeds {OPTION_TEXT_MAX} characters", field="options")
            if option.votes < 0:
                raise ValidationError("Option votes cannot be negative", field="options")
        if self.max_votes_per_user is None or self.max_votes_per_user < 1:
            raise ValidationError("Max votes per user must be at least 1", field="max_votes_per_user")
        if self.category and len(self.category) > CATEGORY_MAX:
            raise ValidationError(f"Category exceeds {CATEGORY_MAX} characters", field="category")
        for tag in self.tags or []:
            if len(tag) > TAG_MAX:
                raise ValidationError(f"Tag exceeds {TAG_MAX} characters", field="tags")
        self.validate_deadline()

    def before_save(self) -> None:
        self.refresh_status()
        self.validate()
        self.touch()

    def __repr__(self):
        return f"<Poll {self.title}>"


class PollOption(Base):
    """A choice on a poll with its running tally"""
    __tablename__ = "poll_options"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    poll_id = Column(GUID, ForeignKey("polls.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    text = Column(String(OPTION_TEXT_MAX), nullable=False)
    votes = Column(Integer, default=0, nullable=False)
    voters = Column(MutableList.as_mutable(JSON), nullable=False, default=list)  # user ids, empty when anonymous

    poll = relationship("Poll", back_populates="options")

    def __init__(self, **kwargs):
        kwargs.setdefault("votes", 0)
        kwargs.setdefault("voters", [])
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<PollOption {self.position}: {self.text}>"


class PollVote(Base):
    """Audit entry for one ballot"""
    __tablename__ = "poll_votes"

    __table_args__ = (
        Index('ix_poll_votes_poll_user', 'poll_id', 'user_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    poll_id = Column(GUID, ForeignKey("polls.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(GUID, ForeignKey("users.id"), nullable=False, index=True)
    voted_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    selected_options = Column(JSON, nullable=False)  # option indexes

    poll = relationship("Poll", back_populates="voters")
    user = relationship("User", lazy="selectin")

    def __init__(self, **kwargs):
        kwargs.setdefault("voted_at", datetime.utcnow())
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<PollVote {self.user_id} -> {self.selected_options}>"
