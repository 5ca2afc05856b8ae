from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Dict, List, Optional
from datetime import datetime

from thinkify.models.poll import (
    PollAudience, PollType, ShowResults,
    TITLE_MAX, DESCRIPTION_MAX, OPTION_TEXT_MAX, CATEGORY_MAX, TAG_MAX, MIN_OPTIONS,
)
from thinkify.models.status import ItemStatus
from thinkify.schemas.common import UserSummary, to_naive_utc


class PollCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=TITLE_MAX)
    description: str = Field(..., min_length=1, max_length=DESCRIPTION_MAX)
    type: PollType = PollType.SINGLE
    options: List[str] = Field(..., min_length=MIN_OPTIONS)
    deadline: datetime
    is_anonymous: bool = False
    audience: PollAudience = PollAudience.ALL
    target_users: List[str] = []
    status: ItemStatus = ItemStatus.ACTIVE
    allow_multiple_votes: bool = False
    show_results: ShowResults = ShowResults.AFTER_VOTE
    max_votes_per_user: int = Field(1, ge=1)
    category: Optional[str] = Field(None, max_length=CATEGORY_MAX)
    tags: List[str] = []

    @field_validator('deadline')
    @classmethod
    def normalize_deadline(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @field_validator('options')
    @classmethod
    def validate_options(cls, value: List[str]) -> List[str]:
        options = [text.strip() for text in value]
        for text in options:
            if not text:
                raise ValueError("Option text is required")
            if len(text) > OPTION_TEXT_MAX:
                raise ValueError(f"Option text exceeds {OPTION_TEXT_MAX} characters")
        return options

    @field_validator('tags')
    @classmethod
    def validate_tags(cls, value: List[str]) -> List[str]:
        tags = [tag.strip() for tag in value]
        if any(len(tag) > TAG_MAX for tag in tags):
            raise ValueError(f"Tags are limited to {TAG_MAX} characters")
        return tags


class VoteRequest(BaseModel):
    option_indexes: List[int]


class PollOptionResponse(BaseModel):
    text: str
    votes: int
    voters: List[str] = []

    class Config:
        from_attributes = True


class PollVoteResponse(BaseModel):
    user_id: str
    user: Optional[UserSummary] = None
    voted_at: datetime
    selected_options: List[int]

    class Config:
        from_attributes = True


class PollResponse(BaseModel):
    id: str
    title: str
    description: str
    type: PollType
    options: List[PollOptionResponse]
    deadline: datetime
    is_anonymous: bool
    audience: PollAudience
    status: ItemStatus
    allow_multiple_votes: bool
    show_results: ShowResults
    max_votes_per_user: int
    category: Optional[str] = None
    tags: List[str] = []
    created_by: str
    creator: Optional[UserSummary] = None
    voters: List[PollVoteResponse] = []
    total_votes: int
    unique_voter_count: int
    is_expired: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @model_validator(mode='after')
    def hide_anonymous_voters(self):
        """Anonymous polls never expose who voted for what"""
        if self.is_anonymous:
            for option in self.options:
                option.voters = []
            self.voters = []
        return self


class PollChoice(BaseModel):
    """Option as shown to voters; tallies travel only through ``results``"""
    text: str

    class Config:
        from_attributes = True


class VoterPollResponse(BaseModel):
    """Poll without counters or voter lists"""
    id: str
    title: str
    description: str
    type: PollType
    options: List[PollChoice]
    deadline: datetime
    is_anonymous: bool
    audience: PollAudience
    status: ItemStatus
    allow_multiple_votes: bool
    show_results: ShowResults
    max_votes_per_user: int
    category: Optional[str] = None
    tags: List[str] = []
    created_by: str
    creator: Optional[UserSummary] = None
    is_expired: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PollListItem(BaseModel):
    """Poll as listed to voters, with their own voting state.

    ``results`` is whatever ``Poll.get_results`` grants this user, either the
    tally or the message explaining why it is withheld.
    """
    poll: VoterPollResponse
    has_voted: bool
    can_vote: bool
    results: Dict[str, Any]
