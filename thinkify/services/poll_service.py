"""
Poll Service - creation, audience-filtered listings and voting
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from thinkify.core.exceptions import PollNotFoundError
from thinkify.core.logging_config import logger
from thinkify.core.roles import Permission
from thinkify.models.poll import Poll, PollOption, PollVote
from thinkify.models.status import ItemStatus
from thinkify.models.user import User
from thinkify.schemas.poll import PollCreate, PollListItem, VoterPollResponse

VOTER_VISIBLE_STATUSES = (ItemStatus.ACTIVE, ItemStatus.EXPIRED)


class PollService:
    """Poll aggregate persistence"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ========== Creator side ==========

    async def create(self, creator: User, data: PollCreate) -> Poll:
        poll = Poll(
            **data.model_dump(exclude={"options"}),
            options=[PollOption(text=text) for text in data.options],
            created_by=str(creator.id),
            creator=creator,
        )
        self.db.add(poll)
        await self.db.commit()

        logger.info(
            f"Poll created: {poll.id} ({len(poll.options)} options)",
            extra={"event_type": "poll_created", "poll_id": str(poll.id)},
        )
        return poll

    async def list_for_creator(self, creator_id: str, status: Optional[ItemStatus] = None,
                               limit: Optional[int] = None) -> List[Poll]:
        query = select(Poll).where(Poll.created_by == str(creator_id))
        if status is not None:
            query = query.where(Poll.status == status)
        query = query.order_by(Poll.created_at.desc())
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_for_creator(self, creator_id: str, status: Optional[ItemStatus] = None) -> int:
        query = select(func.count(Poll.id)).where(Poll.created_by == str(creator_id))
        if status is not None:
            query = query.where(Poll.status == status)
        return (await self.db.execute(query)).scalar() or 0

    async def get_for_creator(self, poll_id: str, creator_id: str) -> Poll:
        """Poll owned by the creator, 404 otherwise"""
        result = await self.db.execute(
            select(Poll).where(Poll.id == str(poll_id), Poll.created_by == str(creator_id))
        )
        poll = result.scalar_one_or_none()
        if not poll:
            raise PollNotFoundError(poll_id)
        return poll

    async def change_status(self, poll_id: str, creator_id: str, new_status: str) -> Poll:
        poll = await self.get_for_creator(poll_id, creator_id)
        poll.refresh_status()
        poll.transition_to(new_status)
        await self.db.commit()
        return poll

    # ========== Voter side ==========

    async def list_for_user(self, user: User) -> List[Poll]:
        result = await self.db.execute(
            select(Poll)
            .where(Poll.status.in_(VOTER_VISIBLE_STATUSES))
            .order_by(Poll.deadline.asc())
        )
        return [p for p in result.scalars().all() if p.is_visible_to(user.id, user.role)]

    async def list_active_for_user(self, user: User) -> List[Poll]:
        result = await self.db.execute(
            select(Poll)
            .where(Poll.status == ItemStatus.ACTIVE, Poll.deadline > datetime.utcnow())
            .order_by(Poll.deadline.asc())
        )
        return [p for p in result.scalars().all() if p.is_visible_to(user.id, user.role)]

    async def get_for_user(self, poll_id: str, user: User) -> Poll:
        """Poll the user is in the audience of, 404 otherwise"""
        result = await self.db.execute(
            select(Poll).where(Poll.id == str(poll_id), Poll.status.in_(VOTER_VISIBLE_STATUSES))
        )
        poll = result.scalar_one_or_none()
        if not poll or not poll.is_visible_to(user.id, user.role):
            raise PollNotFoundError(poll_id)
        return poll

    async def vote(self, poll_id: str, user: User, option_indexes: List[int]) -> Poll:
        # No row lock: two concurrent ballots on one poll can interleave
        poll = await self.get_for_user(poll_id, user)
        vote: PollVote = poll.add_vote(user.id, option_indexes)
        vote.user = user
        await self.db.commit()

        logger.info(
            f"Vote recorded: poll={poll.id} options={vote.selected_options}",
            extra={"event_type": "poll_vote", "poll_id": str(poll.id)},
        )
        return poll


def voter_view(poll: Poll, user: User) -> PollListItem:
    user_id = str(user.id)
    return PollListItem(
        poll=VoterPollResponse.model_validate(poll),
        has_voted=poll.has_voted(user_id),
        can_vote=user.has_permissions([Permission.PARTICIPATE_POLLS]) and poll.can_user_vote(user_id),
        results=poll.get_results(user_id),
    )
