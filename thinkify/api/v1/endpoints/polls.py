"""Poll routes for voters of any role; each poll is filtered by its audience"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from thinkify.api.errors import CONTROLLER_FAILURES, controller_failure
from thinkify.core.database import get_db
from thinkify.core.roles import Permission
from thinkify.core.responses import success_response
from thinkify.models.user import User
from thinkify.modules.auth.dependencies import all_roles, require_permissions
from thinkify.schemas.poll import VoteRequest
from thinkify.services.poll_service import PollService, voter_view

router = APIRouter()

voter = require_permissions(Permission.PARTICIPATE_POLLS)


@router.get("")
async def get_user_polls(
    user: User = Depends(all_roles),
    db: AsyncSession = Depends(get_db)
):
    try:
        polls = await PollService(db).list_for_user(user)
    except CONTROLLER_FAILURES as e:
        return await controller_failure(db, "Failed to retrieve polls", e, "Failed to load polls", "user_polls")
    return success_response("Polls retrieved successfully", [voter_view(p, user) for p in polls])


@router.get("/active")
async def get_active_polls(
    user: User = Depends(all_roles),
    db: AsyncSession = Depends(get_db)
):
    """Open polls whose deadline is still ahead"""
    try:
        polls = await PollService(db).list_active_for_user(user)
    except CONTROLLER_FAILURES as e:
        return await controller_failure(db, "Failed to retrieve polls", e, "Failed to load polls", "active_polls")
    return success_response("Active polls retrieved successfully", [voter_view(p, user) for p in polls])


@router.post("/{poll_id}/vote")
async def vote(
    poll_id: str,
    body: VoteRequest,
    user: User = Depends(voter),
    db: AsyncSession = Depends(get_db)
):
    try:
        poll = await PollService(db).vote(poll_id, user, body.option_indexes)
    except CONTROLLER_FAILURES as e:
        return await controller_failure(db, "Failed to record vote", e, "Vote failed", "poll_vote")
    return success_response("Vote recorded successfully", poll.get_results(str(user.id)))


@router.get("/{poll_id}/results")
async def get_poll_results(
    poll_id: str,
    user: User = Depends(all_roles),
    db: AsyncSession = Depends(get_db)
):
    """Results as this user is allowed to see them"""
    poll = await PollService(db).get_for_user(poll_id, user)
    return success_response("Poll results retrieved successfully", poll.get_results(str(user.id)))
