from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_user, get_user_supabase, check_group_member, check_group_host
from app.core.errors import ApiError
from app.modules.auth.schemas import CurrentUser
from app.modules.rounds.schemas import CloseReason, ResultsResponse, RoundStateResponse, SwipeSubmission
from app.modules.rounds.service import RoundService
from supabase import Client
from typing import Optional

router = APIRouter(prefix="/groups/{group_id}", tags=["rounds"])


def get_round_service(supabase: Client = Depends(get_user_supabase)) -> RoundService:
    return RoundService(supabase)


@router.get("/round", response_model=RoundStateResponse)
async def get_current_round(
    group_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: RoundService = Depends(get_round_service),
    supabase: Client = Depends(get_user_supabase)
):
    """Id of the group's open round, or null"""
    check_group_member(group_id, user, supabase)
    current = service.get_open_round(group_id)
    return RoundStateResponse(group_id=group_id, session_id=current.id if current else None)


@router.post("/round", response_model=RoundStateResponse)
async def start_round(
    group_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: RoundService = Depends(get_round_service),
    supabase: Client = Depends(get_user_supabase)
):
    """Start a new swipe round (any member)"""
    check_group_member(group_id, user, supabase)
    round_ = service.start_round(group_id, user.id)
    return RoundStateResponse(group_id=group_id, session_id=round_.id)


@router.post("/swipe")
async def submit_swipes(
    group_id: str,
    submission: SwipeSubmission,
    user: CurrentUser = Depends(get_current_user),
    service: RoundService = Depends(get_round_service),
    supabase: Client = Depends(get_user_supabase)
):
    """Submit the caller's accepted/rejected restaurants for the round"""
    check_group_member(group_id, user, supabase)
    service.submit(group_id, user.id, submission)
    return {"ok": True, "group_id": group_id, "session_id": submission.session_id}


@router.post("/publish")
async def publish_results(
    group_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: RoundService = Depends(get_round_service),
    supabase: Client = Depends(get_user_supabase)
):
    """Host closes the round and publishes results"""
    check_group_host(group_id, user, supabase, "publish")
    round_ = service.release_results(group_id, user.id, CloseReason.published)
    return {"ok": True, "group_id": group_id, "session_id": round_.id}


@router.post("/force")
async def force_results(
    group_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: RoundService = Depends(get_round_service),
    supabase: Client = Depends(get_user_supabase)
):
    """Host ends the round without waiting for the remaining players"""
    check_group_host(group_id, user, supabase, "force results")
    round_ = service.release_results(group_id, user.id, CloseReason.forced)
    return {"ok": True, "group_id": group_id, "session_id": round_.id}


@router.get("/results", response_model=ResultsResponse, response_model_exclude_none=True)
async def get_results(
    group_id: str,
    session_id: Optional[str] = None,
    user: CurrentUser = Depends(get_current_user),
    service: RoundService = Depends(get_round_service),
    supabase: Client = Depends(get_user_supabase)
):
    """Submission status for a round; counts and consensus once published"""
    if not session_id:
        raise ApiError(400, "Missing session_id", "MISSING_SESSION_ID")
    role = check_group_member(group_id, user, supabase)
    return service.get_results(group_id, session_id, role)
