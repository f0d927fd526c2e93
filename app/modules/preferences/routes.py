from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_user, get_user_supabase, check_group_member, check_group_host
from app.modules.auth.schemas import CurrentUser
from app.modules.preferences.schemas import CandidateRequest, CandidateResponse, HostPreferences
from app.modules.preferences.service import PreferencesService
from supabase import Client

router = APIRouter(prefix="/groups/{group_id}", tags=["preferences"])


def get_preferences_service(supabase: Client = Depends(get_user_supabase)) -> PreferencesService:
    return PreferencesService(supabase)


@router.get("/preferences")
async def get_preferences(
    group_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: PreferencesService = Depends(get_preferences_service),
    supabase: Client = Depends(get_user_supabase)
):
    """Latest host preferences for the group, or null"""
    check_group_member(group_id, user, supabase)
    return {"preferences": service.get_preferences(group_id)}


@router.put("/preferences")
async def set_preferences(
    group_id: str,
    prefs: HostPreferences,
    user: CurrentUser = Depends(get_current_user),
    service: PreferencesService = Depends(get_preferences_service),
    supabase: Client = Depends(get_user_supabase)
):
    check_group_host(group_id, user, supabase, "set group preferences")
    return {"ok": True, "preferences": service.set_preferences(group_id, user.id, prefs)}


@router.post("/restaurants", response_model=CandidateResponse)
async def find_candidates(
    group_id: str,
    request: CandidateRequest,
    user: CurrentUser = Depends(get_current_user),
    service: PreferencesService = Depends(get_preferences_service),
    supabase: Client = Depends(get_user_supabase)
):
    """Restaurants for the caller's swipe deck, within the host's constraints"""
    check_group_member(group_id, user, supabase)
    return service.find_candidates(group_id, request)
