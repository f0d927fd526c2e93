from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_user, get_user_supabase, check_group_member
from app.modules.auth.schemas import CurrentUser
from app.modules.groups.schemas import (
    GroupCreate, GroupCreateResponse, GroupListResponse, GroupMembersResponse,
    MessageCreate, RedeemRequest
)
from app.modules.groups.service import GroupService
from supabase import Client

router = APIRouter(prefix="/groups", tags=["groups"])


def get_group_service(supabase: Client = Depends(get_user_supabase)) -> GroupService:
    return GroupService(supabase)


@router.get("", response_model=GroupListResponse)
async def list_groups(
    user: CurrentUser = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """List groups the caller is a member of"""
    groups = service.list_groups(user.id)
    return {"data": groups, "meta": {"total": len(groups)}}


@router.post("", response_model=GroupCreateResponse, status_code=201)
async def create_group(
    group_data: GroupCreate,
    user: CurrentUser = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Create a new group; the creator becomes its owner"""
    group = service.create_group(group_data, user.id)
    return {"data": group, "message": "Group created successfully"}


@router.post("/redeem")
async def redeem_invite(
    body: RedeemRequest,
    user: CurrentUser = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Join a group with an invite code"""
    return {"group_id": service.redeem_invite(body.code, user.id)}


@router.get("/{group_id}/members", response_model=GroupMembersResponse)
async def list_members(
    group_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_user_supabase)
):
    """List all members of a group (only if user is a member)"""
    check_group_member(group_id, user, supabase)
    members = service.list_members(group_id)
    return {"items": members, "count": len(members)}


@router.get("/{group_id}/invite")
async def get_invite(
    group_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_user_supabase)
):
    """Latest invite code for the group, if any"""
    check_group_member(group_id, user, supabase)
    return {"invite": service.get_latest_invite(group_id)}


@router.get("/{group_id}/messages")
async def list_messages(
    group_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_user_supabase)
):
    check_group_member(group_id, user, supabase)
    return {"items": service.list_messages(group_id)}


@router.post("/{group_id}/messages")
async def post_message(
    group_id: str,
    message: MessageCreate,
    user: CurrentUser = Depends(get_current_user),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_user_supabase)
):
    check_group_member(group_id, user, supabase)
    service.post_message(group_id, user.id, message)
    return {"ok": True}
