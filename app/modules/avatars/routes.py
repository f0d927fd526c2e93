from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_user, get_user_supabase
from app.modules.auth.schemas import CurrentUser
from app.modules.avatars.schemas import AvatarResponse, AvatarUpdate
from app.modules.avatars.service import AvatarService
from supabase import Client

router = APIRouter(prefix="/user/avatar", tags=["avatars"])


def get_avatar_service(supabase: Client = Depends(get_user_supabase)) -> AvatarService:
    return AvatarService(supabase)


@router.get("", response_model=AvatarResponse, response_model_exclude_none=True)
async def get_avatar(
    user: CurrentUser = Depends(get_current_user),
    service: AvatarService = Depends(get_avatar_service)
):
    """Caller's avatar seed"""
    return AvatarResponse(avatar=service.get_avatar(user.id))


@router.put("", response_model=AvatarResponse, response_model_exclude_none=True)
async def update_avatar(
    body: AvatarUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: AvatarService = Depends(get_avatar_service)
):
    avatar = service.update_avatar(user.id, body.avatarSeed)
    return AvatarResponse(avatar=avatar, message="Avatar updated successfully")
