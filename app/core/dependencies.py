"""
Core dependencies for route protection and group/admin checks
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config import settings
from app.core.errors import ApiError, forbidden, missing_config, unauthorized
from app.database.supabase_client import SupabaseClient, get_supabase
from app.modules.auth.schemas import CurrentUser
from app.modules.auth.service import AuthService
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# Roles allowed to run a round (publish, force results, set host preferences)
HOST_ROLES = ("host", "admin", "owner")


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> Optional[str]:
    """Bearer header wins; falls back to the session cookie set on sign-in"""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.auth_cookie_name) or None


def get_current_user(
    token: Optional[str] = Depends(get_access_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> CurrentUser:
    if not token:
        raise unauthorized()
    return auth_service.get_current_user(token)


def get_user_supabase(user: CurrentUser = Depends(get_current_user)) -> Client:
    """Client scoped to the caller; every query runs under RLS as that user"""
    return SupabaseClient.get_user_client(user.access_token)


def get_request_supabase(token: Optional[str] = Depends(get_access_token)) -> Client:
    """User-scoped client when a token is present, anon client otherwise (public read routes)"""
    if token:
        return SupabaseClient.get_user_client(token)
    return get_supabase()


def get_service_supabase() -> Client:
    """Service-role client. Missing configuration is reported by variable name."""
    missing = settings.missing("supabase_url", "supabase_service_role_key")
    if missing:
        raise missing_config(missing)
    return SupabaseClient.get_service_client()


def is_admin(user_id: str, supabase: Client) -> bool:
    """True if user_id has a row in admins"""
    try:
        result = supabase.table("admins")\
            .select("user_id")\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
    except Exception as e:
        logger.error(f"Admin check error: {e}")
        raise ApiError(500, "Failed to verify admin status", "ADMIN_CHECK_ERROR")
    return bool(result.data)


def require_admin(
    user: CurrentUser = Depends(get_current_user),
    supabase: Client = Depends(get_user_supabase),
) -> CurrentUser:
    """Dependency for /admin routes"""
    if not is_admin(user.id, supabase):
        raise forbidden("Admin privileges required", "INSUFFICIENT_PERMISSIONS")
    return user


def get_member_role(group_id: str, user_id: str, supabase: Client) -> Optional[str]:
    """Role of user_id in group_id, or None if not a member"""
    result = supabase.table("group_members")\
        .select("role")\
        .eq("group_id", group_id)\
        .eq("user_id", user_id)\
        .limit(1)\
        .execute()
    if not result.data:
        return None
    return result.data[0].get("role") or "member"


def check_group_member(group_id: str, user: CurrentUser, supabase: Client) -> str:
    """Return the caller's role in the group; 403 if not a member"""
    role = get_member_role(group_id, user.id, supabase)
    if role is None:
        raise forbidden("Not a member of this group", "NOT_A_MEMBER")
    return role


def check_group_host(group_id: str, user: CurrentUser, supabase: Client, action: str = "do this") -> str:
    """Return the caller's role if it is a host role; 403 otherwise"""
    role = check_group_member(group_id, user, supabase)
    if role not in HOST_ROLES:
        raise forbidden(f"Only the host can {action}", "NOT_HOST")
    return role
