from fastapi import APIRouter, Depends, Request, Response
from app.config import settings
from app.core.dependencies import get_access_token, get_auth_service, get_current_user
from app.core.errors import ApiError
from app.modules.auth.schemas import (
    CurrentUser, PasswordResetRequest, SignInRequest, SignInResponse,
    SignUpRequest, SignUpResponse, SessionResponse
)
from app.modules.auth.service import AuthService, resolve_public_origin
from typing import Optional

router = APIRouter(prefix="/auth", tags=["auth"])


def _request_origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


@router.post("/users", response_model=SignUpResponse, status_code=201)
async def sign_up(
    body: SignUpRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    origin = resolve_public_origin(dict(request.headers), _request_origin(request))
    return service.sign_up(body, redirect_origin=origin)


@router.post("/sessions", response_model=SignInResponse)
async def sign_in(
    body: SignInRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service)
):
    """Sign in; the access token goes into an httpOnly cookie, never the body"""
    result, access_token = service.sign_in(body)
    response.set_cookie(
        settings.auth_cookie_name,
        access_token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return result


@router.get("/sessions", response_model=SessionResponse)
async def get_session(
    token: Optional[str] = Depends(get_access_token),
    service: AuthService = Depends(get_auth_service)
):
    """Current session info"""
    if not token:
        raise ApiError(401, "No active session", "NO_SESSION")
    user: CurrentUser = service.get_current_user(token)
    return service.session_info(user)


@router.delete("/sessions")
async def sign_out(
    response: Response,
    user: CurrentUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service)
):
    """Sign out and clear the session cookie"""
    service.sign_out(user.access_token)
    response.delete_cookie(settings.auth_cookie_name)
    return {"message": "Session terminated successfully"}


@router.post("/password-reset")
async def request_password_reset(
    body: PasswordResetRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service)
):
    """Always answers ok so the endpoint cannot be used to enumerate emails"""
    origin = resolve_public_origin(dict(request.headers), _request_origin(request))
    allowed = [o for o in (origin, settings.auth_base_url, settings.site_url) if o]
    if allowed:
        sender = request.headers.get("origin") or request.headers.get("referer") or ""
        if not any(sender.startswith(o) for o in allowed):
            return {"ok": True}
    service.request_password_reset(body.email, origin)
    return {"ok": True}
