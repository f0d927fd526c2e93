import hashlib
import logging
import re
import time
from typing import Dict, Optional, Tuple
from urllib.parse import urlparse

from pydantic import EmailStr, TypeAdapter, ValidationError
from supabase import Client

from app.config.settings import settings
from app.core.errors import ApiError, unauthorized, validation_error
from app.modules.auth.schemas import (
    CurrentUser, SignInRequest, SignInResponse, SignUpRequest, SignUpResponse,
    SessionInfo, SessionResponse, UserSummary
)

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500

_EMAIL = TypeAdapter(EmailStr)
MIN_PASSWORD_LENGTH = 6
_LOCALHOST_RE = re.compile(r"(^|\.)(localhost|127\.0\.0\.1)$", re.IGNORECASE)


def _first_header_value(value: Optional[str]) -> str:
    return (value or "").split(",")[0].strip()


def resolve_public_origin(headers: Dict[str, str], request_origin: str) -> str:
    """Public origin for auth redirects: X-Forwarded-* first, localhost replaced by the configured base URL."""
    env_base = settings.public_base_url
    host = _first_header_value(headers.get("x-forwarded-host")) or headers.get("host", "")
    proto = _first_header_value(headers.get("x-forwarded-proto")) or ("https" if host else "")
    origin = f"{proto}://{host}" if host and proto else request_origin
    hostname = urlparse(origin).hostname or ""
    if _LOCALHOST_RE.search(hostname):
        return env_base
    return (origin or env_base).rstrip("/")


def _user_summary(user) -> UserSummary:
    metadata = getattr(user, "user_metadata", None) or {}
    return UserSummary(
        id=getattr(user, "id", None),
        email=getattr(user, "email", None),
        full_name=metadata.get("full_name"),
        created_at=getattr(user, "created_at", None),
        email_confirmed=bool(getattr(user, "email_confirmed_at", None)),
        last_sign_in_at=getattr(user, "last_sign_in_at", None),
    )


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def sign_up(self, data: SignUpRequest, redirect_origin: str = "") -> SignUpResponse:
        """Register a new user using Supabase Auth"""
        if not data.email or not data.password:
            raise validation_error("Email and password are required", "MISSING_REQUIRED_FIELDS")
        if len(data.password) < MIN_PASSWORD_LENGTH:
            raise validation_error(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long", "PASSWORD_TOO_SHORT"
            )
        email = data.email.strip().lower()
        try:
            _EMAIL.validate_python(email)
        except ValidationError:
            raise validation_error("Invalid email format", "INVALID_EMAIL_FORMAT")

        options = {"data": {"full_name": data.full_name.strip() if data.full_name else None}}
        if redirect_origin:
            options["email_redirect_to"] = f"{redirect_origin}/auth/signin?welcome=1"
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": email,
                "password": data.password,
                "options": options,
            })
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower():
                raise ApiError(409, error_message, "EMAIL_ALREADY_EXISTS")
            if "invalid" in error_message.lower():
                raise ApiError(422, error_message, "INVALID_INPUT")
            raise ApiError(400, error_message, "SIGNUP_ERROR")

        if not auth_response.user:
            raise ApiError(400, "Failed to register user", "SIGNUP_ERROR")

        summary = _user_summary(auth_response.user)
        message = (
            "User created and verified" if summary.email_confirmed
            else "User created, please check email for verification"
        )
        return SignUpResponse(user=summary, message=message)

    def sign_in(self, data: SignInRequest) -> Tuple[SignInResponse, str]:
        """Authenticate with email/password. Returns the response body and the raw access token for the cookie."""
        if not data.email or not data.password:
            raise validation_error("Email and password are required", "MISSING_CREDENTIALS")
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": data.email.strip().lower(),
                "password": data.password,
            })
        except Exception as e:
            error_message = str(e)
            code = "INVALID_CREDENTIALS" if "invalid login" in error_message.lower() else "AUTH_ERROR"
            raise ApiError(401, error_message, code)

        if not auth_response.user or not auth_response.session:
            raise ApiError(401, "Invalid login credentials", "INVALID_CREDENTIALS")

        session = auth_response.session
        body = SignInResponse(
            user=_user_summary(auth_response.user),
            session=SessionInfo(
                access_token="[REDACTED]" if session.access_token else None,
                expires_at=session.expires_at,
            ),
        )
        return body, session.access_token

    def get_current_user(self, token: str) -> CurrentUser:
        """Resolve the caller from a Supabase JWT. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise unauthorized("Invalid or expired token")
            raw = user_response.user
            user = CurrentUser(
                id=raw.id,
                email=raw.email,
                access_token=token,
                user_metadata=raw.user_metadata or {},
                created_at=raw.created_at,
                last_sign_in_at=getattr(raw, "last_sign_in_at", None),
            )
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user, now + _AUTH_CACHE_TTL_SEC)
            return user
        except ApiError:
            raise
        except Exception as e:
            logger.info("Token rejected by Supabase Auth: %s", e)
            raise unauthorized("Invalid or expired token")

    def session_info(self, user: CurrentUser) -> SessionResponse:
        return SessionResponse(
            user=UserSummary(
                id=user.id,
                email=user.email,
                full_name=user.user_metadata.get("full_name"),
                created_at=user.created_at,
                last_sign_in_at=user.last_sign_in_at,
            ),
            authenticated=True,
        )

    def sign_out(self, token: str) -> None:
        """Revoke the session behind the token"""
        _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
        try:
            self.supabase.auth.admin.sign_out(token)
        except Exception as e:
            raise ApiError(400, str(e), "SIGNOUT_ERROR")

    def request_password_reset(self, email: Optional[str], redirect_origin: str) -> None:
        """Send a reset email. Failures are logged only, so callers cannot probe which emails exist."""
        clean = email.strip() if isinstance(email, str) else ""
        if not clean:
            return
        options = {"redirect_to": f"{redirect_origin}/auth/reset"} if redirect_origin else {}
        try:
            self.supabase.auth.reset_password_for_email(clean, options)
        except Exception as e:
            logger.warning("Password reset request failed: %s", e)
