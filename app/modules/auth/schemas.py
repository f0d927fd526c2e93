from pydantic import BaseModel
from typing import Optional, Any, Dict


class SignUpRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = None


class SignInRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class PasswordResetRequest(BaseModel):
    email: Optional[str] = None


class CurrentUser(BaseModel):
    """The authenticated caller, passed explicitly into handlers and services."""
    id: str
    email: Optional[str] = None
    access_token: str
    user_metadata: Dict[str, Any] = {}
    created_at: Optional[Any] = None
    last_sign_in_at: Optional[Any] = None


class UserSummary(BaseModel):
    id: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    created_at: Optional[Any] = None
    email_confirmed: Optional[bool] = None
    last_sign_in_at: Optional[Any] = None


class SignUpResponse(BaseModel):
    user: UserSummary
    message: str


class SessionInfo(BaseModel):
    access_token: Optional[str] = None
    expires_at: Optional[int] = None


class SignInResponse(BaseModel):
    user: UserSummary
    session: SessionInfo


class SessionResponse(BaseModel):
    user: UserSummary
    authenticated: bool = True
