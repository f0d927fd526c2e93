from pydantic import BaseModel
from typing import Optional, Any
from datetime import datetime


class AvatarUpdate(BaseModel):
    avatarSeed: Optional[Any] = None


class Avatar(BaseModel):
    avatarSeed: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class AvatarResponse(BaseModel):
    ok: bool = True
    avatar: Avatar
    message: Optional[str] = None
