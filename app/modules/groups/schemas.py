from pydantic import BaseModel
from typing import Optional, List, Any, Dict
from datetime import datetime
from enum import Enum


class EventType(str, Enum):
    round_start = "round_start"
    host_prefs = "host_prefs"
    swipe_results = "swipe_results"
    publish_results = "publish_results"
    force_results = "force_results"
    player_join = "player_join"


class GroupCreate(BaseModel):
    name: Optional[str] = None


class GroupResponse(BaseModel):
    id: str
    name: str
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupListResponse(BaseModel):
    data: List[GroupResponse]
    meta: Dict[str, Any]


class GroupCreateResponse(BaseModel):
    data: GroupResponse
    message: str


class GroupMemberResponse(BaseModel):
    user_id: str
    role: str
    joined_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupMembersResponse(BaseModel):
    items: List[GroupMemberResponse]
    count: int


class InviteResponse(BaseModel):
    code: str
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    max_uses: Optional[int] = None
    uses: Optional[int] = None


class RedeemRequest(BaseModel):
    code: Optional[str] = None


class MessageCreate(BaseModel):
    content: Optional[Any] = None
    alias: Optional[Any] = None


class MessageResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    author_alias: Optional[str] = None
    content: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupEvent(BaseModel):
    id: Optional[str] = None
    group_id: str
    user_id: str
    event_type: EventType
    payload: Dict[str, Any] = {}
    created_at: Optional[datetime] = None
