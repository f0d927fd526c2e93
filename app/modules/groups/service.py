import logging
from datetime import datetime, timezone
from typing import List, Optional

from postgrest.exceptions import APIError
from supabase import Client

from app.core.errors import ApiError, validation_error
from app.modules.groups.events import EventLog
from app.modules.groups.schemas import (
    EventType, GroupCreate, GroupMemberResponse, GroupResponse,
    InviteResponse, MessageCreate, MessageResponse
)

logger = logging.getLogger(__name__)

MIN_GROUP_NAME_LENGTH = 2
MAX_ALIAS_LENGTH = 40
MESSAGE_PAGE_SIZE = 50
PLAYER_JOIN_DEBOUNCE_SECONDS = 5


class GroupService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.events = EventLog(supabase)

    def create_group(self, group_data: GroupCreate, user_id: str) -> GroupResponse:
        """Create a group through the create_group RPC, which also makes the caller its owner"""
        name = group_data.name.strip() if isinstance(group_data.name, str) else ""
        if not name:
            raise validation_error("Group name is required", "MISSING_GROUP_NAME")
        if len(name) < MIN_GROUP_NAME_LENGTH:
            raise validation_error(
                f"Group name must be at least {MIN_GROUP_NAME_LENGTH} characters long", "INVALID_GROUP_NAME"
            )
        try:
            result = self.supabase.rpc("create_group", {"p_name": name}).execute()
        except APIError as e:
            raise ApiError(400, e.message or "Failed to create group", "GROUP_CREATION_FAILED")

        group_id = result.data
        if isinstance(group_id, list):
            group_id = group_id[0] if group_id else None
        if not group_id:
            raise ApiError(400, "Failed to create group", "GROUP_CREATION_FAILED")

        logger.info(f"Group {group_id} created by {user_id}")
        return GroupResponse(
            id=str(group_id),
            name=name,
            created_by=user_id,
            created_at=datetime.now(timezone.utc),
        )

    def list_groups(self, user_id: str) -> List[GroupResponse]:
        """Groups the user is a member of"""
        result = self.supabase.table("group_members")\
            .select("groups(id, name, created_at, created_by)")\
            .eq("user_id", user_id)\
            .execute()
        groups = []
        for item in result.data or []:
            if item.get("groups"):
                groups.append(GroupResponse(**item["groups"]))
        return groups

    def list_members(self, group_id: str) -> List[GroupMemberResponse]:
        """List all members of a group"""
        result = self.supabase.table("group_members")\
            .select("user_id, role, joined_at")\
            .eq("group_id", group_id)\
            .execute()
        return [GroupMemberResponse(**member) for member in result.data or []]

    def get_latest_invite(self, group_id: str) -> Optional[InviteResponse]:
        result = self.supabase.table("group_invites")\
            .select("code, created_at, expires_at, max_uses, uses")\
            .eq("group_id", group_id)\
            .order("created_at", desc=True)\
            .limit(1)\
            .execute()
        if not result.data:
            return None
        return InviteResponse(**result.data[0])

    def redeem_invite(self, code: Optional[str], user_id: str) -> str:
        """Redeem an invite code and announce the new player to the group"""
        clean = code.strip() if isinstance(code, str) else ""
        if not clean:
            raise validation_error("Invite code is required", "MISSING_INVITE_CODE")
        try:
            result = self.supabase.rpc("redeem_group_invite", {"p_code": clean}).execute()
        except APIError as e:
            raise ApiError(400, e.message or "Invalid invite code", "INVITE_REDEEM_FAILED")

        group_id = result.data
        if not group_id:
            raise ApiError(400, "Invalid invite code", "INVITE_REDEEM_FAILED")
        group_id = str(group_id)

        # Announcement is best-effort: the membership already exists
        try:
            if not self.events.has_recent(group_id, user_id, EventType.player_join, PLAYER_JOIN_DEBOUNCE_SECONDS):
                self.events.record(group_id, user_id, EventType.player_join, {
                    "user_id": user_id,
                    "joined_at": datetime.now(timezone.utc).isoformat(),
                })
        except Exception as e:
            logger.warning(f"Failed to announce player_join for {user_id} in {group_id}: {e}")
        return group_id

    def list_messages(self, group_id: str) -> List[MessageResponse]:
        """Latest chat messages, newest first"""
        result = self.supabase.table("group_messages")\
            .select("id, user_id, author_alias, content, created_at")\
            .eq("group_id", group_id)\
            .order("created_at", desc=True)\
            .limit(MESSAGE_PAGE_SIZE)\
            .execute()
        return [MessageResponse(**m) for m in result.data or []]

    def post_message(self, group_id: str, user_id: str, message: MessageCreate) -> None:
        content = str(message.content if message.content is not None else "").strip()
        if not content:
            raise validation_error("Empty message", "EMPTY_MESSAGE")
        alias = message.alias.strip()[:MAX_ALIAS_LENGTH] if isinstance(message.alias, str) else ""
        self.supabase.table("group_messages").insert({
            "group_id": group_id,
            "user_id": user_id,
            "author_alias": alias or None,
            "content": content,
        }).execute()
