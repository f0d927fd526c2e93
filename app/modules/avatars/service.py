import logging
from datetime import datetime, timezone
from typing import Any, Dict

from supabase import Client

from app.core.errors import ApiError, validation_error
from app.modules.avatars.schemas import Avatar

logger = logging.getLogger(__name__)

DEFAULT_AVATAR_SEED = "John"
AVATAR_COLUMNS = "avatar_seed, created_at, updated_at"


def _to_avatar(row: Dict[str, Any]) -> Avatar:
    return Avatar(
        avatarSeed=row["avatar_seed"],
        createdAt=row.get("created_at"),
        updatedAt=row.get("updated_at"),
    )


class AvatarService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_avatar(self, user_id: str) -> Avatar:
        """The user's avatar; a default one is created on first access"""
        result = self.supabase.table("user_avatars")\
            .select(AVATAR_COLUMNS)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if result.data:
            return _to_avatar(result.data[0])

        created = self.supabase.table("user_avatars").insert({
            "user_id": user_id,
            "avatar_seed": DEFAULT_AVATAR_SEED,
        }).execute()
        if not created.data:
            logger.error(f"Failed to create default avatar for {user_id}")
            raise ApiError(500, "Failed to create avatar", "AVATAR_CREATE_FAILED")
        logger.info(f"Default avatar created for {user_id}")
        return _to_avatar(created.data[0])

    def update_avatar(self, user_id: str, seed: Any) -> Avatar:
        if not isinstance(seed, str) or not seed.strip():
            raise validation_error("Invalid avatar seed", "INVALID_AVATAR_SEED")

        result = self.supabase.table("user_avatars")\
            .upsert({
                "user_id": user_id,
                "avatar_seed": seed,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }, on_conflict="user_id")\
            .execute()
        if not result.data:
            raise ApiError(500, "Failed to update avatar", "AVATAR_UPDATE_FAILED")
        return _to_avatar(result.data[0])
