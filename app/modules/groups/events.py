"""Typed group event log (group_events). Rows are notifications; the authoritative state lives in its own tables."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from supabase import Client

from app.modules.groups.schemas import EventType, GroupEvent

logger = logging.getLogger(__name__)


class EventLog:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def record(
        self,
        group_id: str,
        user_id: str,
        event_type: EventType,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Optional[GroupEvent]:
        """Append an event. Best-effort: the state it announces is already saved, so a failed
        insert is logged and None is returned."""
        try:
            result = self.supabase.table("group_events").insert({
                "group_id": group_id,
                "user_id": user_id,
                "event_type": event_type.value,
                "payload": payload or {},
            }).execute()
        except Exception as e:
            logger.warning(f"Failed to record {event_type.value} event in group {group_id}: {e}")
            return None
        row = result.data[0] if result.data else {
            "group_id": group_id, "user_id": user_id,
            "event_type": event_type.value, "payload": payload or {},
        }
        return GroupEvent(**row)

    def has_recent(self, group_id: str, user_id: str, event_type: EventType, within_seconds: int) -> bool:
        since = (datetime.now(timezone.utc) - timedelta(seconds=within_seconds)).isoformat()
        result = self.supabase.table("group_events")\
            .select("id")\
            .eq("group_id", group_id)\
            .eq("user_id", user_id)\
            .eq("event_type", event_type.value)\
            .gte("created_at", since)\
            .limit(1)\
            .execute()
        return bool(result.data)
