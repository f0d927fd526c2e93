import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from supabase import Client

from app.core.dependencies import HOST_ROLES
from app.core.errors import ApiError, not_found
from app.modules.groups.events import EventLog
from app.modules.groups.schemas import EventType
from app.modules.rounds.consensus import compute_consensus
from app.modules.rounds.schemas import (
    CloseReason, ResultsResponse, RoundResponse, RoundStatus, SwipeSubmission
)

logger = logging.getLogger(__name__)

MAX_SUBMISSIONS_SCANNED = 1000


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class RoundService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.events = EventLog(supabase)

    def get_open_round(self, group_id: str) -> Optional[RoundResponse]:
        result = self.supabase.table("group_rounds")\
            .select("*")\
            .eq("group_id", group_id)\
            .eq("status", RoundStatus.open.value)\
            .order("created_at", desc=True)\
            .limit(1)\
            .execute()
        if not result.data:
            return None
        return RoundResponse(**result.data[0])

    def get_round(self, group_id: str, round_id: str) -> RoundResponse:
        result = self.supabase.table("group_rounds")\
            .select("*")\
            .eq("id", round_id)\
            .eq("group_id", group_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise not_found("Round not found", "ROUND_NOT_FOUND")
        return RoundResponse(**result.data[0])

    def _close(self, round_id: str, reason: CloseReason) -> None:
        update = {
            "status": RoundStatus.closed.value,
            "close_reason": reason.value,
            "closed_at": _now(),
        }
        if reason != CloseReason.superseded:
            update["published_at"] = update["closed_at"]
        self.supabase.table("group_rounds")\
            .update(update)\
            .eq("id", round_id)\
            .eq("status", RoundStatus.open.value)\
            .execute()

    def start_round(self, group_id: str, user_id: str) -> RoundResponse:
        """Open a new round; the previous open round, if any, is superseded"""
        current = self.get_open_round(group_id)
        if current:
            self._close(current.id, CloseReason.superseded)
            logger.info(f"Round {current.id} in group {group_id} superseded")

        round_id = str(uuid.uuid4())
        result = self.supabase.table("group_rounds").insert({
            "id": round_id,
            "group_id": group_id,
            "status": RoundStatus.open.value,
            "started_by": user_id,
        }).execute()
        if not result.data:
            raise ApiError(500, "Failed to start round", "ROUND_START_FAILED")

        self.events.record(group_id, user_id, EventType.round_start, {
            "session_id": round_id,
            "started_by": user_id,
        })
        return RoundResponse(**result.data[0])

    def submit(self, group_id: str, user_id: str, submission: SwipeSubmission) -> None:
        """Store the caller's picks for an open round; a resubmission replaces the previous one"""
        round_ = self.get_round(group_id, submission.session_id)
        if round_.status != RoundStatus.open:
            raise ApiError(409, "Round is closed", "ROUND_CLOSED")

        accepted = [str(rid) for rid in submission.accepted_ids]
        rejected = [str(rid) for rid in submission.rejected_ids]
        self.supabase.table("round_submissions").upsert({
            "round_id": round_.id,
            "user_id": user_id,
            "accepted_ids": accepted,
            "rejected_ids": rejected,
            "submitted_at": _now(),
        }, on_conflict="round_id,user_id").execute()

        self.events.record(group_id, user_id, EventType.swipe_results, {
            "session_id": round_.id,
            "accepted_ids": accepted,
            "rejected_ids": rejected,
        })

    def release_results(self, group_id: str, user_id: str, reason: CloseReason) -> RoundResponse:
        """Close the open round and make its results visible (publish or force)"""
        current = self.get_open_round(group_id)
        if not current:
            raise ApiError(400, "No active round/session", "NO_ACTIVE_ROUND")
        self._close(current.id, reason)

        event_type = EventType.publish_results if reason == CloseReason.published else EventType.force_results
        self.events.record(group_id, user_id, event_type, {
            "session_id": current.id,
            "published_by": user_id,
            "created_at": _now(),
        })
        logger.info(f"Round {current.id} in group {group_id} closed ({reason.value}) by {user_id}")
        return current

    def list_submissions(self, round_id: str) -> List[dict]:
        """The most recent submissions, oldest first"""
        result = self.supabase.table("round_submissions")\
            .select("user_id, accepted_ids, submitted_at")\
            .eq("round_id", round_id)\
            .order("submitted_at", desc=True)\
            .limit(MAX_SUBMISSIONS_SCANNED)\
            .execute()
        return list(reversed(result.data or []))

    def get_results(self, group_id: str, session_id: str, role: Optional[str]) -> ResultsResponse:
        """Submission status for a round, plus the consensus once results are released"""
        round_ = self.get_round(group_id, session_id)
        consensus = compute_consensus(self.list_submissions(round_.id))
        released = round_.status == RoundStatus.closed and round_.results_released

        response = ResultsResponse(
            published=released,
            group_id=group_id,
            session_id=round_.id,
            submitters=consensus.submitters,
            messages_considered=consensus.submissions_considered,
            is_host=role in HOST_ROLES,
        )
        if released:
            response.counts = consensus.counts
            response.percentages = consensus.percentages
            response.consensus_ids = consensus.consensus_ids
            response.top_agreement = consensus.top_agreement
        return response
