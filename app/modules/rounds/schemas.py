from pydantic import BaseModel
from typing import Optional, List, Dict, Union
from datetime import datetime
from enum import Enum


class RoundStatus(str, Enum):
    open = "open"
    closed = "closed"


class CloseReason(str, Enum):
    published = "published"
    forced = "forced"
    superseded = "superseded"


class RoundResponse(BaseModel):
    id: str
    group_id: str
    status: RoundStatus
    started_by: Optional[str] = None
    created_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    close_reason: Optional[CloseReason] = None

    class Config:
        from_attributes = True

    @property
    def results_released(self) -> bool:
        return self.close_reason in (CloseReason.published, CloseReason.forced)


class RoundStateResponse(BaseModel):
    ok: bool = True
    group_id: str
    session_id: Optional[str] = None


class SwipeSubmission(BaseModel):
    session_id: str
    accepted_ids: List[Union[int, str]] = []
    rejected_ids: List[Union[int, str]] = []


class AgreementEntry(BaseModel):
    id: str
    pct: float


class ConsensusResult(BaseModel):
    submitters: int = 0
    counts: Dict[str, int] = {}
    percentages: Dict[str, float] = {}
    consensus_ids: List[str] = []
    top_agreement: List[AgreementEntry] = []
    submissions_considered: int = 0


class ResultsResponse(BaseModel):
    ok: bool = True
    published: bool
    group_id: str
    session_id: str
    submitters: int
    messages_considered: int
    is_host: bool
    counts: Optional[Dict[str, int]] = None
    percentages: Optional[Dict[str, float]] = None
    consensus_ids: Optional[List[str]] = None
    top_agreement: Optional[List[AgreementEntry]] = None
