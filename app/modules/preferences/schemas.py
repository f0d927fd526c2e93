from pydantic import BaseModel, Field
from typing import Optional, List, Any, Dict, Literal
from datetime import datetime

from app.modules.restaurants.schemas import SortBy, SortOrder

PriceToken = Literal["$", "$$", "$$$", "$$$$"]


class HostPreferences(BaseModel):
    max_price: Optional[PriceToken] = None
    max_radius_km: Optional[float] = Field(default=None, ge=0)
    blocked_categories: List[str] = Field(default_factory=list)
    require_kid_friendly: bool = False


class GroupPreferencesResponse(HostPreferences):
    group_id: str
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PlayerPreferences(BaseModel):
    query: Optional[str] = None
    minRating: Optional[float] = None
    price: List[str] = Field(default_factory=list)
    categories: Optional[List[str]] = None


class CandidateRequest(BaseModel):
    player: PlayerPreferences = Field(default_factory=PlayerPreferences)
    useHostConstraints: bool = True
    sortBy: SortBy = "random"
    sortOrder: SortOrder = "desc"
    limit: int = 30
    offset: int = 0
    city: Optional[str] = None
    includeUnknownPrice: bool = False


class CandidateMeta(BaseModel):
    total: int
    limit: int
    offset: int
    hasMore: bool
    applied: Dict[str, Any]


class CandidateResponse(BaseModel):
    data: List[Dict[str, Any]]
    meta: CandidateMeta
