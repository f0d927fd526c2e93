from pydantic import BaseModel
from typing import Optional, List, Any, Dict


class RestaurantInput(BaseModel):
    """Admin restaurant payload. Types are checked by the service so that each
    failure gets its own error code rather than a generic validation error."""
    name: Optional[Any] = None
    avg_rating: Optional[Any] = None
    review_count: Optional[Any] = None
    price_tag: Optional[str] = None
    parent_city: Optional[str] = None
    cuisines: Optional[Any] = None
    is_active: Optional[Any] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None


class RestaurantListMeta(BaseModel):
    total: int
    limit: int
    offset: int
    hasMore: bool
    includeInactive: bool
    searchTerm: Optional[str] = None


class RestaurantListResponse(BaseModel):
    data: List[Dict[str, Any]]
    meta: RestaurantListMeta


class GeoUpsertRequest(BaseModel):
    restaurant_id: Optional[Any] = None
    name: Optional[Any] = None
    city: Optional[Any] = None
    force: Optional[Any] = False


class GeoBatchRequest(BaseModel):
    limit: Optional[Any] = 100
    maxAgeDays: Optional[Any] = 30
    concurrency: Optional[Any] = 2
    force: Optional[Any] = False
    delayMs: Optional[Any] = 120


class GeoHealthResponse(BaseModel):
    has_SUPABASE_URL: bool
    has_SERVICE_ROLE: bool
    has_GOOGLE_KEY: bool
