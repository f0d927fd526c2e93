from pydantic import BaseModel, Field
from typing import Optional, List, Any, Dict


class GeocodeResult(BaseModel):
    """Best (first) geocoder match for a query"""
    lat: float
    lng: float
    place_id: Optional[str] = None
    formatted_address: Optional[str] = None
    accuracy: Optional[str] = None
    partial_match: bool = False
    query: str


class LatLng(BaseModel):
    lat: float
    lng: float


class Destination(LatLng):
    id: Optional[Any] = None


class DistanceRequest(BaseModel):
    origin: Optional[LatLng] = None
    destinations: Optional[List[Destination]] = None
    mode: str = "walking"
    useTraffic: bool = False


class DistanceResult(BaseModel):
    id: Optional[Any] = None
    distance_text: Optional[str] = None
    distance_m: Optional[int] = None
    duration_text: Optional[str] = None
    duration_s: Optional[int] = None
    duration_in_traffic_text: Optional[str] = None
    status: Optional[str] = None


class DistanceResponse(BaseModel):
    mode: str
    results: List[DistanceResult]


class GeoCandidate(BaseModel):
    id: str
    name: str
    parent_city: Optional[str] = None


class GeoBatchOptions(BaseModel):
    """Batch parameters after clamping"""
    limit: int = 100
    max_age_days: int = 30
    concurrency: int = 2
    force: bool = False
    delay_ms: int = 120


class GeoBatchError(BaseModel):
    id: str
    name: str
    error: str
    error_code: str


class GeoBatchSuccess(BaseModel):
    id: str
    name: str
    lat: float
    lng: float


class GeoBatchSummary(BaseModel):
    requested: int
    candidates_found: int = 0
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    successful_geocodes: List[GeoBatchSuccess] = Field(default_factory=list)
    errors: List[GeoBatchError] = Field(default_factory=list)
    processing_time_seconds: float = 0
    concurrency: int
    delay_ms: int
    force_mode: bool


class GeoBatchResponse(BaseModel):
    data: GeoBatchSummary
    message: str


class FreshGeo(BaseModel):
    """Existing restaurant_geo row that is still inside the freshness window"""
    age_days: float
    row: Dict[str, Any]
