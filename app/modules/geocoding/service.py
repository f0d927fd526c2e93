import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter
from supabase import Client

from app.core.errors import ApiError, is_no_rows, not_found
from app.modules.geocoding.schemas import FreshGeo, GeoCandidate, GeocodeResult
from postgrest.exceptions import APIError

logger = logging.getLogger(__name__)

PROVIDER = "google"
SECONDS_PER_DAY = 60 * 60 * 24
_TIMESTAMP = TypeAdapter(datetime)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    # PostgREST trims trailing zeros from fractional seconds
    ts = _TIMESTAMP.validate_python(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def age_in_days(updated_at: Any, now: Optional[datetime] = None) -> Optional[float]:
    ts = _parse_timestamp(updated_at)
    if ts is None:
        return None
    now = now or datetime.now(timezone.utc)
    return (now - ts).total_seconds() / SECONDS_PER_DAY


class GeoService:
    """restaurant_geo reads and writes. Uses the service-role client."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_restaurant(self, restaurant_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("restaurants")\
                .select("id, name")\
                .eq("id", restaurant_id)\
                .single()\
                .execute()
        except APIError as e:
            if is_no_rows(e):
                raise not_found("Restaurant not found", "RESTAURANT_NOT_FOUND")
            raise ApiError(400, e.message or "Failed to fetch restaurant", "RESTAURANT_FETCH_ERROR")
        if not result.data:
            raise not_found("Restaurant not found", "RESTAURANT_NOT_FOUND")
        return result.data

    def get_fresh_geo(self, restaurant_id: str, max_age_days: float) -> Optional[FreshGeo]:
        """The existing row if younger than max_age_days; None when missing or stale.

        Lookup errors other than "no rows" are raised to the caller.
        """
        try:
            result = self.supabase.table("restaurant_geo")\
                .select("updated_at, lat, lng, formatted_address")\
                .eq("restaurant_id", restaurant_id)\
                .limit(1)\
                .execute()
        except APIError as e:
            if is_no_rows(e):
                return None
            raise
        if not result.data:
            return None

        row = result.data[0]
        age = age_in_days(row.get("updated_at"))
        if age is None or age >= max_age_days:
            return None
        return FreshGeo(age_days=age, row=row)

    def upsert_geo(self, restaurant_id: str, geo: GeocodeResult, detailed: bool = False) -> Dict[str, Any]:
        """Write the geocode for a restaurant; one row per restaurant"""
        row = {
            "restaurant_id": restaurant_id,
            "lat": geo.lat,
            "lng": geo.lng,
            "place_id": geo.place_id,
            "formatted_address": geo.formatted_address,
            "accuracy": geo.accuracy,
            "provider": PROVIDER,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        if detailed:
            row["partial_match"] = geo.partial_match
            row["query_used"] = geo.query
        self.supabase.table("restaurant_geo")\
            .upsert(row, on_conflict="restaurant_id")\
            .execute()
        return row

    def list_candidates(self, limit: int, max_age_days: float) -> List[GeoCandidate]:
        result = self.supabase.rpc("list_restaurants_needing_geo", {
            "p_limit": limit,
            "p_max_age_days": max_age_days,
        }).execute()
        return [GeoCandidate(**row) for row in result.data or []]
