import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from supabase import Client

from app.config import settings
from app.core.errors import ApiError, is_no_rows, is_unique_violation, not_found, validation_error
from app.modules.admin.schemas import RestaurantInput, RestaurantListMeta
from app.modules.geocoding.client import GeocodeError, GoogleMapsClient
from app.modules.geocoding.service import GeoService
from postgrest.exceptions import APIError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
TEXT_FIELDS = ("price_tag", "parent_city", "address", "phone", "website", "description")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _trimmed(value: Optional[str]) -> Optional[str]:
    return (value.strip() or None) if isinstance(value, str) else None


def validate_restaurant(fields: Dict[str, Any], partial: bool = False) -> None:
    """Raise 422 with a field-specific code for the first invalid field.

    On create the name is required; on update only the fields present are checked.
    """
    name = fields.get("name")
    if not partial and not name:
        raise validation_error("Missing required fields: name", "MISSING_REQUIRED_FIELDS", missingFields=["name"])
    if "name" in fields and (not isinstance(name, str) or len(name.strip()) < 2):
        raise validation_error("Restaurant name must be at least 2 characters long", "INVALID_RESTAURANT_NAME")

    rating = fields.get("avg_rating")
    if rating is not None and (not _is_number(rating) or rating < 0 or rating > 5):
        raise validation_error("Rating must be a number between 0 and 5", "INVALID_RATING")

    reviews = fields.get("review_count")
    if reviews is not None and (not _is_number(reviews) or reviews < 0):
        raise validation_error("Review count must be a non-negative number", "INVALID_REVIEW_COUNT")

    cuisines = fields.get("cuisines")
    if cuisines is not None and not isinstance(cuisines, list):
        raise validation_error("Cuisines must be an array", "INVALID_CUISINES_FORMAT")

    active = fields.get("is_active")
    if active is not None and not isinstance(active, bool):
        raise validation_error("is_active must be a boolean", "INVALID_ACTIVE_STATUS")


class AdminRestaurantService:
    """Restaurant CRUD with the service-role client"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_restaurant(self, data: RestaurantInput) -> Dict[str, Any]:
        fields = data.model_dump(exclude_unset=True)
        validate_restaurant(fields)

        row = {
            "name": fields["name"].strip(),
            "avg_rating": fields.get("avg_rating") or None,
            "review_count": fields.get("review_count") or None,
            "price_tag": _trimmed(fields.get("price_tag")),
            "parent_city": _trimmed(fields.get("parent_city")),
            "cuisines": fields.get("cuisines") or None,
            "is_active": fields["is_active"] if fields.get("is_active") is not None else True,
        }
        for key in ("address", "phone", "website", "description"):
            if fields.get(key):
                row[key] = fields[key].strip()

        try:
            result = self.supabase.table("restaurants").insert(row).execute()
        except APIError as e:
            if is_unique_violation(e):
                raise ApiError(409, "Restaurant with this name already exists", "DUPLICATE_RESTAURANT")
            logger.error(f"Restaurant creation error: {e.message}")
            raise ApiError(400, e.message or "Failed to create restaurant", "CREATION_FAILED")

        if not result.data:
            raise ApiError(400, "Failed to create restaurant", "CREATION_FAILED")
        logger.info(f"Restaurant created: {row['name']}")
        return result.data[0]

    def list_restaurants(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        include_inactive: bool = False,
        search: Optional[str] = None,
    ) -> Tuple[list, RestaurantListMeta]:
        limit = min(MAX_PAGE_SIZE, max(1, limit or DEFAULT_PAGE_SIZE))
        offset = max(0, offset or 0)
        search = search.strip() if search and search.strip() else None

        query = self.supabase.table("restaurants")\
            .select("*", count="exact")\
            .order("created_at", desc=True)
        if not include_inactive:
            query = query.eq("is_active", True)
        if search:
            query = query.ilike("name", f"%{search}%")
        result = query.range(offset, offset + limit - 1).execute()

        rows = result.data or []
        total = result.count or 0
        meta = RestaurantListMeta(
            total=total,
            limit=limit,
            offset=offset,
            hasMore=offset + len(rows) < total,
            includeInactive=include_inactive,
            searchTerm=search,
        )
        return rows, meta

    def get_restaurant(self, restaurant_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("restaurants")\
                .select("*")\
                .eq("id", restaurant_id)\
                .single()\
                .execute()
        except APIError as e:
            if is_no_rows(e):
                raise not_found("Restaurant not found", "RESTAURANT_NOT_FOUND")
            raise ApiError(400, e.message or "Failed to fetch restaurant", "FETCH_ERROR")
        if not result.data:
            raise not_found("Restaurant not found", "RESTAURANT_NOT_FOUND")
        return result.data

    def update_restaurant(self, restaurant_id: str, data: RestaurantInput) -> Dict[str, Any]:
        fields = data.model_dump(exclude_unset=True)
        validate_restaurant(fields, partial=True)

        update: Dict[str, Any] = {"updated_at": datetime.now(timezone.utc).isoformat()}
        for key, value in fields.items():
            if key == "name":
                update[key] = value.strip()
            elif key in TEXT_FIELDS:
                update[key] = _trimmed(value)
            else:
                update[key] = value

        try:
            result = self.supabase.table("restaurants")\
                .update(update)\
                .eq("id", restaurant_id)\
                .execute()
        except APIError as e:
            if is_unique_violation(e):
                raise ApiError(409, "Restaurant with this name already exists", "DUPLICATE_RESTAURANT")
            raise ApiError(400, e.message or "Failed to update restaurant", "UPDATE_FAILED")
        if not result.data:
            raise not_found("Restaurant not found", "RESTAURANT_NOT_FOUND")
        return result.data[0]

    def delete_restaurant(self, restaurant_id: str) -> Dict[str, Any]:
        existing = self.get_restaurant(restaurant_id)
        self.supabase.table("restaurants")\
            .delete()\
            .eq("id", restaurant_id)\
            .execute()
        logger.info(f"Restaurant deleted: {existing.get('name')} ({restaurant_id})")
        return {
            "message": f'Restaurant "{existing.get("name")}" deleted successfully',
            "deletedId": restaurant_id,
        }


async def geocode_restaurant(
    supabase: Client,
    maps: GoogleMapsClient,
    restaurant_id: str,
    name: str,
    city: str,
    force: bool = False,
) -> Tuple[int, Dict[str, Any]]:
    """Geocode one restaurant and store the result. Returns (status_code, body)."""
    geo = GeoService(supabase)
    restaurant = geo.get_restaurant(restaurant_id)

    if not force:
        try:
            fresh = geo.get_fresh_geo(restaurant_id, settings.geo_fresh_days)
        except Exception as e:
            logger.error(f"Geo fetch error for {restaurant_id}: {e}")
            raise ApiError(500, "Failed to check existing geo data", "GEO_CHECK_ERROR")
        if fresh:
            return 200, {
                "data": {
                    "restaurant_id": restaurant_id,
                    "lat": fresh.row.get("lat"),
                    "lng": fresh.row.get("lng"),
                    "formatted_address": fresh.row.get("formatted_address"),
                    "skipped": True,
                    "reason": f"Data is fresh (less than {settings.geo_fresh_days} days old)",
                    "age_days": round(fresh.age_days, 1),
                },
                "message": "Skipped geocoding due to fresh data",
            }

    try:
        result = await maps.geocode(name, city)
    except GeocodeError as e:
        if e.is_transport_error:
            raise ApiError(502, e.message, e.code)
        if e.code == "GEOCODE_NO_COORDINATES":
            raise ApiError(400, e.message, e.code)
        raise ApiError(400, e.message, e.code, geocode_status=e.status)

    try:
        row = geo.upsert_geo(restaurant_id, result, detailed=True)
    except APIError as e:
        logger.error(f"Geo upsert error for {restaurant_id}: {e.message}")
        raise ApiError(400, "Failed to save geocoding data", "GEO_UPSERT_ERROR", details=e.message)

    return 201, {
        "data": {
            "restaurant_id": restaurant_id,
            "restaurant_name": restaurant.get("name"),
            "lat": row["lat"],
            "lng": row["lng"],
            "place_id": row["place_id"],
            "formatted_address": row["formatted_address"],
            "accuracy": row["accuracy"],
            "partial_match": row["partial_match"],
            "provider": row["provider"],
            "query_used": row["query_used"],
            "updated_at": row["updated_at"],
            "forced": force,
        },
        "message": "Restaurant location geocoded successfully",
    }
