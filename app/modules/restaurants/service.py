import logging
from typing import List, Optional

from supabase import Client

from app.core.errors import validation_error
from app.modules.restaurants.filters import (
    KNOWN_PRICE_TAGS, LIST_COLUMNS, UNKNOWN_PRICE_TAG, RestaurantFilterBuilder, clamp,
    unknown_price_clause, validate_limit, validate_offset
)
from app.modules.restaurants.schemas import (
    FilterRequest, FilterResult, RestaurantFilters, SimpleSearchRequest
)

logger = logging.getLogger(__name__)

SEARCH_DEFAULT_LIMIT = 20
RANDOM_DEFAULT_LIMIT = 10


class RestaurantService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_filter(self) -> RestaurantFilterBuilder:
        return RestaurantFilterBuilder(self.supabase)

    def filter(self, request: FilterRequest) -> FilterResult:
        """Run a full filter set with pagination"""
        return self.create_filter()\
            .apply(request.filters, request.pagination.limit, request.pagination.offset)\
            .execute()

    def search(self, query: Optional[str], filters: Optional[RestaurantFilters] = None,
               limit: Optional[int] = None, offset: Optional[int] = None) -> FilterResult:
        """Name search with optional extra filters; the query is mandatory"""
        if not query or not query.strip():
            raise validation_error("Search query is required", "MISSING_SEARCH_QUERY")

        filters = filters.model_copy() if filters else RestaurantFilters()
        filters.nameSearch = query.strip()
        result = self.create_filter()\
            .apply(filters, limit or filters.limit or SEARCH_DEFAULT_LIMIT, offset, default_sort="rating")\
            .execute()
        result.pagination.query = query.strip()
        return result

    def list_cuisines(self) -> List[str]:
        result = self.supabase.rpc("list_cuisines", {}).execute()
        return [self._rpc_value(row, "cuisine") for row in result.data or []]

    def list_price_tags(self) -> List[str]:
        result = self.supabase.rpc("list_price_tags", {}).execute()
        return [self._rpc_value(row, "price_tag") for row in result.data or []]

    @staticmethod
    def _rpc_value(row, key: str):
        # setof text comes back either as scalars or as single-key rows
        if isinstance(row, dict):
            return row.get(key, next(iter(row.values()), None))
        return row

    def filter_by_rating(self, min_rating: Optional[float], max_rating: Optional[float],
                         limit: Optional[int], offset: Optional[int], active_only: bool = True) -> dict:
        low = clamp(min_rating if min_rating is not None else 0, 0, 5)
        high = clamp(max_rating if max_rating is not None else 5, 0, 5)
        if low > high:
            low, high = high, low

        valid_limit = validate_limit(limit)
        valid_offset = validate_offset(offset)
        query = self.supabase.table("restaurants")\
            .select(LIST_COLUMNS, count="exact")\
            .gte("avg_rating", low)\
            .lte("avg_rating", high)\
            .not_.is_("avg_rating", "null")
        if active_only:
            query = query.eq("is_active", True)
        result = query\
            .order("avg_rating", desc=True)\
            .order("review_count", desc=True)\
            .range(valid_offset, valid_offset + valid_limit - 1)\
            .execute()
        return {
            "items": result.data or [],
            "count": result.count or 0,
            "min": low,
            "max": high,
            "limit": valid_limit,
            "offset": valid_offset,
        }

    def filter_by_price(self, tags: List[str], limit: Optional[int], offset: Optional[int],
                        active_only: bool = True) -> dict:
        include_unknown = UNKNOWN_PRICE_TAG in tags
        known = [t for t in tags if t in KNOWN_PRICE_TAGS]
        valid_limit = validate_limit(limit)
        valid_offset = validate_offset(offset)

        query = self.supabase.table("restaurants").select(LIST_COLUMNS, count="exact")
        if active_only:
            query = query.eq("is_active", True)
        if include_unknown:
            query = query.or_(unknown_price_clause(known))
        elif known:
            query = query.in_("price_tag", known)
        result = query\
            .order("avg_rating", desc=True)\
            .order("review_count", desc=True)\
            .order("name")\
            .range(valid_offset, valid_offset + valid_limit - 1)\
            .execute()
        return {
            "items": result.data or [],
            "count": result.count or 0,
            "limit": valid_limit,
            "offset": valid_offset,
            "tags": tags,
        }

    def random(self, limit: Optional[int]) -> dict:
        valid_limit = int(clamp(limit or RANDOM_DEFAULT_LIMIT, 1, 100))
        result = self.supabase.rpc("get_random_restaurants", {"p_limit": valid_limit}).execute()
        return {"items": result.data or [], "limit": valid_limit}

    def simple_search(self, request: SimpleSearchRequest) -> dict:
        """Filter search used by the swipe deck; radius search goes through PostGIS"""
        f = request.filters
        limit = validate_limit(request.limit)
        offset = validate_offset(request.offset)

        if f.has_radius:
            logger.info(f"Radius search around ({f.center_lat}, {f.center_lng}) r={f.radius_km}km")
            result = self.supabase.rpc("search_restaurants_by_radius", {
                "p_lat": f.center_lat,
                "p_lng": f.center_lng,
                "p_radius_km": f.radius_km,
                "p_min_rating": f.min_rating,
                "p_max_rating": f.max_rating,
                "p_city": f.city,
                "p_price_tags": f.price_tags or None,
                "p_active_only": f.active_only,
                "p_random": f.random,
                "p_limit": limit,
                "p_offset": offset,
            }).execute()
            items = result.data or []
            return {"items": items, "count": len(items)}

        filters = RestaurantFilters(
            minRating=f.min_rating,
            maxRating=f.max_rating,
            city=f.city,
            priceTags=f.price_tags,
            activeOnly=f.active_only,
            sortBy="random" if f.random else "rating",
        )
        result = self.create_filter().apply(filters, limit, offset).execute()
        return {"items": result.items, "count": result.count}

    @staticmethod
    def page(result: FilterResult) -> dict:
        return {"data": result.items, "meta": result.pagination, "filters": result.filters}
