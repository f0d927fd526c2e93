"""Chainable restaurant query builder shared by the list, search and group-candidate routes."""
import random
from typing import List, Optional

from supabase import Client

from app.modules.restaurants.schemas import FilterResult, PageMeta, RestaurantFilters

LIST_COLUMNS = "id,name,avg_rating,review_count,price_tag,parent_city,cuisines,is_active"

KNOWN_PRICE_TAGS = ("$", "$$ - $$$", "$$$$")
UNKNOWN_PRICE_TAG = "(Unknown)"

DEFAULT_LIMIT = 50
MAX_LIMIT = 100
RANDOM_OVERFETCH = 4
RANDOM_MAX_FETCH = 400


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def validate_rating(rating: Optional[float]) -> Optional[float]:
    if rating is None:
        return None
    return clamp(rating, 0, 5)


def validate_limit(limit: Optional[int]) -> int:
    return int(clamp(limit or DEFAULT_LIMIT, 1, MAX_LIMIT))


def validate_offset(offset: Optional[int]) -> int:
    return max(0, offset or 0)


def validate_cuisines(cuisines) -> List[str]:
    if not isinstance(cuisines, (list, tuple)):
        return []
    return [c for c in cuisines if isinstance(c, str)]


def validate_price_tags(tags) -> List[str]:
    if not isinstance(tags, (list, tuple)):
        return []
    valid = set(KNOWN_PRICE_TAGS) | {UNKNOWN_PRICE_TAG}
    return [t for t in tags if isinstance(t, str) and t in valid]


def postgrest_in_list(values: List[str]) -> str:
    escaped = [v.replace('"', '\\"') for v in values]
    return "(" + ",".join(f'"{v}"' for v in escaped) + ")"


def unknown_price_clause(known: List[str]) -> str:
    """or() clause matching null/blank price tags, plus any known tags given"""
    parts = ["price_tag.is.null", "price_tag.eq."]
    if known:
        parts.append(f"price_tag.in.{postgrest_in_list(known)}")
    return ",".join(parts)


class RestaurantFilterBuilder:
    def __init__(self, supabase: Client, columns: str = LIST_COLUMNS):
        self.supabase = supabase
        self.query = supabase.table("restaurants").select(columns, count="exact")
        self.applied = RestaurantFilters()

    def rating(self, min_rating: Optional[float] = None, max_rating: Optional[float] = None):
        low = validate_rating(min_rating)
        high = validate_rating(max_rating)
        if low is not None:
            self.query = self.query.gte("avg_rating", low)
            self.applied.minRating = low
        if high is not None:
            self.query = self.query.lte("avg_rating", high)
            self.applied.maxRating = high
        if low is not None or high is not None:
            self.query = self.query.not_.is_("avg_rating", "null")
        return self

    def city(self, city: Optional[str] = None):
        if city and city.strip():
            self.query = self.query.ilike("parent_city", f"%{city.strip()}%")
            self.applied.city = city.strip()
        return self

    def cuisines(self, any_of=None, all_of=None):
        valid_any = validate_cuisines(any_of)
        valid_all = validate_cuisines(all_of)
        if valid_any:
            self.query = self.query.overlaps("cuisines", valid_any)
            self.applied.cuisinesAny = valid_any
        if valid_all:
            self.query = self.query.contains("cuisines", valid_all)
            self.applied.cuisinesAll = valid_all
        return self

    def price(self, tags=None, include_unknown: Optional[bool] = False):
        valid = validate_price_tags(tags)
        include_unknown = bool(include_unknown) or UNKNOWN_PRICE_TAG in valid
        known = [t for t in valid if t != UNKNOWN_PRICE_TAG]
        if include_unknown:
            self.query = self.query.or_(unknown_price_clause(known))
        elif known:
            self.query = self.query.in_("price_tag", known)
        if known or include_unknown:
            self.applied.priceTags = known
            self.applied.includeUnknownPrice = include_unknown
        return self

    def search(self, term: Optional[str] = None):
        if term and term.strip():
            self.query = self.query.ilike("name", f"%{term.strip()}%")
            self.applied.nameSearch = term.strip()
        return self

    def active_only(self, active: Optional[bool] = True):
        active = True if active is None else active
        if active:
            self.query = self.query.eq("is_active", True)
        self.applied.activeOnly = active
        return self

    def sort(self, sort_by: Optional[str] = "rating", order: Optional[str] = "desc"):
        sort_by = sort_by or "rating"
        order = order or "desc"
        self.applied.sortBy = sort_by
        self.applied.sortOrder = order
        descending = order != "asc"
        if sort_by == "rating":
            self.query = self.query.order("avg_rating", desc=descending).order("review_count", desc=True)
        elif sort_by == "reviews":
            self.query = self.query.order("review_count", desc=descending).order("avg_rating", desc=True)
        elif sort_by == "name":
            self.query = self.query.order("name", desc=descending)
        # random is shuffled after the fetch
        return self

    def paginate(self, limit: Optional[int] = None, offset: Optional[int] = None):
        valid_limit = validate_limit(limit)
        valid_offset = validate_offset(offset)
        self.applied.limit = valid_limit
        self.applied.offset = valid_offset
        fetch = valid_limit
        if self.applied.sortBy == "random":
            fetch = min(valid_limit * RANDOM_OVERFETCH, RANDOM_MAX_FETCH)
        self.query = self.query.range(valid_offset, valid_offset + fetch - 1)
        return self

    def execute(self) -> FilterResult:
        if self.applied.limit is None:
            self.paginate()
        result = self.query.execute()
        items = list(result.data or [])
        count = result.count or 0
        limit = self.applied.limit
        offset = self.applied.offset

        if self.applied.sortBy == "random":
            random.shuffle(items)
            items = items[:limit]

        return FilterResult(
            items=items,
            count=count,
            filters=self.applied,
            pagination=PageMeta(
                total=count,
                limit=limit,
                offset=offset,
                hasMore=offset + len(items) < count,
            ),
        )

    def apply(self, filters: RestaurantFilters, limit: Optional[int] = None, offset: Optional[int] = None,
              default_sort: str = "rating"):
        """Apply a whole filter set in the canonical order"""
        return self.rating(filters.minRating, filters.maxRating)\
            .city(filters.city)\
            .cuisines(filters.cuisinesAny, filters.cuisinesAll)\
            .price(filters.priceTags, filters.includeUnknownPrice)\
            .search(filters.nameSearch)\
            .active_only(filters.activeOnly)\
            .sort(filters.sortBy or default_sort, filters.sortOrder or "desc")\
            .paginate(limit if limit is not None else filters.limit,
                      offset if offset is not None else filters.offset)


def empty_result(limit: Optional[int] = None, offset: Optional[int] = None) -> FilterResult:
    """A page with no rows, for filter sets that cannot match anything"""
    valid_limit = validate_limit(limit)
    valid_offset = validate_offset(offset)
    return FilterResult(
        items=[],
        count=0,
        filters=RestaurantFilters(limit=valid_limit, offset=valid_offset),
        pagination=PageMeta(total=0, limit=valid_limit, offset=valid_offset, hasMore=False),
    )
