from pydantic import BaseModel, Field
from typing import Optional, List, Any, Dict, Literal

SortBy = Literal["rating", "reviews", "name", "random"]
SortOrder = Literal["asc", "desc"]


class RestaurantFilters(BaseModel):
    """Filter set accepted by the list/search endpoints; also echoed back as the applied filters"""
    minRating: Optional[float] = None
    maxRating: Optional[float] = None
    city: Optional[str] = None
    cuisinesAny: Optional[List[str]] = None
    cuisinesAll: Optional[List[str]] = None
    priceTags: Optional[List[str]] = None
    includeUnknownPrice: Optional[bool] = None
    nameSearch: Optional[str] = None
    activeOnly: Optional[bool] = None
    sortBy: Optional[SortBy] = None
    sortOrder: Optional[SortOrder] = None
    limit: Optional[int] = None
    offset: Optional[int] = None


class Pagination(BaseModel):
    limit: Optional[int] = None
    offset: Optional[int] = None


class FilterRequest(BaseModel):
    filters: RestaurantFilters = Field(default_factory=RestaurantFilters)
    pagination: Pagination = Field(default_factory=Pagination)


class SearchRequest(FilterRequest):
    query: Optional[str] = None


class PageMeta(BaseModel):
    total: int
    limit: int
    offset: int
    hasMore: bool
    query: Optional[str] = None


class FilterResult(BaseModel):
    items: List[Dict[str, Any]]
    count: int
    filters: RestaurantFilters
    pagination: PageMeta


class RestaurantPage(BaseModel):
    data: List[Dict[str, Any]]
    meta: PageMeta
    filters: RestaurantFilters


class SimpleFilters(BaseModel):
    """Body for /restaurants/filter/search (snake_case, optional radius)"""
    min_rating: Optional[float] = None
    max_rating: Optional[float] = None
    city: Optional[str] = None
    price_tags: Optional[List[str]] = None
    active_only: bool = True
    random: bool = False
    center_lat: Optional[float] = None
    center_lng: Optional[float] = None
    radius_km: Optional[float] = None

    @property
    def has_radius(self) -> bool:
        return (
            self.center_lat is not None
            and self.center_lng is not None
            and self.radius_km is not None
            and self.radius_km > 0
        )


class SimpleSearchRequest(BaseModel):
    filters: SimpleFilters = Field(default_factory=SimpleFilters)
    limit: int = 12
    offset: int = 0
