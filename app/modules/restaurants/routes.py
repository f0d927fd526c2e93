from fastapi import APIRouter, Depends, Query
from app.core.dependencies import get_request_supabase
from app.modules.restaurants.schemas import (
    FilterRequest, RestaurantFilters, RestaurantPage, SearchRequest, SimpleSearchRequest, SortBy, SortOrder
)
from app.modules.restaurants.service import RestaurantService
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/restaurants", tags=["restaurants"])


def get_restaurant_service(supabase: Client = Depends(get_request_supabase)) -> RestaurantService:
    return RestaurantService(supabase)


@router.get("", response_model=RestaurantPage)
async def list_restaurants(
    minRating: Optional[float] = None,
    maxRating: Optional[float] = None,
    city: Optional[str] = None,
    search: Optional[str] = None,
    activeOnly: bool = True,
    sortBy: SortBy = "rating",
    sortOrder: SortOrder = "desc",
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    cuisineAny: List[str] = Query(default=[]),
    cuisineAll: List[str] = Query(default=[]),
    priceTag: List[str] = Query(default=[]),
    service: RestaurantService = Depends(get_restaurant_service)
):
    """Filtered, paginated restaurant list (query-string form)"""
    filters = RestaurantFilters(
        minRating=minRating,
        maxRating=maxRating,
        city=city,
        nameSearch=search,
        activeOnly=activeOnly,
        sortBy=sortBy,
        sortOrder=sortOrder,
        cuisinesAny=cuisineAny or None,
        cuisinesAll=cuisineAll or None,
        priceTags=priceTag or None,
    )
    result = service.filter(FilterRequest(filters=filters, pagination={"limit": limit, "offset": offset}))
    return service.page(result)


@router.post("", response_model=RestaurantPage)
async def filter_restaurants(
    body: FilterRequest,
    service: RestaurantService = Depends(get_restaurant_service)
):
    """Filtered, paginated restaurant list (JSON body form)"""
    return service.page(service.filter(body))


@router.get("/search", response_model=RestaurantPage)
async def search_restaurants(
    q: Optional[str] = None,
    city: Optional[str] = None,
    minRating: Optional[float] = None,
    maxRating: Optional[float] = None,
    activeOnly: bool = True,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    service: RestaurantService = Depends(get_restaurant_service)
):
    filters = RestaurantFilters(city=city, minRating=minRating, maxRating=maxRating, activeOnly=activeOnly)
    return service.page(service.search(q, filters, limit, offset))


@router.post("/search", response_model=RestaurantPage)
async def search_restaurants_post(
    body: SearchRequest,
    service: RestaurantService = Depends(get_restaurant_service)
):
    return service.page(service.search(body.query, body.filters, body.pagination.limit, body.pagination.offset))


@router.get("/meta/cuisines")
async def list_cuisines(service: RestaurantService = Depends(get_restaurant_service)):
    """Distinct cuisines across the catalogue"""
    return {"items": service.list_cuisines()}


@router.get("/meta/price-tags")
async def list_price_tags(service: RestaurantService = Depends(get_restaurant_service)):
    return {"items": service.list_price_tags()}


@router.get("/filter/rating")
async def filter_by_rating(
    min: Optional[float] = None,
    max: Optional[float] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    activeOnly: bool = True,
    service: RestaurantService = Depends(get_restaurant_service)
):
    """Restaurants with a rating inside [min, max]; bounds are clamped to 0..5 and swapped if inverted"""
    return service.filter_by_rating(min, max, limit, offset, activeOnly)


@router.get("/filter/price")
async def filter_by_price(
    tag: List[str] = Query(default=[]),
    tags: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    activeOnly: bool = True,
    service: RestaurantService = Depends(get_restaurant_service)
):
    """Restaurants by price tag; ?tag= may repeat and ?tags= takes a comma list"""
    requested = list(tag) + [t.strip() for t in (tags or "").split(",") if t.strip()]
    return service.filter_by_price(requested, limit, offset, activeOnly)


@router.get("/filter/random")
async def random_restaurants(
    limit: Optional[int] = None,
    service: RestaurantService = Depends(get_restaurant_service)
):
    return service.random(limit)


@router.post("/filter/search")
async def filter_search(
    body: SimpleSearchRequest,
    service: RestaurantService = Depends(get_restaurant_service)
):
    """Swipe-deck search; switches to a radius query when a center and radius are given"""
    return service.simple_search(body)
