from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from app.config import settings
from app.core.dependencies import get_service_supabase, require_admin
from app.core.errors import ApiError, validation_error
from app.modules.admin.schemas import (
    GeoBatchRequest, GeoHealthResponse, GeoUpsertRequest, RestaurantInput, RestaurantListResponse
)
from app.modules.admin.service import AdminRestaurantService, geocode_restaurant
from app.modules.auth.schemas import CurrentUser
from app.modules.geocoding.batch import clamp_batch_options, run_geo_batch
from app.modules.geocoding.client import GoogleMapsClient, get_maps_client
from app.modules.geocoding.schemas import GeoBatchResponse
from app.modules.geocoding.service import GeoService
from postgrest.exceptions import APIError
from supabase import Client
from typing import Optional
import asyncio
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def get_admin_restaurant_service(supabase: Client = Depends(get_service_supabase)) -> AdminRestaurantService:
    return AdminRestaurantService(supabase)


def _require_bool_force(force) -> bool:
    if force is None:
        return False
    if not isinstance(force, bool):
        raise validation_error("force must be a boolean", "INVALID_FORCE_TYPE")
    return force


def validate_geo_upsert(body: GeoUpsertRequest) -> GeoUpsertRequest:
    """Input checks run before auth so malformed requests fail fast"""
    missing = [f for f in ("restaurant_id", "name", "city") if not getattr(body, f)]
    if missing:
        raise validation_error(
            "restaurant_id, name, and city are required",
            "MISSING_REQUIRED_FIELDS",
            missingFields=missing,
        )
    if not all(isinstance(getattr(body, f), str) for f in ("restaurant_id", "name", "city")):
        raise validation_error("restaurant_id, name, and city must be strings", "INVALID_INPUT_TYPE")
    body.force = _require_bool_force(body.force)
    return body


def validate_geo_batch(body: Optional[GeoBatchRequest] = None) -> GeoBatchRequest:
    body = body or GeoBatchRequest()
    body.force = _require_bool_force(body.force)
    return body


# ==================== RESTAURANTS ====================

@router.post("/restaurants", status_code=201)
async def create_restaurant(
    data: RestaurantInput,
    admin: CurrentUser = Depends(require_admin),
    service: AdminRestaurantService = Depends(get_admin_restaurant_service)
):
    restaurant = service.create_restaurant(data)
    return {"data": restaurant, "message": "Restaurant created successfully"}


@router.get("/restaurants", response_model=RestaurantListResponse)
async def list_restaurants(
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    includeInactive: bool = False,
    search: Optional[str] = None,
    admin: CurrentUser = Depends(require_admin),
    service: AdminRestaurantService = Depends(get_admin_restaurant_service)
):
    """All restaurants, newest first; inactive ones only on request"""
    rows, meta = service.list_restaurants(limit, offset, includeInactive, search)
    return {"data": rows, "meta": meta}


@router.get("/restaurants/{restaurant_id}")
async def get_restaurant(
    restaurant_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: AdminRestaurantService = Depends(get_admin_restaurant_service)
):
    return {"data": service.get_restaurant(restaurant_id)}


@router.put("/restaurants/{restaurant_id}")
async def update_restaurant(
    restaurant_id: str,
    data: RestaurantInput,
    admin: CurrentUser = Depends(require_admin),
    service: AdminRestaurantService = Depends(get_admin_restaurant_service)
):
    restaurant = service.update_restaurant(restaurant_id, data)
    return {"data": restaurant, "message": "Restaurant updated successfully"}


@router.delete("/restaurants/{restaurant_id}")
async def delete_restaurant(
    restaurant_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: AdminRestaurantService = Depends(get_admin_restaurant_service)
):
    return service.delete_restaurant(restaurant_id)


# ==================== GEOCODING ====================

@router.post("/geo-upsert")
async def geo_upsert(
    body: GeoUpsertRequest = Depends(validate_geo_upsert),
    admin: CurrentUser = Depends(require_admin),
    maps: GoogleMapsClient = Depends(get_maps_client),
    supabase: Client = Depends(get_service_supabase)
):
    """Geocode a single restaurant; fresh coordinates are kept unless force is set"""
    status_code, payload = await geocode_restaurant(
        supabase, maps, body.restaurant_id, body.name, body.city, body.force
    )
    return JSONResponse(status_code=status_code, content=payload)


@router.post("/geo-batch", response_model=GeoBatchResponse)
async def geo_batch(
    body: GeoBatchRequest = Depends(validate_geo_batch),
    admin: CurrentUser = Depends(require_admin),
    maps: GoogleMapsClient = Depends(get_maps_client),
    supabase: Client = Depends(get_service_supabase)
):
    """Geocode restaurants with missing or stale coordinates using a bounded worker pool"""
    options = clamp_batch_options(body.limit, body.maxAgeDays, body.concurrency, body.force, body.delayMs)
    try:
        candidates = await asyncio.to_thread(
            GeoService(supabase).list_candidates, options.limit, options.max_age_days
        )
    except APIError as e:
        logger.error(f"list_restaurants_needing_geo failed: {e.message}")
        raise ApiError(500, "Failed to list restaurants needing geocoding", "CANDIDATE_LIST_ERROR",
                       details=e.message)
    summary = await run_geo_batch(supabase, maps, options, candidates)

    if not summary.candidates_found:
        message = "No candidate restaurants found for geocoding"
    else:
        message = (
            f"Batch geocoding completed: {summary.processed} processed, "
            f"{summary.skipped} skipped, {summary.failed} failed"
        )
    logger.info(f"{message} (admin {admin.id})")
    return {"data": summary, "message": message}


@router.get("/geo-batch/health", response_model=GeoHealthResponse)
async def geo_batch_health():
    """Which configuration the geocoding routes need is present"""
    return GeoHealthResponse(
        has_SUPABASE_URL=bool(settings.supabase_url),
        has_SERVICE_ROLE=bool(settings.supabase_service_role_key),
        has_GOOGLE_KEY=bool(settings.google_maps_api_key),
    )
