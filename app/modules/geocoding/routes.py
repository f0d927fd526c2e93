from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_user
from app.core.errors import ApiError, validation_error
from app.modules.auth.schemas import CurrentUser
from app.modules.geocoding.client import GeocodeError, GoogleMapsClient, get_maps_client
from app.modules.geocoding.schemas import DistanceRequest, DistanceResponse

router = APIRouter(tags=["geocoding"])


def validate_distance_request(request: DistanceRequest) -> DistanceRequest:
    if request.origin is None or not request.destinations:
        raise validation_error("origin + destinations required", "MISSING_REQUIRED_FIELDS")
    return request


@router.post("/distance", response_model=DistanceResponse)
async def distance(
    request: DistanceRequest = Depends(validate_distance_request),
    user: CurrentUser = Depends(get_current_user),
    maps: GoogleMapsClient = Depends(get_maps_client)
):
    """Walking/driving distance from one origin to each destination"""
    try:
        results = await maps.distance_matrix(
            request.origin, request.destinations, request.mode, request.useTraffic
        )
    except GeocodeError as e:
        status_code = 502 if e.is_transport_error else 400
        raise ApiError(status_code, e.message, e.code)
    return DistanceResponse(mode=request.mode, results=results)
