"""Google Maps client: Geocoding and Distance Matrix over httpx. Sends requests and classifies failures, nothing else."""
import logging
from typing import Any, Dict, List, Optional

import httpx

from app.config import settings
from app.core.errors import missing_config
from app.modules.geocoding.schemas import Destination, DistanceResult, GeocodeResult, LatLng

logger = logging.getLogger(__name__)

# Geocoding API status -> error code
STATUS_CODES: Dict[str, str] = {
    "ZERO_RESULTS": "GEOCODE_NO_RESULTS",
    "OVER_QUERY_LIMIT": "GEOCODE_QUOTA_EXCEEDED",
    "REQUEST_DENIED": "GEOCODE_REQUEST_DENIED",
}

# Failures of the call itself, as opposed to a well-formed negative answer
TRANSPORT_CODES = ("GEOCODE_API_CONNECTION_ERROR", "GEOCODE_API_PARSE_ERROR")


class GeocodeError(Exception):
    def __init__(self, code: str, message: str, status: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status

    @property
    def is_transport_error(self) -> bool:
        return self.code in TRANSPORT_CODES


def build_query(name: str, city: Optional[str]) -> str:
    return f"{(name or '').strip()}, {(city or '').strip()}"


class GoogleMapsClient:
    def __init__(
        self,
        api_key: str,
        geocode_url: Optional[str] = None,
        distance_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.geocode_url = geocode_url or settings.geocode_base_url
        self.distance_url = distance_url or settings.distance_matrix_base_url
        self.timeout = timeout or settings.geocode_timeout_seconds
        self._transport = transport

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Google Maps request failed: {e!r}")
            raise GeocodeError("GEOCODE_API_CONNECTION_ERROR", "Failed to connect to Google Maps API")
        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Google Maps response not JSON (HTTP {response.status_code}): {e}")
            raise GeocodeError("GEOCODE_API_PARSE_ERROR", "Invalid response from Google Maps API")
        if not isinstance(data, dict):
            raise GeocodeError("GEOCODE_API_PARSE_ERROR", "Invalid response from Google Maps API")
        return data

    async def geocode(self, name: str, city: Optional[str]) -> GeocodeResult:
        """Geocode "name, city" and return the first result"""
        query = build_query(name, city)
        data = await self._get_json(self.geocode_url, {"address": query, "key": self.api_key})

        status = data.get("status")
        results = data.get("results") or []
        if status != "OK" or not results:
            message = data.get("error_message") or status or "Unknown geocoding error"
            raise GeocodeError(
                STATUS_CODES.get(status, "GEOCODE_FAILED"),
                f"Geocoding failed: {message}",
                status=status,
            )

        best = results[0]
        geometry = best.get("geometry") or {}
        location = geometry.get("location") or {}
        lat, lng = location.get("lat"), location.get("lng")
        # bool is an int subclass; reject it like any other non-number
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (lat, lng)):
            raise GeocodeError("GEOCODE_NO_COORDINATES", "No valid coordinates in geocoding result", status=status)

        return GeocodeResult(
            lat=lat,
            lng=lng,
            place_id=best.get("place_id") or None,
            formatted_address=best.get("formatted_address") or None,
            accuracy=geometry.get("location_type") or None,
            partial_match=bool(best.get("partial_match", False)),
            query=query,
        )

    async def distance_matrix(
        self,
        origin: LatLng,
        destinations: List[Destination],
        mode: str = "walking",
        use_traffic: bool = False,
    ) -> List[DistanceResult]:
        """One origin to many destinations; results keep the order of destinations"""
        params = {
            "origins": f"{origin.lat},{origin.lng}",
            "destinations": "|".join(f"{d.lat},{d.lng}" for d in destinations),
            "mode": mode,
            "units": "metric",
            "key": self.api_key,
        }
        if mode == "driving" and use_traffic:
            params["departure_time"] = "now"
            params["traffic_model"] = "best_guess"

        data = await self._get_json(self.distance_url, params)
        status = data.get("status")
        if status != "OK":
            raise GeocodeError("DISTANCE_MATRIX_FAILED", data.get("error_message") or status or "Unknown error",
                               status=status)

        rows = data.get("rows") or [{}]
        elements = rows[0].get("elements") or []
        results = []
        for i, dest in enumerate(destinations):
            el = elements[i] if i < len(elements) else {}
            results.append(DistanceResult(
                id=dest.id,
                distance_text=(el.get("distance") or {}).get("text"),
                distance_m=(el.get("distance") or {}).get("value"),
                duration_text=(el.get("duration") or {}).get("text"),
                duration_s=(el.get("duration") or {}).get("value"),
                duration_in_traffic_text=(el.get("duration_in_traffic") or {}).get("text"),
                status=el.get("status"),
            ))
        return results


def get_maps_client() -> GoogleMapsClient:
    """Dependency; 500 MISSING_CONFIG when no API key is set"""
    missing = settings.missing("google_maps_api_key")
    if missing:
        raise missing_config(missing)
    return GoogleMapsClient(settings.google_maps_api_key)
