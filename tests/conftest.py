import httpx
import pytest
from fastapi.testclient import TestClient

from app.core import dependencies
from app.database import supabase_client
from app.main import app
from app.modules.auth import service as auth_service
from app.modules.auth.schemas import CurrentUser
from app.modules.geocoding import client as maps_module
from app.modules.geocoding.client import GoogleMapsClient
from tests.fakes import FakeSupabase


def make_user(user_id: str = "user-1") -> CurrentUser:
    return CurrentUser(id=user_id, email=f"{user_id}@gastroswipe.io", access_token=f"token-{user_id}")


def geocode_ok(lat=41.39, lng=2.17, **extra):
    result = {
        "geometry": {"location": {"lat": lat, "lng": lng}, "location_type": "ROOFTOP"},
        "place_id": "place-123",
        "formatted_address": "Carrer de Test 1, Barcelona",
    }
    result.update(extra)
    return {"status": "OK", "results": [result]}


def maps_client(handler) -> GoogleMapsClient:
    """GoogleMapsClient whose HTTP calls are answered by handler(request) -> httpx.Response"""
    return GoogleMapsClient(
        "test-key",
        geocode_url="https://maps.test/geocode/json",
        distance_url="https://maps.test/distancematrix/json",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


class Api:
    """Test client plus the fakes behind it"""

    def __init__(self, fake: FakeSupabase):
        self.fake = fake
        self.user = make_user()
        self.maps = maps_client(lambda request: httpx.Response(200, json=geocode_ok()))
        self.client = TestClient(app, raise_server_exceptions=False)

    def login(self, user_id: str) -> CurrentUser:
        self.user = make_user(user_id)
        return self.user

    def make_admin(self, user_id: str = None) -> None:
        self.fake.seed("admins", {"user_id": user_id or self.user.id})

    def join(self, group_id: str, user_id: str = None, role: str = "member") -> None:
        self.fake.seed("group_members", {"group_id": group_id, "user_id": user_id or self.user.id, "role": role})

    def __getattr__(self, name):
        # get/post/put/delete go straight to the TestClient
        return getattr(self.client, name)


@pytest.fixture
def fake():
    auth_service._AUTH_USER_CACHE.clear()
    return FakeSupabase()


@pytest.fixture
def api(fake):
    api = Api(fake)
    app.dependency_overrides[dependencies.get_current_user] = lambda: api.user
    app.dependency_overrides[dependencies.get_user_supabase] = lambda: fake
    app.dependency_overrides[dependencies.get_request_supabase] = lambda: fake
    app.dependency_overrides[dependencies.get_service_supabase] = lambda: fake
    app.dependency_overrides[supabase_client.get_supabase] = lambda: fake
    app.dependency_overrides[maps_module.get_maps_client] = lambda: api.maps
    yield api
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_api(fake):
    """No user override: authentication runs for real against the fake auth"""
    api = Api(fake)
    app.dependency_overrides[dependencies.get_user_supabase] = lambda: fake
    app.dependency_overrides[dependencies.get_service_supabase] = lambda: fake
    app.dependency_overrides[supabase_client.get_supabase] = lambda: fake
    app.dependency_overrides[maps_module.get_maps_client] = lambda: api.maps
    yield api
    app.dependency_overrides.clear()
