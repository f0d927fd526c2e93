from types import SimpleNamespace

import pytest

from app.config import settings
from app.modules.auth.service import resolve_public_origin

AUTH_USER = SimpleNamespace(
    id="user-1",
    email="ana@gastroswipe.io",
    user_metadata={"full_name": "Ana"},
    created_at="2024-05-01T10:00:00Z",
    email_confirmed_at=None,
    last_sign_in_at=None,
)


@pytest.fixture
def auth(anonymous_api, fake):
    fake.auth.users["jwt-1"] = AUTH_USER
    return anonymous_api


def bearer(token="jwt-1"):
    return {"Authorization": f"Bearer {token}"}


def test_sign_up(auth, fake):
    fake.auth.sign_up_result = SimpleNamespace(user=AUTH_USER)

    response = auth.post("/api/auth/users", json={
        "email": " Ana@GastroSwipe.io ", "password": "secret1", "full_name": " Ana ",
    })

    body = response.json()
    assert response.status_code == 201
    assert body["user"]["id"] == "user-1"
    assert body["user"]["full_name"] == "Ana"
    assert body["user"]["email_confirmed"] is False
    assert body["message"] == "User created, please check email for verification"


@pytest.mark.parametrize("payload, code", [
    ({"email": "a@gastroswipe.io"}, "MISSING_REQUIRED_FIELDS"),
    ({"email": "a@gastroswipe.io", "password": "123"}, "PASSWORD_TOO_SHORT"),
    ({"email": "not-an-email", "password": "secret1"}, "INVALID_EMAIL_FORMAT"),
])
def test_sign_up_validation(auth, payload, code):
    response = auth.post("/api/auth/users", json=payload)

    assert response.status_code == 422
    assert response.json()["code"] == code


def test_sign_up_existing_email(auth, fake):
    fake.auth.error = Exception("User already registered")

    response = auth.post("/api/auth/users", json={"email": "a@gastroswipe.io", "password": "secret1"})

    assert response.status_code == 409
    assert response.json()["code"] == "EMAIL_ALREADY_EXISTS"


def test_sign_in_sets_cookie_and_redacts_token(auth, fake):
    fake.auth.sign_in_result = SimpleNamespace(
        user=AUTH_USER,
        session=SimpleNamespace(access_token="jwt-1", expires_at=1700000000),
    )

    response = auth.post("/api/auth/sessions", json={"email": "ana@gastroswipe.io", "password": "secret1"})

    body = response.json()
    assert response.status_code == 200
    assert body["session"] == {"access_token": "[REDACTED]", "expires_at": 1700000000}
    assert response.cookies.get(settings.auth_cookie_name) == "jwt-1"

    # the cookie alone authenticates later requests
    session = auth.get("/api/auth/sessions")
    assert session.status_code == 200
    assert session.json()["user"]["email"] == "ana@gastroswipe.io"


def test_sign_in_bad_credentials(auth, fake):
    fake.auth.error = Exception("Invalid login credentials")

    response = auth.post("/api/auth/sessions", json={"email": "ana@gastroswipe.io", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"


def test_sign_in_missing_credentials(auth):
    response = auth.post("/api/auth/sessions", json={"email": "ana@gastroswipe.io"})

    assert response.status_code == 422
    assert response.json()["code"] == "MISSING_CREDENTIALS"


def test_session_with_bearer_token(auth):
    body = auth.get("/api/auth/sessions", headers=bearer()).json()

    assert body == {
        "user": {
            "id": "user-1", "email": "ana@gastroswipe.io", "full_name": "Ana",
            "created_at": "2024-05-01T10:00:00Z", "email_confirmed": None, "last_sign_in_at": None,
        },
        "authenticated": True,
    }


def test_session_without_token(auth):
    response = auth.get("/api/auth/sessions")

    assert response.status_code == 401
    assert response.json()["code"] == "NO_SESSION"


def test_invalid_token(auth):
    response = auth.get("/api/user/avatar", headers=bearer("forged"))

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid or expired token", "code": "UNAUTHORIZED"}


def test_sign_out(auth, fake):
    response = auth.delete("/api/auth/sessions", headers=bearer())

    assert response.status_code == 200
    assert response.json() == {"message": "Session terminated successfully"}
    assert fake.auth.admin.signed_out == ["jwt-1"]


def test_password_reset_from_own_origin(auth, fake):
    response = auth.post(
        "/api/auth/password-reset",
        json={"email": "ana@gastroswipe.io"},
        headers={"Origin": "https://testserver"},
    )

    assert response.json() == {"ok": True}
    assert fake.auth.reset_requests == [("ana@gastroswipe.io", {"redirect_to": "https://testserver/auth/reset"})]


def test_password_reset_ignores_foreign_origin(auth, fake):
    response = auth.post(
        "/api/auth/password-reset",
        json={"email": "ana@gastroswipe.io"},
        headers={"Origin": "https://evil.example"},
    )

    assert response.json() == {"ok": True}
    assert fake.auth.reset_requests == []


def test_public_origin_prefers_forwarded_headers(monkeypatch):
    monkeypatch.setattr(settings, "auth_base_url", "https://app.gastroswipe.io")

    forwarded = resolve_public_origin(
        {"x-forwarded-host": "swipe.example, proxy", "x-forwarded-proto": "https", "host": "internal:8000"},
        "http://internal:8000",
    )
    local = resolve_public_origin({"host": "localhost:8000"}, "http://localhost:8000")

    assert forwarded == "https://swipe.example"
    assert local == "https://app.gastroswipe.io"
