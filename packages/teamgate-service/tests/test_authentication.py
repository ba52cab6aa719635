"""Request authentication: bearer extraction, token verification, principal shape."""

from __future__ import annotations

import uuid
from datetime import timedelta

import jwt
import pytest
from starlette.requests import Request

from teamgate_service.auth.deps import get_current_user
from teamgate_service.auth.jwt import create_access_token, create_refresh_token
from teamgate_service.auth.models import AuthenticatedUser
from teamgate_service.errors import AuthRequired
from teamgate_service.settings import settings


def _request(headers: dict[str, str] | None = None) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


# ---------------------------------------------------------------------------
# Over HTTP
# ---------------------------------------------------------------------------


def test_missing_header_is_auth_required(client):
    resp = client.get("/api/v1/teams")
    assert resp.status_code == 401
    body = resp.json()
    assert body["code"] == "AUTH_REQUIRED"
    assert body["path"] == "/api/v1/teams"
    assert "timestamp" in body


def test_non_bearer_scheme_is_auth_invalid(client):
    resp = client.get("/api/v1/teams", headers={"Authorization": "Basic dXNlcjpwYXNz"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "AUTH_INVALID"


def test_garbage_token_is_auth_invalid(client):
    resp = client.get("/api/v1/teams", headers={"Authorization": "Bearer not.a.jwt"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "AUTH_INVALID"


def test_expired_token_is_auth_invalid(client):
    token = create_access_token(uuid.uuid4(), "a@example.com", expires_delta=timedelta(seconds=-5))
    resp = client.get("/api/v1/teams", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "AUTH_INVALID"


def test_token_signed_with_other_secret_is_rejected(client):
    token = jwt.encode(
        {"sub": str(uuid.uuid4()), "email": "a@example.com", "type": "access"},
        "some-other-secret",
        algorithm=settings.jwt_algorithm,
    )
    resp = client.get("/api/v1/teams", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "AUTH_INVALID"


def test_refresh_token_cannot_authenticate(client):
    token = create_refresh_token(uuid.uuid4())
    resp = client.get("/api/v1/teams", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_request_id_is_echoed_in_error_body(client):
    resp = client.get("/api/v1/teams", headers={"X-Request-ID": "req-42"})
    assert resp.json()["request_id"] == "req-42"


def test_me_returns_principal_with_default_role_hint(client, store, auth_headers):
    user = store.add_user("dana@example.com")
    resp = client.get("/api/v1/auth/me", headers=auth_headers(user))
    assert resp.status_code == 200
    body = resp.json()
    assert body["user_id"] == str(user.id)
    assert body["email"] == "dana@example.com"
    assert body["role_hint"] == "employee"
    assert body["teams"] == []


def test_me_role_hint_comes_from_profile_metadata(client, team_with_admin, auth_headers):
    resp = client.get(
        "/api/v1/auth/me", headers=auth_headers(team_with_admin.admin, role_hint="manager")
    )
    body = resp.json()
    assert body["role_hint"] == "manager"
    assert [t["user_role"] for t in body["teams"]] == ["admin"]


def test_refresh_exchanges_refresh_token(client, store):
    user = store.add_user("erin@example.com")
    resp = client.post(
        "/api/v1/auth/refresh", json={"refresh_token": create_refresh_token(user.id)}
    )
    assert resp.status_code == 200
    access = resp.json()["access_token"]
    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {access}"})
    assert me.json()["user_id"] == str(user.id)


def test_refresh_rejects_access_token(client, store):
    user = store.add_user("erin@example.com")
    token = create_access_token(user.id, user.email)
    resp = client.post("/api/v1/auth/refresh", json={"refresh_token": token})
    assert resp.status_code == 401
    assert resp.json()["code"] == "AUTH_INVALID"


# ---------------------------------------------------------------------------
# get_current_user directly
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_prepopulated_principal_is_used():
    principal = AuthenticatedUser(id=uuid.uuid4(), email="p@example.com", role_hint="employee")
    request = _request({"Authorization": "Bearer opaque"})
    request.state.principal = principal

    assert await get_current_user(request) is principal


@pytest.mark.asyncio
async def test_prepopulated_principal_still_requires_header():
    request = _request()
    request.state.principal = AuthenticatedUser(
        id=uuid.uuid4(), email="p@example.com", role_hint="employee"
    )

    with pytest.raises(AuthRequired):
        await get_current_user(request)


@pytest.mark.asyncio
async def test_direct_verification_yields_same_shape():
    user_id = uuid.uuid4()
    token = create_access_token(user_id, "q@example.com", role_hint="manager")

    user = await get_current_user(_request({"Authorization": f"Bearer {token}"}))

    assert user == AuthenticatedUser(id=user_id, email="q@example.com", role_hint="manager")
