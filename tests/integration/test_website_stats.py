"""Integration tests for GET /api/websites/{websiteId}/stats."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.testclient import TestClient

from config import AppSettings, DatabaseSettings, JWTSettings
from dependencies import (
    get_event_repository,
    get_user_repository,
    get_website_repository,
)
from errors import register_error_handlers
from middleware.request_logging import RequestLoggingMiddleware
from routes.website_stats_routes import router as website_stats_router
from schemas.models.user import UserDoc
from schemas.models.website import WebsiteDoc

SECRET = "integration-test-secret-long-enough-for-hs256"
WEBSITE_ID = "3f2504e0-4f89-41d3-9a0c-0305e82c3301"
OTHER_WEBSITE_ID = "3f2504e0-4f89-41d3-9a0c-0305e82c3302"
STATS_PATH = f"/api/websites/{WEBSITE_ID}/stats"

START = datetime(2024, 3, 1, tzinfo=timezone.utc)
START_AT = int(START.timestamp() * 1000)
END_AT = START_AT + 24 * 60 * 60 * 1000

CURRENT_ROW = {"pageviews": 100, "visitors": 30, "visits": 40, "bounces": 10, "totaltime": 600}
PREVIOUS_ROW = {"pageviews": 80, "visitors": 35, "visits": 40, "bounces": 12}


def _settings() -> AppSettings:
    return AppSettings(
        db=DatabaseSettings(mongodb_uri="mongodb://localhost:27017/"),
        jwt=JWTSettings(
            jwt_issuer="website-stats",
            jwt_audience="website-stats.api",
            jwt_private_key="",
            jwt_public_key="",
            jwt_secret=SECRET,
        ),
    )


def _token(**claims) -> str:
    payload = {
        "iss": "website-stats",
        "aud": "website-stats.api",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
    }
    payload.update(claims)
    return jwt.encode(payload, SECRET, algorithm="HS256")


def _auth_headers(user_id: str = "owner-1") -> dict:
    return {"Authorization": f"Bearer {_token(sub=user_id)}"}


def _params(**overrides) -> dict:
    params = {"startAt": START_AT, "endAt": END_AT}
    params.update(overrides)
    return params


class FakeBackend:
    """Mocked repositories injected through dependency overrides."""

    def __init__(self, website_owner: str = "owner-1", events_error=None) -> None:
        self.users = MagicMock()
        self.users.find_by_id = AsyncMock(
            side_effect=lambda user_id: UserDoc(_id=user_id, username=user_id)
        )

        self.websites = MagicMock()
        self.websites.find_by_id = AsyncMock(
            return_value=WebsiteDoc(_id=WEBSITE_ID, name="Example", user_id=website_owner)
        )
        self.websites.find_team_membership = AsyncMock(return_value=None)

        async def _stats(website_id, filters, date_range):
            if events_error is not None:
                raise events_error
            return [CURRENT_ROW] if date_range.start_date == START else [PREVIOUS_ROW]

        self.events = MagicMock()
        self.events.get_website_stats = AsyncMock(side_effect=_stats)


def _build_test_app(backend: FakeBackend) -> FastAPI:
    """Mirror create_app() without connecting to MongoDB or Redis."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = _settings()
        app.state.db = MagicMock()
        app.state.redis = None
        yield

    app = FastAPI(lifespan=lifespan)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(website_stats_router)

    app.dependency_overrides[get_user_repository] = lambda: backend.users
    app.dependency_overrides[get_website_repository] = lambda: backend.websites
    app.dependency_overrides[get_event_repository] = lambda: backend.events
    return app


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def client(backend):
    with TestClient(_build_test_app(backend)) as c:
        yield c


# ── Success path ──────────────────────────────────────────────────────────────


class TestWebsiteStatsSuccess:
    def test_returns_value_and_change_per_metric(self, client):
        resp = client.get(STATS_PATH, params=_params(), headers=_auth_headers())
        assert resp.status_code == 200
        assert resp.json() == {
            "pageviews": {"value": 100, "change": 20},
            "visitors": {"value": 30, "change": -5},
            "visits": {"value": 40, "change": 0},
            "bounces": {"value": 10, "change": -2},
            "totaltime": {"value": 600, "change": 0},
        }

    def test_queries_current_and_previous_window(self, client, backend):
        client.get(STATS_PATH, params=_params(), headers=_auth_headers())
        calls = backend.events.get_website_stats.await_args_list
        assert len(calls) == 2
        ranges = sorted((c.args[2] for c in calls), key=lambda r: r.start_date)
        assert ranges[0].start_date == START - timedelta(days=1)
        assert ranges[0].end_date == START
        assert ranges[1].start_date == START
        assert ranges[1].end_date == START + timedelta(days=1)

    def test_filters_passed_to_both_queries(self, client, backend):
        resp = client.get(
            STATS_PATH,
            params=_params(urls="/a|/b/c", country="DE", event="signup"),
            headers=_auth_headers(),
        )
        assert resp.status_code == 200
        filters = [c.args[1] for c in backend.events.get_website_stats.await_args_list]
        assert filters[0] == filters[1]
        assert filters[0].urls == ["/a", "/b/c"]
        assert filters[0].country == "DE"
        assert filters[0].event == "signup"
        assert filters[0].browser is None

    def test_share_token_grants_access(self, client, backend):
        headers = {"x-share-token": _token(websiteId=WEBSITE_ID)}
        resp = client.get(STATS_PATH, params=_params(), headers=headers)
        assert resp.status_code == 200
        backend.users.find_by_id.assert_not_awaited()

    def test_request_id_header(self, client):
        resp = client.get(STATS_PATH, params=_params(), headers=_auth_headers())
        assert resp.headers["X-Request-ID"].startswith("req_")


# ── Method handling ───────────────────────────────────────────────────────────


class TestMethodNotAllowed:
    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "PATCH"])
    def test_non_get_without_auth(self, client, backend, method):
        resp = client.request(method, STATS_PATH)
        assert resp.status_code == 405
        assert resp.json() == {
            "error": "Method Not Allowed",
            "code": "method_not_allowed",
        }
        assert "GET" in resp.headers["allow"]
        backend.events.get_website_stats.assert_not_awaited()

    def test_post_with_auth_and_invalid_params(self, client):
        resp = client.post(
            STATS_PATH, params={"urls": "a|/b"}, headers=_auth_headers()
        )
        assert resp.status_code == 405

    def test_cors_preflight(self, client):
        resp = client.options(
            STATS_PATH,
            headers={
                "Origin": "https://dashboard.example.com",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert resp.status_code == 200
        assert "access-control-allow-origin" in resp.headers


# ── Authentication ────────────────────────────────────────────────────────────


class TestAuthentication:
    def test_missing_credentials(self, client, backend):
        resp = client.get(STATS_PATH, params=_params())
        assert resp.status_code == 401
        assert resp.json()["code"] == "authentication_error"
        backend.events.get_website_stats.assert_not_awaited()

    def test_auth_checked_before_validation(self, client):
        resp = client.get(STATS_PATH, params={"urls": "a|/b"})
        assert resp.status_code == 401

    def test_invalid_token(self, client):
        resp = client.get(
            STATS_PATH, params=_params(), headers={"Authorization": "Bearer nope"}
        )
        assert resp.status_code == 401

    def test_unknown_user(self, client, backend):
        backend.users.find_by_id = AsyncMock(return_value=None)
        resp = client.get(STATS_PATH, params=_params(), headers=_auth_headers())
        assert resp.status_code == 401

    def test_invalid_bearer_falls_back_to_share_token(self, client, backend):
        headers = {
            "Authorization": "Bearer nope",
            "x-share-token": _token(websiteId=WEBSITE_ID),
        }
        resp = client.get(STATS_PATH, params=_params(), headers=headers)
        assert resp.status_code == 200
        backend.users.find_by_id.assert_not_awaited()

    def test_unknown_user_falls_back_to_share_token(self, client, backend):
        backend.users.find_by_id = AsyncMock(return_value=None)
        headers = {
            **_auth_headers(),
            "x-share-token": _token(websiteId=WEBSITE_ID),
        }
        resp = client.get(STATS_PATH, params=_params(), headers=headers)
        assert resp.status_code == 200

    def test_invalid_bearer_and_invalid_share_token(self, client):
        headers = {"Authorization": "Bearer nope", "x-share-token": "nope"}
        resp = client.get(STATS_PATH, params=_params(), headers=headers)
        assert resp.status_code == 401


# ── Validation ────────────────────────────────────────────────────────────────


class TestValidation:
    def test_valid_urls_accepted(self, client):
        resp = client.get(
            STATS_PATH, params=_params(urls="/a|/b/c"), headers=_auth_headers()
        )
        assert resp.status_code == 200

    def test_invalid_urls_rejected(self, client, backend):
        resp = client.get(
            STATS_PATH, params=_params(urls="a|/b"), headers=_auth_headers()
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "validation_error"
        assert body["field"] == "urls"
        assert "Invalid URLs format" in body["error"]
        assert body["details"]
        backend.events.get_website_stats.assert_not_awaited()

    @pytest.mark.parametrize("missing", ["startAt", "endAt"])
    def test_missing_bounds(self, client, missing):
        params = _params()
        params.pop(missing)
        resp = client.get(STATS_PATH, params=params, headers=_auth_headers())
        assert resp.status_code == 400
        assert resp.json()["field"] == missing

    def test_non_numeric_bound(self, client):
        resp = client.get(
            STATS_PATH, params=_params(startAt="yesterday"), headers=_auth_headers()
        )
        assert resp.status_code == 400
        assert resp.json()["field"] == "startAt"

    def test_website_id_must_be_uuid(self, client):
        resp = client.get(
            "/api/websites/not-a-uuid/stats", params=_params(), headers=_auth_headers()
        )
        assert resp.status_code == 400
        assert resp.json()["field"] == "websiteId"

    def test_end_before_start(self, client, backend):
        resp = client.get(
            STATS_PATH,
            params=_params(startAt=END_AT, endAt=START_AT),
            headers=_auth_headers(),
        )
        assert resp.status_code == 400
        assert resp.json()["field"] == "endAt"
        backend.events.get_website_stats.assert_not_awaited()

    def test_previous_window_before_year_one(self, client, backend):
        resp = client.get(
            STATS_PATH,
            params=_params(startAt=0, endAt=253402300799000),
            headers=_auth_headers(),
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "validation_error"
        assert body["field"] == "startAt"
        backend.events.get_website_stats.assert_not_awaited()


# ── Authorization ─────────────────────────────────────────────────────────────


class TestAuthorization:
    def test_non_owner_is_unauthorized(self, client, backend):
        resp = client.get(
            STATS_PATH, params=_params(), headers=_auth_headers(user_id="intruder")
        )
        assert resp.status_code == 401
        assert resp.json() == {"error": "unauthorized", "code": "authentication_error"}
        backend.events.get_website_stats.assert_not_awaited()

    def test_share_token_for_other_website(self, client, backend):
        headers = {"x-share-token": _token(websiteId=OTHER_WEBSITE_ID)}
        resp = client.get(STATS_PATH, params=_params(), headers=headers)
        assert resp.status_code == 401
        backend.events.get_website_stats.assert_not_awaited()


# ── Unexpected failures ───────────────────────────────────────────────────────


def test_query_failure_is_internal_error():
    backend = FakeBackend(events_error=RuntimeError("mongo exploded"))
    app = _build_test_app(backend)
    with TestClient(app, raise_server_exceptions=False) as client:
        resp = client.get(STATS_PATH, params=_params(), headers=_auth_headers())
    assert resp.status_code == 500
    assert resp.json() == {
        "error": "An internal server error occurred.",
        "code": "internal_error",
    }
