"""HTTP wiring: envelopes, pagination and bearer token dependencies."""

import time

import pytest
from fastapi import Depends, HTTPException
from fastapi.testclient import TestClient

from library_api.api.dependencies import (
    get_pagination,
    get_password_hasher,
    get_token_claims,
    get_token_issuer,
)
from library_api.api.errors import ApiError
from library_api.core.config import Settings
from library_api.core.security import PasswordHasher, TokenIssuer
from library_api.domain.pagination import PaginationDirective
from library_api.domain.responses import ApiResponse, success_response
from library_api.services.pagination import paginate

BOOKS = [{"biblionumber": n, "title": f"Book {n}"} for n in range(1, 46)]


@pytest.fixture
def settings(settings: Settings) -> Settings:
    return settings.model_copy(update={"bcrypt_salt_rounds": 4})


@pytest.fixture
def app(app):
    @app.get("/api/books", response_model=ApiResponse[list])
    def list_books(pagination: PaginationDirective = Depends(get_pagination)):
        items, meta = paginate(BOOKS, pagination)
        return success_response(items, meta=meta)

    @app.get("/api/me", response_model=ApiResponse[dict])
    def me(claims: dict = Depends(get_token_claims)):
        return success_response({"userId": claims["userId"]})

    @app.post("/api/auth/token", response_model=ApiResponse[dict])
    def login(issuer: TokenIssuer = Depends(get_token_issuer)):
        return success_response({"token": issuer.issue({"userId": "u1"})})

    @app.post("/api/auth/register", response_model=ApiResponse[dict])
    def register(hasher: PasswordHasher = Depends(get_password_hasher)):
        hashed = hasher.hash("s3cret-pass")
        return success_response({"hash": hashed, "matches": hasher.verify("s3cret-pass", hashed)})

    @app.get("/api/conflict")
    def conflict():
        raise ApiError(409, "Card number already exists", details={"field": "cardnumber"})

    @app.get("/api/teapot")
    def teapot():
        raise HTTPException(status_code=418, detail="I'm a teapot")

    @app.get("/api/items/{item_id}")
    def item(item_id: int):
        return success_response({"itemnumber": item_id})

    @app.get("/api/boom")
    def boom():
        raise RuntimeError("kaboom")

    return app


def test_health_returns_envelope(client: TestClient):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Service healthy"
    assert body["data"] == {"status": "ok", "environment": "test"}
    assert body["meta"] is None


def test_list_uses_default_window_and_meta(client: TestClient):
    body = client.get("/api/books").json()

    assert len(body["data"]) == 20
    assert body["data"][0]["biblionumber"] == 1
    assert body["meta"] == {"total": 45, "page": 1, "limit": 20, "totalPages": 3}


def test_list_honours_page_and_limit(client: TestClient):
    body = client.get("/api/books", params={"page": "3", "limit": "10"}).json()

    assert [book["biblionumber"] for book in body["data"]] == list(range(21, 31))
    assert body["meta"] == {"total": 45, "page": 3, "limit": 10, "totalPages": 5}


@pytest.mark.parametrize(
    "params, expected_page, expected_limit",
    [
        ({"page": "0", "limit": "500"}, 1, 100),
        ({"page": "abc", "limit": "xyz"}, 1, 20),
        ({"page": "-3", "limit": "-1"}, 1, 20),
        ({"page": "", "limit": ""}, 1, 20),
    ],
)
def test_malformed_pagination_is_corrected_not_rejected(
    client: TestClient, params, expected_page, expected_limit
):
    response = client.get("/api/books", params=params)

    assert response.status_code == 200
    meta = response.json()["meta"]
    assert meta["page"] == expected_page
    assert meta["limit"] == expected_limit


def test_token_from_login_authenticates_requests(client: TestClient):
    token = client.post("/api/auth/token").json()["data"]["token"]

    response = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["data"] == {"userId": "u1"}


def test_missing_token_is_unauthorized(client: TestClient):
    response = client.get("/api/me")

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "message": "Authentication token missing",
        "errors": None,
    }


def test_non_bearer_scheme_is_treated_as_missing(client: TestClient):
    response = client.get("/api/me", headers={"Authorization": "Basic dXNlcjpwYXNz"})

    assert response.status_code == 401
    assert response.json()["message"] == "Authentication token missing"


def test_invalid_token_is_unauthorized(client: TestClient):
    response = client.get("/api/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


def test_expired_token_is_unauthorized(client: TestClient, token_issuer: TokenIssuer):
    token = token_issuer.issue({"userId": "u1", "iat": int(time.time()) - 7200}, {"expires_in": "1h"})

    response = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


def test_api_error_renders_error_envelope(client: TestClient):
    response = client.get("/api/conflict")

    assert response.status_code == 409
    assert response.json() == {
        "success": False,
        "message": "Card number already exists",
        "errors": {"field": "cardnumber"},
    }


def test_http_exception_renders_error_envelope(client: TestClient):
    response = client.get("/api/teapot")

    assert response.status_code == 418
    assert response.json()["message"] == "I'm a teapot"


def test_request_validation_renders_error_envelope(client: TestClient):
    response = client.get("/api/items/not-a-number")

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert body["errors"][0]["loc"] == ["path", "item_id"]


def test_unknown_route_renders_error_envelope(client: TestClient):
    response = client.get("/api/nowhere")

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_unexpected_error_is_hidden_behind_500(app):
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/api/boom")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "message": "Internal server error",
        "errors": None,
    }


def test_password_hashing_uses_configured_cost(client: TestClient):
    data = client.post("/api/auth/register").json()["data"]

    assert data["hash"].startswith("$2b$04$")
    assert data["matches"] is True
