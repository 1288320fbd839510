"""Tests for bearer token authentication middleware."""

import logging
import time

import jwt
import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from inkwell.core.errors import TokenExpired, TokenInvalidStructure, TokenMissing, TokenRevoked
from inkwell.middleware.auth import (
    AuthenticationMiddleware,
    authenticate_token,
    extract_bearer_token,
    is_public_route,
)
from inkwell.services.revocation import RevocationRegistry
from inkwell.services.tokens import Identity, TokenService

PROTECTED = "/api/auth/me"


def _craft(token_service: TokenService, claims: dict) -> str:
    """Sign claims with the app's secret, issuer and audience."""
    payload = {"iss": token_service.issuer, "aud": token_service.audience, **claims}
    return jwt.encode(payload, token_service._secret, algorithm="HS256")


class TestExtractBearerToken:
    @pytest.mark.parametrize(
        "header",
        [None, "", "Bearer", "Bearer ", "Bearer null", "Bearer undefined", "Basic abc", "abc"],
    )
    def test_no_token(self, header):
        assert extract_bearer_token(header) is None

    def test_token(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self):
        assert extract_bearer_token("bearer abc") == "abc"


class TestPublicRoutes:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/auth/register"),
            ("POST", "/api/auth/login"),
            ("POST", "/api/auth/refresh"),
            ("GET", "/api/articles"),
            ("GET", "/api/articles/12"),
            ("GET", "/api/articles/12/comments"),
            ("HEAD", "/api/articles"),
        ],
    )
    def test_public(self, method, path):
        assert is_public_route(method, path) is True

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/auth/logout"),
            ("GET", "/api/auth/me"),
            ("POST", "/api/articles"),
            ("PUT", "/api/articles/12"),
            ("DELETE", "/api/articles/12"),
            ("POST", "/api/articles/12/comments"),
            ("GET", "/api/users"),
            ("GET", "/api/users/1/profile"),
            ("GET", "/api/auth/login"),
        ],
    )
    def test_protected(self, method, path):
        assert is_public_route(method, path) is False


class TestAuthenticateToken:
    """Unit tests for the validation pipeline."""

    @pytest.fixture
    def registry(self) -> RevocationRegistry:
        return RevocationRegistry()

    @pytest.fixture
    def service(self) -> TokenService:
        return TokenService("k" * 64)

    def test_valid_token(self, service, registry):
        identity = Identity(id=3, username="carol", email="c@x.io")
        token = service.issue_access_token(identity)

        assert authenticate_token(token, service, registry) == identity

    def test_missing(self, service, registry):
        with pytest.raises(TokenMissing):
            authenticate_token(None, service, registry)

    def test_revoked_checked_before_signature(self, service, registry):
        registry.revoke("garbage-token")

        with pytest.raises(TokenRevoked):
            authenticate_token("garbage-token", service, registry)

    def test_refresh_token_rejected(self, service, registry):
        with pytest.raises(TokenInvalidStructure):
            authenticate_token(service.issue_refresh_token(3), service, registry)

    def test_missing_id_rejected(self, service, registry):
        now = int(time.time())
        token = _craft(service, {"username": "x", "iat": now, "exp": now + 60})

        with pytest.raises(TokenInvalidStructure):
            authenticate_token(token, service, registry)

    def test_non_numeric_id_rejected(self, service, registry):
        now = int(time.time())
        token = _craft(service, {"id": "abc", "iat": now, "exp": now + 60})

        with pytest.raises(TokenInvalidStructure):
            authenticate_token(token, service, registry)

    def test_past_exp_in_verified_claims_answers_401(self, registry):
        """The explicit expiry check runs even if the decoder let a token through."""

        class LenientService(TokenService):
            def verify(self, token):
                return {"id": 1, "username": "x", "email": "x@x.io", "exp": time.time() - 5}

        with pytest.raises(TokenExpired) as exc_info:
            authenticate_token("tok", LenientService("k" * 64), registry)

        assert exc_info.value.status_code == 401
        assert exc_info.value.code == "TOKEN_EXPIRED"


class TestAuthenticationMiddleware:
    """Request-level tests against the full application."""

    @pytest.mark.asyncio
    async def test_valid_token_reaches_route(self, async_client, user_factory, auth_headers):
        user = await user_factory()

        response = await async_client.get(PROTECTED, headers=auth_headers(user))

        assert response.status_code == 200
        assert response.json()["id"] == user.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"Authorization": "Bearer "},
            {"Authorization": "Bearer null"},
            {"Authorization": "Bearer undefined"},
            {"Authorization": "Token abc"},
        ],
    )
    async def test_missing_token(self, async_client, headers):
        response = await async_client.get(PROTECTED, headers=headers)

        assert response.status_code == 401
        assert response.json() == {
            "error": "Access token missing or invalid",
            "code": "TOKEN_MISSING",
        }
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_revoked_token(self, async_client, user_factory, auth_headers, revocations):
        user = await user_factory()
        headers = auth_headers(user)
        revocations.revoke(headers["Authorization"].removeprefix("Bearer "))

        response = await async_client.get(PROTECTED, headers=headers)

        assert response.status_code == 401
        assert response.json()["code"] == "TOKEN_REVOKED"

    @pytest.mark.asyncio
    async def test_failure_log_redacts_token(
        self, async_client, user_factory, auth_headers, revocations, caplog
    ):
        user = await user_factory()
        headers = auth_headers(user)
        token = headers["Authorization"].removeprefix("Bearer ")
        revocations.revoke(token)
        caplog.set_level(logging.WARNING, logger="inkwell.middleware.auth")

        await async_client.get(PROTECTED, headers=headers)

        records = [r for r in caplog.records if getattr(r, "event", None) == "auth_failed"]
        assert len(records) == 1
        assert records[0].code == "TOKEN_REVOKED"
        assert token not in caplog.text
        assert token[:20] in caplog.text

    @pytest.mark.asyncio
    async def test_malformed_token(self, async_client):
        response = await async_client.get(
            PROTECTED, headers={"Authorization": "Bearer not.a.token"}
        )

        assert response.status_code == 403
        assert response.json()["code"] == "TOKEN_MALFORMED"

    @pytest.mark.asyncio
    async def test_foreign_signature(self, async_client):
        token = TokenService("x" * 64).issue_access_token(
            Identity(id=1, username="mallory", email="m@x.io", role="admin")
        )

        response = await async_client.get(PROTECTED, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json()["code"] == "TOKEN_MALFORMED"

    @pytest.mark.asyncio
    async def test_expired_token(self, async_client, token_service):
        now = int(time.time())
        token = _craft(token_service, {"id": 1, "iat": now - 3600, "exp": now - 10})

        response = await async_client.get(PROTECTED, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json() == {"error": "Token expired", "code": "TOKEN_EXPIRED"}

    @pytest.mark.asyncio
    async def test_not_yet_active_token(self, async_client, token_service):
        now = int(time.time())
        token = _craft(token_service, {"id": 1, "iat": now, "nbf": now + 600, "exp": now + 900})

        response = await async_client.get(PROTECTED, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json()["code"] == "TOKEN_NOT_ACTIVE"

    @pytest.mark.asyncio
    async def test_token_without_identity(self, async_client, token_service):
        now = int(time.time())
        token = _craft(token_service, {"username": "ghost", "iat": now, "exp": now + 60})

        response = await async_client.get(PROTECTED, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json()["code"] == "TOKEN_INVALID_STRUCTURE"

    @pytest.mark.asyncio
    async def test_refresh_token_as_access_token(self, async_client, user_factory, token_service):
        user = await user_factory()
        token = token_service.issue_refresh_token(user.id)

        response = await async_client.get(PROTECTED, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json()["code"] == "TOKEN_INVALID_STRUCTURE"

    @pytest.mark.asyncio
    async def test_public_route_without_token(self, async_client):
        response = await async_client.get("/api/articles")

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_public_route_ignores_bad_token(self, async_client):
        response = await async_client.get(
            "/api/articles", headers={"Authorization": "Bearer garbage"}
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_non_api_paths_skip_authentication(self, async_client):
        response = await async_client.get("/")

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_options_preflight_skips_authentication(self, async_client):
        response = await async_client.options(
            PROTECTED,
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert response.status_code == 200


class TestMissingSecret:
    """A deployment without a signing secret fails closed with CONFIG_ERROR."""

    @pytest.fixture
    def app(self) -> FastAPI:
        app = FastAPI()
        app.add_middleware(
            AuthenticationMiddleware,
            tokens=TokenService(""),
            revocations=RevocationRegistry(),
        )

        @app.get("/api/private")
        async def private(request: Request) -> dict:
            return {"id": request.state.identity.id}

        return app

    @pytest.mark.asyncio
    async def test_config_error(self, app):
        token = TokenService("k" * 64).issue_access_token(
            Identity(id=1, username="alice", email="a@x.io")
        )
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/private", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 500
        assert response.json() == {"error": "Server configuration error", "code": "CONFIG_ERROR"}

    @pytest.mark.asyncio
    async def test_missing_token_still_401(self, app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/private")

        assert response.status_code == 401
        assert response.json()["code"] == "TOKEN_MISSING"
