"""Tests for security headers middleware.

Verifies that security headers are present on API responses, including the
error responses produced by the authentication and rate limiting layers.
"""

import pytest


class TestSecurityHeaders:
    """Tests for SecurityHeadersMiddleware."""

    @pytest.mark.asyncio
    async def test_basic_headers(self, async_client):
        response = await async_client.get("/api/articles")

        assert response.headers.get("X-Content-Type-Options") == "nosniff"
        assert response.headers.get("X-Frame-Options") == "DENY"
        assert response.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"
        assert "default-src" in response.headers.get("Content-Security-Policy", "")

    @pytest.mark.asyncio
    async def test_hsts_with_https(self, async_client):
        response = await async_client.get("/api/articles", headers={"X-Forwarded-Proto": "https"})

        hsts = response.headers.get("Strict-Transport-Security")
        assert hsts is not None
        assert "max-age" in hsts

    @pytest.mark.asyncio
    async def test_no_hsts_over_http(self, async_client):
        response = await async_client.get("/api/articles")

        assert "Strict-Transport-Security" not in response.headers

    @pytest.mark.asyncio
    async def test_auth_responses_not_cached(self, async_client):
        response = await async_client.post("/api/auth/refresh", json={})

        assert response.headers.get("Cache-Control") == "no-store"

    @pytest.mark.asyncio
    async def test_headers_on_auth_error_responses(self, async_client):
        response = await async_client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.headers.get("X-Content-Type-Options") == "nosniff"
        assert response.headers.get("X-Frame-Options") == "DENY"

    @pytest.mark.asyncio
    async def test_cors_headers_on_auth_error_responses(self, async_client):
        response = await async_client.get(
            "/api/auth/me", headers={"Origin": "http://localhost:3000"}
        )

        assert response.status_code == 401
        assert response.headers.get("Access-Control-Allow-Origin") == "http://localhost:3000"

    @pytest.mark.asyncio
    async def test_content_responses_cacheable(self, async_client):
        response = await async_client.get("/api/articles")

        assert response.headers.get("Cache-Control") != "no-store"
        assert "camera=()" in response.headers.get("Permissions-Policy", "")
