"""Tests for the application factory: health, pages, middleware, handlers."""

import uuid

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine

from newsletter.core.config import Settings
from newsletter.core.email import EmailClient
from newsletter.core.rate_limiting import limiter
from newsletter.main import create_app


class TestHealth:
    """GET /health."""

    async def test_health_returns_200_with_empty_body(
        self, client: AsyncClient
    ) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.content == b""


class TestHomePage:
    """GET /."""

    async def test_home_page_has_subscription_form(self, client: AsyncClient) -> None:
        response = await client.get("/")

        assert response.status_code == 200
        assert 'action="/subscriptions"' in response.text
        assert 'name="email"' in response.text


class TestMiddleware:
    """Security headers and request context."""

    async def test_security_headers_are_set(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.headers["x-frame-options"] == "DENY"
        assert response.headers["x-content-type-options"] == "nosniff"
        assert "frame-ancestors 'none'" in response.headers["content-security-policy"]
        assert "strict-transport-security" not in response.headers

    async def test_hsts_in_production(
        self,
        settings: Settings,
        db_engine: AsyncEngine,
        email_client: EmailClient,
    ) -> None:
        production = settings.model_copy(update={"environment": "production"})
        app = create_app(production, engine=db_engine, email_client=email_client)
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            response = await ac.get("/health")

        assert "max-age=" in response.headers["strict-transport-security"]

    async def test_request_id_header_is_a_uuid(self, client: AsyncClient) -> None:
        first = await client.get("/health")
        second = await client.get("/health")

        first_id = uuid.UUID(first.headers["x-request-id"])
        second_id = uuid.UUID(second.headers["x-request-id"])
        assert first_id != second_id


class TestExceptionHandlers:
    """Unhandled errors become an opaque 500 envelope."""

    async def test_unhandled_exception_returns_internal_error(
        self, app: FastAPI
    ) -> None:
        @app.get("/boom")
        async def boom() -> None:
            raise RuntimeError("secret internal detail")

        async with AsyncClient(
            transport=ASGITransport(app=app, raise_app_exceptions=False),
            base_url="http://test",
        ) as ac:
            response = await ac.get("/boom")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"
        assert "secret internal detail" not in response.text


class TestRateLimiting:
    """slowapi guards POST /login."""

    @pytest.fixture
    def limited_app(
        self,
        settings: Settings,
        db_engine: AsyncEngine,
        email_client: EmailClient,
    ) -> FastAPI:
        limited = settings.model_copy(
            update={"rate_limit_enabled": True, "rate_limit_login": "2/minute"}
        )
        return create_app(limited, engine=db_engine, email_client=email_client)

    async def test_login_is_rate_limited(self, limited_app: FastAPI) -> None:
        assert limiter.enabled is True
        form = {"username": "nobody", "password": "wrong"}
        async with AsyncClient(
            transport=ASGITransport(app=limited_app), base_url="http://test"
        ) as ac:
            statuses = [
                (await ac.post("/login", data=form)).status_code for _ in range(3)
            ]
            last = await ac.post("/login", data=form)

        assert statuses[:2] == [303, 303]
        assert statuses[2] == 429
        assert last.json()["error"]["code"] == "RATE_LIMITED"
        assert "retry-after" in last.headers
