import pytest
from fastapi import FastAPI, status
from httpx import ASGITransport, AsyncClient

from gateway.core.error_handlers import register_error_handlers
from gateway.core.security import (
    RATE_LIMITED_MESSAGE,
    register_rate_limit,
    register_security_headers,
)


def _limited_app(enabled: bool = True) -> FastAPI:
    app = FastAPI()
    limiter = register_rate_limit(app, limit="2/minute", enabled=enabled)
    register_security_headers(app, docs_path="/docs-page")
    register_error_handlers(app)

    @app.get("/api/ping")
    async def ping():
        return {"success": True}

    @app.get("/api/other")
    async def other():
        return {"success": True}

    @app.get("/health")
    @limiter.exempt
    async def health():
        return {"success": True}

    @app.get("/docs-page")
    async def docs_page():
        return {"success": True}

    return app


def _client(app: FastAPI) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_requests_over_the_limit_get_the_error_envelope():
    async with _client(_limited_app()) as ac:
        first = await ac.get("/api/ping")
        second = await ac.get("/api/other")
        third = await ac.get("/api/ping", headers={"X-Request-ID": "req-429"})

    assert first.status_code == status.HTTP_200_OK
    assert second.status_code == status.HTTP_200_OK

    assert third.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    body = third.json()
    assert body["success"] is False
    assert body["statusCode"] == 429
    assert body["error"] == RATE_LIMITED_MESSAGE
    assert body["path"] == "/api/ping"
    assert body["requestId"] == "req-429"


@pytest.mark.asyncio
async def test_exempt_routes_are_not_counted():
    async with _client(_limited_app()) as ac:
        for _ in range(3):
            assert (await ac.get("/health")).status_code == status.HTTP_200_OK
        assert (await ac.get("/api/ping")).status_code == status.HTTP_200_OK


@pytest.mark.asyncio
async def test_disabled_limiter_lets_everything_through():
    async with _client(_limited_app(enabled=False)) as ac:
        responses = [await ac.get("/api/ping") for _ in range(4)]
    assert [r.status_code for r in responses] == [200] * 4


@pytest.mark.asyncio
async def test_security_headers_are_set():
    async with _client(_limited_app()) as ac:
        response = await ac.get("/api/ping")
        docs = await ac.get("/docs-page")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
    assert "default-src 'self'" in response.headers["Content-Security-Policy"]
    assert "Content-Security-Policy" not in docs.headers
    assert docs.headers["X-Content-Type-Options"] == "nosniff"


@pytest.mark.asyncio
async def test_gateway_responses_carry_security_headers(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == status.HTTP_200_OK
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "Content-Security-Policy" in response.headers
