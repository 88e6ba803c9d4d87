"""
VocalSaaS Backend: Middleware Tests
====================================

Rate limiting, upload size guarding and request id propagation on a minimal
FastAPI app.
"""

import logging

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from vocalsaas.middleware.logging import RequestLoggingMiddleware, level_for_status
from vocalsaas.middleware.rate_limit import RateLimitMiddleware
from vocalsaas.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from vocalsaas.middleware.upload_limit import MULTIPART_OVERHEAD, UploadSizeLimitMiddleware


def make_app(max_requests: int) -> FastAPI:
    app = FastAPI()

    @app.get("/ping")
    async def ping():
        return {"request_id": request_id_var.get("")}

    @app.get("/api/health")
    async def health():
        return {"status": "OK"}

    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware, max_requests=max_requests, window_seconds=60)
    return app


@pytest.mark.asyncio
async def test_requests_over_the_limit_get_429():
    transport = ASGITransport(app=make_app(max_requests=2))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        assert (await client.get("/ping")).status_code == 200
        assert (await client.get("/ping")).status_code == 200

        blocked = await client.get("/ping", headers={REQUEST_ID_HEADER: "abc"})

    assert blocked.status_code == 429
    assert int(blocked.headers["Retry-After"]) >= 1
    assert blocked.json()["error"].startswith("Rate limit exceeded")
    assert blocked.json()["request_id"] == "abc"


@pytest.mark.asyncio
async def test_health_is_not_rate_limited():
    transport = ASGITransport(app=make_app(max_requests=1))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        statuses = [(await client.get("/api/health")).status_code for _ in range(3)]

    assert statuses == [200, 200, 200]


@pytest.mark.asyncio
async def test_request_id_generated_and_visible_to_handlers():
    transport = ASGITransport(app=make_app(max_requests=10))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/ping")

    rid = response.headers[REQUEST_ID_HEADER]
    assert len(rid) == 8
    assert response.json()["request_id"] == rid


@pytest.mark.parametrize("status, level", [
    (200, logging.INFO),
    (304, logging.INFO),
    (404, logging.WARNING),
    (429, logging.WARNING),
    (502, logging.ERROR),
])
def test_access_log_level_follows_status(status, level):
    assert level_for_status(status) == level


SMALL_UPLOAD_LIMIT = 1024


def make_upload_app() -> FastAPI:
    app = FastAPI()
    reached = []

    @app.post("/api/voice/upload")
    async def upload(request: Request):
        reached.append(request.url.path)
        return {"received": len(await request.body())}

    @app.post("/api/journal/entries")
    async def journal(request: Request):
        reached.append(request.url.path)
        return {"received": len(await request.body())}

    app.state.reached = reached
    app.add_middleware(UploadSizeLimitMiddleware, max_upload_size=SMALL_UPLOAD_LIMIT)
    app.add_middleware(RequestIDMiddleware)
    return app


@pytest.mark.asyncio
async def test_oversized_upload_rejected_before_the_route_runs():
    app = make_upload_app()
    body = b"x" * (SMALL_UPLOAD_LIMIT + MULTIPART_OVERHEAD + 1)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/voice/upload", content=body, headers={REQUEST_ID_HEADER: "up-1"},
        )

    assert response.status_code == 413
    assert response.json()["error"].startswith("File size exceeds maximum")
    assert response.json()["request_id"] == "up-1"
    assert app.state.reached == []


@pytest.mark.asyncio
async def test_upload_within_limit_plus_overhead_passes():
    app = make_upload_app()
    body = b"x" * (SMALL_UPLOAD_LIMIT + MULTIPART_OVERHEAD)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/api/voice/upload", content=body)

    assert response.status_code == 200
    assert response.json() == {"received": len(body)}
    assert app.state.reached == ["/api/voice/upload"]


@pytest.mark.asyncio
async def test_size_guard_only_applies_to_voice_upload():
    app = make_upload_app()
    body = b"x" * (SMALL_UPLOAD_LIMIT + MULTIPART_OVERHEAD + 1)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/api/journal/entries", content=body)

    assert response.status_code == 200
    assert app.state.reached == ["/api/journal/entries"]


def test_app_factory_wires_middleware_and_routes():
    from vocalsaas.main import create_app

    app = create_app()

    middleware = [m.cls for m in app.user_middleware]
    assert middleware[:4] == [
        RateLimitMiddleware,
        RequestIDMiddleware,
        RequestLoggingMiddleware,
        UploadSizeLimitMiddleware,
    ]
    paths = {route.path for route in app.routes}
    assert {"/api/health", "/api/voice/upload", "/api/sessions", "/api/journal/entries"} <= paths
