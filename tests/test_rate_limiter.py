"""Tests for the in-memory rate limiter."""

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from mathlearn.config import settings
from mathlearn.utils.rate_limiter import RateLimiter, rate_limiter


def _request(host="10.0.0.1", path="/api/lessons", forwarded_for=None):
    headers = []
    if forwarded_for:
        headers.append((b"x-forwarded-for", forwarded_for.encode()))
    return Request({
        "type": "http",
        "method": "GET",
        "path": path,
        "headers": headers,
        "client": (host, 1234),
    })


@pytest.mark.asyncio
async def test_blocks_after_minute_limit():
    limiter = RateLimiter(requests_per_minute=2, requests_per_hour=100)

    await limiter.check_rate_limit(_request())
    await limiter.check_rate_limit(_request())

    with pytest.raises(HTTPException) as exc_info:
        await limiter.check_rate_limit(_request())

    assert exc_info.value.status_code == 429
    assert exc_info.value.headers["Retry-After"] == "60"


@pytest.mark.asyncio
async def test_clients_are_tracked_separately():
    limiter = RateLimiter(requests_per_minute=1, requests_per_hour=100)

    await limiter.check_rate_limit(_request(host="10.0.0.1"))
    await limiter.check_rate_limit(_request(host="10.0.0.2"))


@pytest.mark.asyncio
async def test_hour_limit():
    limiter = RateLimiter(requests_per_minute=100, requests_per_hour=1)

    await limiter.check_rate_limit(_request())
    with pytest.raises(HTTPException) as exc_info:
        await limiter.check_rate_limit(_request())

    assert exc_info.value.headers["Retry-After"] == "3600"


@pytest.mark.asyncio
async def test_forwarded_for_ignored_from_untrusted_client():
    limiter = RateLimiter(requests_per_minute=1, requests_per_hour=100)

    await limiter.check_rate_limit(_request(forwarded_for="1.1.1.1"))
    with pytest.raises(HTTPException):
        await limiter.check_rate_limit(_request(forwarded_for="2.2.2.2"))

    assert list(limiter.minute_tracker) == ["10.0.0.1"]


@pytest.mark.asyncio
async def test_forwarded_for_used_behind_trusted_proxy():
    limiter = RateLimiter(requests_per_minute=1, requests_per_hour=100, trusted_proxies=["10.0.0.1"])

    await limiter.check_rate_limit(_request(forwarded_for="1.1.1.1, 10.0.0.1"))
    await limiter.check_rate_limit(_request(forwarded_for="2.2.2.2"))

    assert set(limiter.minute_tracker) == {"1.1.1.1", "2.2.2.2"}


@pytest.mark.asyncio
async def test_expired_clients_are_dropped(monkeypatch):
    limiter = RateLimiter(requests_per_minute=5, requests_per_hour=5)
    clock = [1000.0]
    monkeypatch.setattr("mathlearn.utils.rate_limiter.time.time", lambda: clock[0])

    for host in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
        await limiter.check_rate_limit(_request(host=host))
    assert len(limiter.hour_tracker) == 3

    clock[0] += 3601
    await limiter.check_rate_limit(_request(host="10.0.0.9"))

    assert list(limiter.minute_tracker) == ["10.0.0.9"]
    assert list(limiter.hour_tracker) == ["10.0.0.9"]


@pytest.mark.asyncio
async def test_rejected_request_leaves_no_entry():
    limiter = RateLimiter(requests_per_minute=0, requests_per_hour=100)

    with pytest.raises(HTTPException):
        await limiter.check_rate_limit(_request())

    assert dict(limiter.minute_tracker) == {}

def test_middleware_returns_429_envelope(client, monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limiter, "requests_per_minute", 1)
    rate_limiter.reset()

    try:
        assert client.get("/api/lessons").status_code == 200
        response = client.get("/api/lessons")
        # health checks are never limited
        assert client.get("/api/health").status_code == 200
    finally:
        rate_limiter.reset()

    assert response.status_code == 429
    body = response.json()
    assert body["success"] is False
    assert "Too many requests" in body["error"]
