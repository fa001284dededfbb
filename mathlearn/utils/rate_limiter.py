"""
Rate limiting for API endpoints
"""
import time
from collections import defaultdict
from fastapi import Request, HTTPException
from typing import Dict, Iterable, Optional
import logging

from mathlearn.config import settings

logger = logging.getLogger(__name__)

# Paths never counted against a client's budget
EXEMPT_PATHS = {"/", "/api/health", "/api/health/detailed", "/docs", "/redoc", "/openapi.json"}


class RateLimiter:
    """
    In-memory sliding-window rate limiter, per client IP
    Production: Use Redis for distributed rate limiting
    """

    def __init__(
        self,
        requests_per_minute: int = 60,
        requests_per_hour: int = 1000,
        trusted_proxies: Optional[Iterable[str]] = None,
    ):
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour
        self.trusted_proxies = set(trusted_proxies or [])

        # Storage: {client_id: [timestamp, ...]}
        self.minute_tracker: Dict[str, list] = defaultdict(list)
        self.hour_tracker: Dict[str, list] = defaultdict(list)

    def _get_client_id(self, request: Request) -> str:
        """Extract client identifier from request"""
        client_ip = request.client.host if request.client else "unknown"

        # X-Forwarded-For is client-controlled unless a known proxy set it
        if client_ip in self.trusted_proxies:
            forwarded = request.headers.get("x-forwarded-for")
            if forwarded:
                return forwarded.split(",")[0].strip()
        return client_ip

    def _cleanup_old_entries(self, tracker: Dict[str, list], window_seconds: int, now: float):
        """Remove entries older than window"""
        cutoff = now - window_seconds

        for client_id in list(tracker.keys()):
            tracker[client_id] = [ts for ts in tracker[client_id] if ts > cutoff]

            # Remove empty entries
            if not tracker[client_id]:
                del tracker[client_id]

    def reset(self) -> None:
        self.minute_tracker.clear()
        self.hour_tracker.clear()

    def is_exempt(self, path: str) -> bool:
        return path in EXEMPT_PATHS

    async def check_rate_limit(self, request: Request) -> None:
        """
        Check if request exceeds rate limits

        Raises:
            HTTPException: 429 if rate limit exceeded
        """
        client_id = self._get_client_id(request)
        now = time.time()

        self._cleanup_old_entries(self.minute_tracker, 60, now)
        self._cleanup_old_entries(self.hour_tracker, 3600, now)

        minute_requests = len(self.minute_tracker.get(client_id, []))
        if minute_requests >= self.requests_per_minute:
            logger.warning(f"Rate limit exceeded (minute): {client_id}")
            raise HTTPException(
                status_code=429,
                detail=f"Too many requests. Limit: {self.requests_per_minute} requests per minute",
                headers={"Retry-After": "60"},
            )

        hour_requests = len(self.hour_tracker.get(client_id, []))
        if hour_requests >= self.requests_per_hour:
            logger.warning(f"Rate limit exceeded (hour): {client_id}")
            raise HTTPException(
                status_code=429,
                detail=f"Too many requests. Limit: {self.requests_per_hour} requests per hour",
                headers={"Retry-After": "3600"},
            )

        self.minute_tracker[client_id].append(now)
        self.hour_tracker[client_id].append(now)

        logger.debug(f"Rate limit check passed: {client_id} (minute: {minute_requests+1}, hour: {hour_requests+1})")


# Global instance
rate_limiter = RateLimiter(
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR,
    trusted_proxies=settings.TRUSTED_PROXIES,
)
