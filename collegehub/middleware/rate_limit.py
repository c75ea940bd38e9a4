"""
Rate Limit Middleware

In-memory sliding window rate limiting, keyed by user when a valid bearer
token is present and by client IP otherwise.
"""

import logging
import time
from collections import defaultdict
from typing import Callable, Dict, List, Tuple

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from collegehub.config import settings
from collegehub.services.auth_service import decode_access_token

logger = logging.getLogger(__name__)

EXEMPT_PATHS = ("/health", "/", "/docs", "/redoc", "/openapi.json")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Sliding window rate limiter.

    Counters live in process memory, so limits are per worker.
    """

    def __init__(self, app, window_size: int = 60):
        super().__init__(app)
        self.requests: Dict[str, List[float]] = defaultdict(list)
        self.window_size = window_size

    def _get_key(self, request: Request) -> Tuple[str, int]:
        """Return (key, limit) for the request."""
        authorization = request.headers.get("Authorization", "")
        if authorization.startswith("Bearer "):
            user_id = decode_access_token(authorization[7:])
            if user_id:
                return f"user:{user_id}", settings.rate_limit_auth_per_minute

        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            client_ip = forwarded.split(",")[0].strip()
        else:
            client_ip = request.client.host if request.client else "unknown"

        return f"ip:{client_ip}", settings.rate_limit_per_minute

    def _is_rate_limited(self, key: str, limit: int) -> bool:
        now = time.time()
        window_start = now - self.window_size

        self.requests[key] = [ts for ts in self.requests[key] if ts > window_start]

        if len(self.requests[key]) >= limit:
            return True

        self.requests[key].append(now)
        return False

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        key, limit = self._get_key(request)

        if self._is_rate_limited(key, limit):
            logger.warning(f"Rate limit exceeded for {key}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "detail": "Rate limit exceeded. Please try again later.",
                    "retry_after_seconds": self.window_size,
                },
                headers={"Retry-After": str(self.window_size)},
            )

        return await call_next(request)
