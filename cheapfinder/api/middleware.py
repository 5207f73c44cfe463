"""Middleware for the search API."""

from typing import Callable, Iterable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from cheapfinder.fetcher.rate_limiter import FixedWindowRateLimiter, client_identity
from cheapfinder.models.errors import RateLimitExceeded
from cheapfinder.monitoring.logger import StructuredLogger


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects clients that exceed their fixed-window allowance with 429."""

    def __init__(
        self,
        app: ASGIApp,
        rate_limiter: FixedWindowRateLimiter,
        logger: StructuredLogger,
        exempt_paths: Iterable[str] = ("/health",),
    ):
        super().__init__(app)
        self.rate_limiter = rate_limiter
        self.logger = logger
        self.exempt_paths = frozenset(exempt_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        client = client_identity(
            request.headers.get("x-forwarded-for"),
            request.client.host if request.client else None,
        )
        if not await self.rate_limiter.admit(client):
            self.logger.rate_limited(client=client, path=request.url.path)
            return JSONResponse(
                status_code=RateLimitExceeded.status_code,
                content={"error": str(RateLimitExceeded())},
                headers={"Retry-After": str(int(self.rate_limiter.window_seconds))},
            )

        return await call_next(request)
