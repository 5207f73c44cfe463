"""Upstream access: HTTP client, adapter fan-out and admission control."""

from .http_client import AsyncHTTPClient
from .rate_limiter import FixedWindowRateLimiter, client_identity
from .source_fetcher import SourceFetcher

__all__ = ["AsyncHTTPClient", "FixedWindowRateLimiter", "SourceFetcher", "client_identity"]
