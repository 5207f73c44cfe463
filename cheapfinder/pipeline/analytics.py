"""Search analytics observers.

Observers receive one ``SearchEvent`` per completed search. The engine
emits events without awaiting them, so an observer can be slow or broken
without affecting responses.
"""

from dataclasses import asdict
from typing import Optional, Protocol

from cheapfinder.fetcher.http_client import AsyncHTTPClient
from cheapfinder.models.config import AppConfig
from cheapfinder.models.data_models import SearchEvent
from cheapfinder.monitoring.logger import StructuredLogger


class SearchObserver(Protocol):
    """One-way sink for search events."""

    async def record(self, event: SearchEvent) -> None:
        ...


class NullObserver:
    """Discards events. Used when analytics are disabled."""

    async def record(self, event: SearchEvent) -> None:
        return None


class LoggingObserver:
    """Writes each event to the structured log."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    async def record(self, event: SearchEvent) -> None:
        self.logger.log("search_recorded", **asdict(event))


class WebhookObserver:
    """POSTs each event as JSON to an analytics collector."""

    def __init__(self, http_client: AsyncHTTPClient, url: str):
        self.http_client = http_client
        self.url = url

    async def record(self, event: SearchEvent) -> None:
        response = await self.http_client.post_json(self.url, asdict(event))
        response.raise_for_status()


def build_observer(
    config: AppConfig,
    http_client: AsyncHTTPClient,
    logger: Optional[StructuredLogger] = None,
) -> SearchObserver:
    """Pick the observer implied by configuration."""
    if not config.analytics_enabled:
        return NullObserver()
    if config.analytics_url:
        return WebhookObserver(http_client, config.analytics_url)
    return LoggingObserver(logger or StructuredLogger(level=config.log_level))
