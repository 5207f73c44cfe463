"""Structured logging for the search service."""

import json
import logging
from typing import Any, Dict, Optional


class StructuredLogger:
    """Structured logger with uniform schema.

    In structured mode every record is a single JSON object. Development
    deployments can switch to ``event key=value`` lines instead.
    """

    def __init__(self, name: str = "cheapfinder", level: str = "INFO", structured: bool = True):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.structured = structured

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(handler)

    def _render(self, event: str, fields: Dict[str, Any]) -> str:
        if self.structured:
            return json.dumps({"event": event, **fields}, default=str)
        pairs = " ".join(f"{key}={value}" for key, value in fields.items())
        return f"{event} {pairs}".rstrip()

    def log(self, event: str, **kwargs) -> None:
        """
        Log structured event.

        Standard keys: event, source, query, count, outcome, elapsed_ms,
                      client, path, status, error
        """
        self.logger.info(self._render(event, kwargs))

    def warning(self, event: str, **kwargs) -> None:
        self.logger.warning(self._render(event, kwargs))

    def error(self, event: str, exc_info: bool = False, **kwargs) -> None:
        self.logger.error(self._render(event, kwargs), exc_info=exc_info)

    def search_start(self, query: str, sources: list, limit: int) -> None:
        self.log("search_start", query=query, sources=sources, limit=limit)

    def search_complete(self, query: str, count: int, elapsed_ms: float, fallback: bool) -> None:
        self.log("search_complete", query=query, count=count, elapsed_ms=elapsed_ms, fallback=fallback)

    def adapter_failed(self, source: str, error: str, elapsed_ms: Optional[float] = None) -> None:
        self.warning("adapter_failed", source=source, error=error, elapsed_ms=elapsed_ms)

    def fallback_used(self, query: str, outcomes: Dict[str, str]) -> None:
        self.log("fallback_used", query=query, outcomes=outcomes)

    def rate_limited(self, client: str, path: str) -> None:
        self.warning("rate_limited", client=client, path=path)

    def oauth_start(self, provider: str) -> None:
        self.log("oauth_start", provider=provider)

    def oauth_exchange_failed(self, provider: str, error: str) -> None:
        self.error("oauth_exchange_failed", provider=provider, error=error)
