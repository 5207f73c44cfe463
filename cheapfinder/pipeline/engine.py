"""Search engine coordinating fan-out, fallback, filtering and ranking."""

import asyncio
import time
from typing import Dict, List, Optional, Set

from cheapfinder.fetcher.source_fetcher import SourceFetcher
from cheapfinder.models.config import AppConfig
from cheapfinder.models.data_models import AdapterResult, Listing, SearchEvent, SearchRequest
from cheapfinder.monitoring.logger import StructuredLogger
from cheapfinder.pipeline.analytics import NullObserver, SearchObserver
from cheapfinder.processor.normalizer import normalize_batch
from cheapfinder.processor.ranking import apply_filters, rank, with_landed_price
from cheapfinder.sources.base import SourceAdapter
from cheapfinder.sources.static_catalog import catalog_for_query


def needs_fallback(results: Dict[str, AdapterResult]) -> bool:
    """The static catalog is used when the live sources produced nothing.

    Covers no sources requested, none configured, and all failed alike.
    """
    return sum(len(result.listings) for result in results.values()) == 0


def merge_results(results: Dict[str, AdapterResult]) -> List[Listing]:
    """Concatenate listings in source order."""
    merged: List[Listing] = []
    for result in results.values():
        merged.extend(result.listings)
    return merged


class SearchEngine:
    """Runs a search request end to end: fetch → merge → filter → rank."""

    def __init__(
        self,
        config: AppConfig,
        adapters: Dict[str, SourceAdapter],
        observer: Optional[SearchObserver] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Initialize engine.

        Args:
            config: Service configuration (mock mode, adapter timeout)
            adapters: Adapters keyed by source key
            observer: Analytics sink notified after every search
            logger: Structured logger
        """
        self.config = config
        self.logger = logger or StructuredLogger(level=config.log_level, structured=config.structured_logging)
        self.fetcher = SourceFetcher(adapters, timeout=config.adapter_timeout, logger=self.logger)
        self.observer = observer or NullObserver()
        self._pending: Set[asyncio.Task] = set()

    async def collect(self, request: SearchRequest) -> Dict[str, AdapterResult]:
        """Call every requested source, or none in mock mode."""
        keys = request.source_keys()
        if self.config.mock_mode:
            return {key: AdapterResult.not_configured(key) for key in keys}
        return await self.fetcher.fetch_all(keys, request.q, request.limit)

    async def search(self, request: SearchRequest) -> List[Listing]:
        """
        Produce the ranked top-N listings for a request.

        Returns:
            At most ``request.limit`` listings, each with an engine-computed
            landed price
        """
        start = time.monotonic()
        self.logger.search_start(query=request.q, sources=request.source_keys(), limit=request.limit)

        results = await self.collect(request)
        used_fallback = needs_fallback(results)
        if used_fallback:
            self.logger.fallback_used(
                query=request.q,
                outcomes={key: result.outcome.value for key, result in results.items()},
            )
            listings = normalize_batch(catalog_for_query(request.q), "Static")
        else:
            listings = merge_results(results)

        listings = with_landed_price(listings)
        listings = apply_filters(
            listings,
            min_rating=request.min_rating,
            min_reviews=request.min_reviews,
            max_price=request.max_price,
        )
        listings = rank(listings)[: request.limit]

        elapsed_ms = (time.monotonic() - start) * 1000
        self.logger.search_complete(
            query=request.q, count=len(listings), elapsed_ms=elapsed_ms, fallback=used_fallback
        )
        self._emit(SearchEvent(
            query=request.q,
            zip=request.zip,
            limit=request.limit,
            result_count=len(listings),
            used_fallback=used_fallback,
            outcomes={key: result.outcome.value for key, result in results.items()},
            elapsed_ms=elapsed_ms,
        ))
        return listings

    def _emit(self, event: SearchEvent) -> None:
        """Hand the event to the observer without waiting for it."""
        task = asyncio.create_task(self._record(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _record(self, event: SearchEvent) -> None:
        try:
            await self.observer.record(event)
        except Exception as e:
            self.logger.warning("analytics_failed", error=str(e) or type(e).__name__)

    async def drain(self) -> None:
        """Wait for in-flight analytics events. Used at shutdown and in tests."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
