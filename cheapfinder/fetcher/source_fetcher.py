"""Concurrent fan-out to source adapters with per-call timeouts."""

import asyncio
import time
from typing import Dict, List, Optional

from cheapfinder.models.data_models import AdapterOutcome, AdapterResult
from cheapfinder.models.errors import AdapterFailure
from cheapfinder.monitoring.logger import StructuredLogger
from cheapfinder.processor.normalizer import normalize_batch
from cheapfinder.sources.base import SourceAdapter


class SourceFetcher:
    """
    Calls source adapters concurrently and folds every ending into an
    AdapterResult.

    Responsibilities:
    - Skip adapters without credentials (AUTH_NOT_CONFIGURED)
    - Bound each call with ``timeout`` seconds
    - Convert timeouts, upstream errors and malformed payloads into FAILED
    - Normalize successful payloads into Listings
    """

    def __init__(
        self,
        adapters: Dict[str, SourceAdapter],
        timeout: float = 8.0,
        logger: Optional[StructuredLogger] = None
    ):
        """
        Initialize fetcher.

        Args:
            adapters: Adapters keyed by source key
            timeout: Upper bound for a single adapter call in seconds
            logger: Optional structured logger for telemetry
        """
        self.adapters = adapters
        self.timeout = timeout
        self.logger = logger

    async def fetch_source(self, key: str, query: str, limit: int) -> AdapterResult:
        """
        Fetch listings from one source.

        Never raises: every failure mode becomes a FAILED result with a
        reason, so one bad source cannot abort the search.
        """
        adapter = self.adapters.get(key)
        if adapter is None or not adapter.configured:
            return AdapterResult.not_configured(key)

        start = time.monotonic()
        try:
            records = await asyncio.wait_for(adapter.search(query, limit), timeout=self.timeout)
            if not isinstance(records, list):
                raise AdapterFailure(key, f"returned {type(records).__name__}, expected list")
            listings = normalize_batch(records, adapter.label)
        except asyncio.TimeoutError:
            return self._failure(key, "timeout", start)
        except AdapterFailure as e:
            return self._failure(key, e.reason, start)
        except Exception as e:
            return self._failure(key, str(e) or type(e).__name__, start)

        return AdapterResult(
            source=key,
            listings=listings,
            outcome=AdapterOutcome.OK,
            duration=time.monotonic() - start,
        )

    def _failure(self, key: str, reason: str, start: float) -> AdapterResult:
        duration = time.monotonic() - start
        if self.logger:
            self.logger.adapter_failed(source=key, error=reason, elapsed_ms=duration * 1000)
        return AdapterResult.failed(key, reason, duration)

    async def fetch_all(self, keys: List[str], query: str, limit: int) -> Dict[str, AdapterResult]:
        """
        Fetch from all requested sources concurrently.

        Waits for every call to settle; results keep the order of ``keys``.

        Args:
            keys: Source keys to call
            query: Search term
            limit: Records wanted per source

        Returns:
            Dictionary mapping source key to its result
        """
        tasks = [self.fetch_source(key, query, limit) for key in keys]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        results_dict = {}
        for key, result in zip(keys, results):
            if isinstance(result, BaseException):
                # Only reachable if fetch_source itself is cancelled
                results_dict[key] = AdapterResult.failed(key, repr(result))
            else:
                results_dict[key] = result
        return results_dict
