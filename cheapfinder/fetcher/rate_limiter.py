"""Per-client admission control using a fixed-window counter."""

import asyncio
import time
from typing import Callable, Dict, Optional

from cheapfinder.models.data_models import RateLimitRecord


class FixedWindowRateLimiter:
    """Fixed-window rate limiter keyed by client identity.

    Each client gets ``max_requests`` admissions per ``window_seconds``,
    counted from the first request of the window. Windows reset on wall
    clock boundaries per client, so a client may burst up to twice the
    capacity across a boundary.
    """

    def __init__(
        self,
        max_requests: int = 30,
        window_seconds: float = 60.0,
        now: Callable[[], float] = time.monotonic,
    ):
        """Initialize rate limiter.

        Args:
            max_requests: Admissions allowed per window (default: 30)
            window_seconds: Window length in seconds (default: 60)
            now: Clock function for time operations (default: time.monotonic)
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._now = now

        # {client: RateLimitRecord}; never pruned, stale records are overwritten on reuse
        self._records: Dict[str, RateLimitRecord] = {}
        self._lock = asyncio.Lock()

    async def admit(self, client: str) -> bool:
        """Record a request for ``client`` and report whether it is allowed.

        Rejected requests do not increment the counter.
        """
        async with self._lock:
            current_time = self._now()
            record = self._records.get(client)

            if record is None or current_time - record.window_start > self.window_seconds:
                self._records[client] = RateLimitRecord(count=1, window_start=current_time)
                return True

            if record.count >= self.max_requests:
                return False

            record.count += 1
            return True

    def remaining(self, client: str) -> int:
        """Admissions left for ``client`` in its current window.

        Used for response headers and testing.
        """
        record = self._records.get(client)
        if record is None or self._now() - record.window_start > self.window_seconds:
            return self.max_requests
        return max(0, self.max_requests - record.count)

    def record_for(self, client: str) -> Optional[RateLimitRecord]:
        return self._records.get(client)


def client_identity(forwarded_for: Optional[str], peer_host: Optional[str]) -> str:
    """Resolve the rate-limit key for a request.

    First ``X-Forwarded-For`` hop, then the transport peer, then a shared
    ``"unknown"`` bucket.
    """
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if peer_host:
        return peer_host
    return "unknown"
