"""In-memory store for pending OAuth states."""

import threading
import time
from typing import Callable, Dict, Optional, Tuple


class OAuthStateStore:
    """
    Maps an opaque state token to its PKCE code verifier.

    Entries live for ``ttl_seconds``. Expiry is checked lazily on ``pop``
    and swept in bulk on every ``put``; there are no per-entry timers.
    Contents are process-local and lost on restart.
    """

    def __init__(self, ttl_seconds: float = 600.0, now: Callable[[], float] = time.monotonic):
        """
        Args:
            ttl_seconds: Lifetime of a pending state (default: 10 minutes)
            now: Clock function (default: time.monotonic)
        """
        self.ttl_seconds = ttl_seconds
        self._now = now
        # {state: (verifier, expires_at)}
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    def put(self, state: str, verifier: str) -> None:
        with self._lock:
            self._sweep_locked()
            self._entries[state] = (verifier, self._now() + self.ttl_seconds)

    def pop(self, state: Optional[str]) -> Optional[str]:
        """Remove and return the verifier for ``state``.

        Returns None for unknown, already used or expired states. A state can
        be popped successfully at most once.
        """
        if not state:
            return None
        with self._lock:
            entry = self._entries.pop(state, None)
            if entry is None:
                return None
            verifier, expires_at = entry
            if self._now() >= expires_at:
                return None
            return verifier

    def sweep(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        with self._lock:
            return self._sweep_locked()

    def _sweep_locked(self) -> int:
        current_time = self._now()
        expired = [state for state, (_, expires_at) in self._entries.items() if current_time >= expires_at]
        for state in expired:
            del self._entries[state]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
