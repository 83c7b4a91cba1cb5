"""Replay guard for single-use OAuth authorization codes.

Remembers each code for a short window so a double-submitted callback is
rejected before it reaches the token endpoint. State is process-local and
is lost on restart; several instances behind a load balancer do not share it.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Callable

from ..config import settings


class CodeReplayGuard:
    """Time- and capacity-bounded set of recently seen authorization codes."""

    def __init__(
        self,
        window_seconds: float = 120.0,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.window_seconds = window_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._seen: OrderedDict[str, float] = OrderedDict()

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, code: object) -> bool:
        self.evict_expired()
        return code in self._seen

    def evict_expired(self) -> int:
        """Drop entries older than the window. Returns the number removed."""
        cutoff = self._clock() - self.window_seconds
        removed = 0
        # Insertion order is first-seen order, so stop at the first live entry.
        while self._seen:
            code, first_seen = next(iter(self._seen.items()))
            if first_seen > cutoff:
                break
            del self._seen[code]
            removed += 1
        return removed

    def check_and_remember(self, code: str) -> bool:
        """Record *code*. Returns False if it was already seen inside the window,
        or if the guard is full of live entries.
        """
        self.evict_expired()
        if code in self._seen:
            return False
        # Live entries are never dropped; a full guard refuses new codes.
        if self.is_full:
            return False
        self._seen[code] = self._clock()
        return True

    @property
    def is_full(self) -> bool:
        return len(self._seen) >= self.max_entries

    def clear(self) -> None:
        self._seen.clear()


replay_guard = CodeReplayGuard(
    window_seconds=settings.replay_window_seconds,
    max_entries=settings.replay_max_entries,
)
