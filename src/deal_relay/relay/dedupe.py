"""Time-bounded record of recent successful relays.

Keys are ``"<channel_id>:<message_ts>"`` for notes and
``"<channel_id>:file:<file_id>"`` for shared files. Backed by a cachetools
TTLCache, so expired entries are pruned on every write and the map never
grows past ``max_entries``. Not persisted: a restart forgets everything.
"""

import time
from collections.abc import Callable

from cachetools import TTLCache


class DedupeCache:
    """Remembers keys for ``window_seconds`` after they were marked."""

    def __init__(
        self,
        window_seconds: float = 300.0,
        max_entries: int = 10_000,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window_seconds = window_seconds
        self._entries: TTLCache = TTLCache(maxsize=max_entries, ttl=window_seconds, timer=timer)

    def was_recently_processed(self, key: str) -> bool:
        return key in self._entries

    def mark_processed(self, key: str) -> None:
        self._entries[key] = True

    def discard(self, key: str) -> None:
        """Forget one key so the next delivery is processed again."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Forget every key. Used for testing."""
        self._entries.clear()

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)
