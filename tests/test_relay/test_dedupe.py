"""Tests for the time-bounded dedupe cache."""

from deal_relay.relay.dedupe import DedupeCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_marked_key_is_recent():
    cache = DedupeCache(window_seconds=300, timer=FakeClock())
    cache.mark_processed("C1:1700000000.000001")
    assert cache.was_recently_processed("C1:1700000000.000001")


def test_unknown_key_is_not_recent():
    cache = DedupeCache(window_seconds=300, timer=FakeClock())
    assert not cache.was_recently_processed("C1:1700000000.000001")


def test_key_expires_after_window():
    """After the window elapses the key is no longer recent."""
    clock = FakeClock()
    cache = DedupeCache(window_seconds=300, timer=clock)
    cache.mark_processed("C1:1.0")

    clock.now += 299
    assert cache.was_recently_processed("C1:1.0")

    clock.now += 2
    assert not cache.was_recently_processed("C1:1.0")


def test_discard_forgets_key():
    cache = DedupeCache()
    cache.mark_processed("C1:file:F1")

    cache.discard("C1:file:F1")
    cache.discard("C1:file:unknown")

    assert not cache.was_recently_processed("C1:file:F1")


def test_keys_are_independent():
    clock = FakeClock()
    cache = DedupeCache(window_seconds=300, timer=clock)
    cache.mark_processed("C1:1.0")
    clock.now += 200
    cache.mark_processed("C2:2.0")
    clock.now += 150

    assert not cache.was_recently_processed("C1:1.0")
    assert cache.was_recently_processed("C2:2.0")


def test_remark_extends_window():
    clock = FakeClock()
    cache = DedupeCache(window_seconds=300, timer=clock)
    cache.mark_processed("C1:1.0")
    clock.now += 250
    cache.mark_processed("C1:1.0")
    clock.now += 250
    assert cache.was_recently_processed("C1:1.0")


def test_expired_entries_are_pruned():
    """Expired keys do not count towards the size."""
    clock = FakeClock()
    cache = DedupeCache(window_seconds=60, timer=clock)
    for i in range(5):
        cache.mark_processed(f"C1:{i}.0")
    assert len(cache) == 5

    clock.now += 61
    assert len(cache) == 0


def test_size_is_bounded():
    cache = DedupeCache(window_seconds=300, max_entries=3, timer=FakeClock())
    for i in range(10):
        cache.mark_processed(f"C1:{i}.0")
    assert len(cache) == 3
    assert cache.was_recently_processed("C1:9.0")
