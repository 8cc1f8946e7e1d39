#Description: Server-time offset caching and failure handling.
from services.clock import ClockSynchronizer


class Local:
    def __init__(self, ms=1_700_000_000_000):
        self.ms = ms

    def __call__(self):
        return self.ms


def test_two_syncs_within_window_fetch_once():
    calls = []
    local = Local()

    def fetch():
        calls.append(1)
        return local.ms + 1500

    clock = ClockSynchronizer(fetch, local_ms=local)
    assert clock.sync() is True
    local.ms += 4 * 60 * 1000
    assert clock.sync() is False
    assert len(calls) == 1
    assert clock.offset().offset_ms == 1500
    assert clock.adjusted_now() == local.ms + 1500


def test_resync_after_window():
    calls = []
    local = Local()

    def fetch():
        calls.append(1)
        return local.ms - 250

    clock = ClockSynchronizer(fetch, local_ms=local)
    clock.sync()
    local.ms += 5 * 60 * 1000
    clock.sync()
    assert len(calls) == 2
    assert clock.offset().offset_ms == -250


def test_failed_sync_keeps_offset_and_retries():
    local = Local()
    attempts = []

    def fetch():
        attempts.append(1)
        if len(attempts) > 1:
            raise ConnectionError("timeout")
        return local.ms + 900

    clock = ClockSynchronizer(fetch, local_ms=local)
    clock.sync()
    local.ms += 6 * 60 * 1000
    assert clock.sync() is False
    assert clock.offset().offset_ms == 900
    assert clock.sync() is False
    assert len(attempts) == 3


def test_unsynced_clock_uses_zero_offset():
    local = Local()

    def fetch():
        raise RuntimeError("down")

    clock = ClockSynchronizer(fetch, local_ms=local)
    clock.sync()
    assert clock.adjusted_now() == local.ms
    assert clock.offset().last_synced_at is None
