#Description: Exchange server-time offset used to stamp signed requests.
import time

from datetime import timedelta
from threading import Lock
from typing import Callable

from models.errors import ClockSyncFailed
from models.schemas import TimeOffset
from utils.logging import logger

SYNC_INTERVAL = timedelta(minutes=5)


def _local_ms() -> int:
    return int(time.time() * 1000)


class ClockSynchronizer:
    """
    Keeps `server_time - local_time` for one exchange endpoint.

    `fetch_server_time` returns the exchange time in epoch milliseconds. A
    failed fetch keeps the previous offset and is retried on the next sync.
    """

    def __init__(self, fetch_server_time: Callable[[], int],
                 interval: timedelta = SYNC_INTERVAL,
                 local_ms: Callable[[], int] = _local_ms):
        self._fetch = fetch_server_time
        self._interval_ms = int(interval.total_seconds() * 1000)
        self._local_ms = local_ms
        self._offset_ms = 0
        self._last_sync_ms: int | None = None
        self._lock = Lock()

    def sync(self) -> bool:
        """Refresh the offset unless the last good sync is recent. Returns True if a fetch happened and succeeded."""
        with self._lock:
            now = self._local_ms()
            if self._last_sync_ms is not None and now - self._last_sync_ms < self._interval_ms:
                return False
            try:
                server_ms = self._fetch_server_time()
            except ClockSyncFailed as exc:
                logger.warning(f"Server time sync failed, keeping offset {self._offset_ms}ms: {exc}")
                return False
            local = self._local_ms()
            self._offset_ms = int(server_ms) - local
            self._last_sync_ms = local
            logger.info(f"Time synced with exchange. Offset: {self._offset_ms}ms")
            return True

    def _fetch_server_time(self) -> int:
        try:
            return int(self._fetch())
        except Exception as exc:
            raise ClockSyncFailed(str(exc)) from exc

    def adjusted_now(self) -> int:
        return self._local_ms() + self._offset_ms

    def offset(self) -> TimeOffset:
        last = self._last_sync_ms / 1000.0 if self._last_sync_ms is not None else None
        return TimeOffset(offset_ms=self._offset_ms, last_synced_at=last)
