import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[str, str, BaseException], None]


class SyncScheduler:
    """Run connector syncs on a bounded worker pool.

    Callers submit and return immediately. A sync already running for the
    same user and provider is not started twice. Anything a worker raises is
    logged and handed to ``on_error``.
    """

    def __init__(self, sync_engine, max_workers: int = 4, on_error: Optional[ErrorCallback] = None):
        self.sync_engine = sync_engine
        self.on_error = on_error
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="sync")
        self._lock = threading.Lock()
        self._in_flight: Dict[Tuple[str, str], Future] = {}
        self._last_runs: Dict[Tuple[str, str], Dict[str, Any]] = {}

    def submit_sync(self, user_id: str, provider: str, force_sync: bool = False) -> Future:
        """Queue a sync and return its future (the existing one if already running)."""
        key = (user_id, provider)
        with self._lock:
            running = self._in_flight.get(key)
            if running is not None and not running.done():
                logger.info(f"Sync already in progress for {provider} user {user_id}")
                return running
            future = self._executor.submit(self._run, user_id, provider, force_sync)
            self._in_flight[key] = future
        future.add_done_callback(lambda f: self._finished(key, f))
        logger.info(f"Queued {provider} sync for user {user_id} (force_sync={force_sync})")
        return future

    def _run(self, user_id: str, provider: str, force_sync: bool):
        started = time.time()
        stats = self.sync_engine.sync(user_id, provider, force_sync=force_sync)
        with self._lock:
            self._last_runs[(user_id, provider)] = {
                'finished_at': time.time(),
                'duration_seconds': round(time.time() - started, 2),
                'stats': stats.to_dict() if stats is not None else None,
            }
        return stats

    def _finished(self, key: Tuple[str, str], future: Future) -> None:
        with self._lock:
            if self._in_flight.get(key) is future:
                del self._in_flight[key]
        exc = future.exception()
        if exc is None:
            return
        user_id, provider = key
        logger.error(f"Background {provider} sync for user {user_id} failed: {exc}", exc_info=exc)
        if self.on_error:
            try:
                self.on_error(user_id, provider, exc)
            except Exception as cb_exc:
                logger.error(f"Sync error callback raised: {cb_exc}")

    def status(self, user_id: str, provider: str) -> Dict[str, Any]:
        """Return whether a sync is running and the last finished run's summary."""
        key = (user_id, provider)
        with self._lock:
            running = key in self._in_flight
            last = self._last_runs.get(key)
        return {'running': running, 'last_run': last}

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
        logger.info("Sync scheduler stopped")
