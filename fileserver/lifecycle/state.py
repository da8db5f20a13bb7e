"""Server lifecycle state: draining flag and connection worker tracking."""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from fileserver.domain.correlation_id import CorrelationLoggerAdapter

LIFECYCLE_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("fileserver.lifecycle"), {}
)

JOIN_SLICE_SECONDS = 0.1


class ServerLifecycle:
    """Tracks connection workers and whether the server is shutting down."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._draining_event = threading.Event()
        self._workers: set[threading.Thread] = set()

    def is_draining(self) -> bool:
        """Return True once shutdown has begun."""
        return self._draining_event.is_set()

    @contextmanager
    def track_worker(
        self, thread: Optional[threading.Thread] = None
    ) -> Iterator[threading.Thread]:
        """Register ``thread`` (default: current thread) for the duration of a block."""
        worker = thread or threading.current_thread()
        with self._lock:
            self._workers.add(worker)
        try:
            yield worker
        finally:
            with self._lock:
                self._workers.discard(worker)

    def active_worker_count(self) -> int:
        """Return the number of workers still serving connections."""
        with self._lock:
            return len(self._workers)

    def begin_draining(self, reason: str = "requested") -> None:
        """Stop accepting new work; idempotent."""
        if self._draining_event.is_set():
            return
        self._draining_event.set()
        LIFECYCLE_LOGGER.info(
            "Beginning graceful shutdown",
            extra={"event": "shutdown_started", "signal": reason},
        )

    def wait_for_workers(self, timeout: float) -> bool:
        """Join tracked workers until they finish or ``timeout`` elapses."""
        deadline = time.monotonic() + timeout
        while True:
            with self._lock:
                self._workers = {w for w in self._workers if w.is_alive()}
                active_workers = list(self._workers)
            if not active_workers:
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                LIFECYCLE_LOGGER.warning(
                    "Shutdown timeout exceeded",
                    extra={
                        "event": "shutdown_timeout",
                        "remaining_workers": len(active_workers),
                    },
                )
                return False
            for worker in active_workers:
                worker.join(timeout=min(JOIN_SLICE_SECONDS, remaining))
                if time.monotonic() >= deadline:
                    break
