"""Shared success counter and the periodic progress reporter."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

LOGGER = logging.getLogger(__name__)


class AtomicCounter:
    """Integer counter that is safe to increment from many threads."""

    def __init__(self, initial: int = 0) -> None:
        self._value = initial
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        with self._lock:
            self._value += amount
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


def _log_progress(count: int) -> None:
    LOGGER.info("Generated %d files...", count)


class ProgressMonitor:
    """Report the counter value every ``interval`` seconds until stopped.

    A non-positive interval disables reporting entirely.
    """

    def __init__(
        self,
        counter: AtomicCounter,
        interval: float = 1.0,
        *,
        reporter: Optional[Callable[[int], None]] = None,
    ) -> None:
        self._counter = counter
        self._interval = interval
        self._reporter = reporter or _log_progress
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def enabled(self) -> bool:
        return self._interval > 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if not self.enabled or self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="ssg-progress", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                self._reporter(self._counter.value)
            except Exception:  # pragma: no cover - reporter must not kill the monitor
                LOGGER.exception("Progress reporter failed")

    def __enter__(self) -> "ProgressMonitor":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
