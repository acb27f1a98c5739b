from __future__ import annotations

import threading
from typing import Callable, Optional

from ..common.logging import get_logger

logger = get_logger(__name__)


class RecurringTask:
    """Cancellable periodic runner on a daemon thread.

    Owned by whoever wires the application together; the job itself knows
    nothing about scheduling.
    """

    def __init__(self, fn: Callable[[], object], *, interval_seconds: float, name: str = "recurring-task"):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._fn = fn
        self._interval = float(interval_seconds)
        self._name = name
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, *, run_immediately: bool = True) -> None:
        with self._lock:
            if self.running:
                return
            self._stop.clear()
            self._thread = threading.Thread(
                target=self._loop,
                args=(run_immediately,),
                name=self._name,
                daemon=True,
            )
            self._thread.start()
        logger.info("%s started (every %ss)", self._name, self._interval)

    def stop(self, *, timeout: Optional[float] = None) -> None:
        with self._lock:
            thread = self._thread
            self._stop.set()
            self._thread = None
        if thread is not None:
            thread.join(timeout=timeout)
            logger.info("%s stopped", self._name)

    def _loop(self, run_immediately: bool) -> None:
        if run_immediately:
            self._tick()
        while not self._stop.wait(self._interval):
            self._tick()

    def _tick(self) -> None:
        try:
            self._fn()
        except Exception:
            logger.exception("%s tick failed", self._name)
