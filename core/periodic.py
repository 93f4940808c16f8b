"""
PeriodicTask — fixed-rate timer with a cancellation event.

The callback runs on the timer thread and must return quickly; anything
slow belongs on a worker the callback hands off to.
"""
from __future__ import annotations
import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Parameters
    ----------
    interval : float
        Period in seconds.
    callback : callable
        Invoked once per period. Exceptions are logged, the timer keeps going.
    name : str
        Thread name, for logs.
    """

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "periodic") -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._interval  = interval
        self._callback  = callback
        self._name      = name
        self._cancelled = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self.running:
            return
        self._cancelled.clear()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        """Prevent further firings. Safe to call from the callback itself."""
        self._cancelled.set()

    def join(self, timeout: Optional[float] = None) -> None:
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    @property
    def running(self) -> bool:
        return (self._thread is not None
                and self._thread.is_alive()
                and not self._cancelled.is_set())

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    # ------------------------------------------------------------------
    def _run(self) -> None:
        next_at = time.monotonic() + self._interval
        while not self._cancelled.wait(max(0.0, next_at - time.monotonic())):
            try:
                self._callback()
            except Exception:
                logger.exception("%s callback failed", self._name)
            next_at += self._interval
            # at most one firing per period after falling behind
            now = time.monotonic()
            if next_at < now:
                next_at = now + self._interval
