"""
StatusChannel — typed, best-effort notification bus for observers
(supervisor, UI, logs). Never part of the decision path.

Updates go through a bounded queue to a dispatcher thread, so publishing
never blocks the capture or inference paths. When the queue is full the
update is dropped and counted.

The channel also aggregates per-tick error kinds so recovered failures
stay visible without flooding observers.
"""
from __future__ import annotations
import logging
import queue
import threading
from collections import Counter
from typing import Callable, Dict, List, Optional

from domain.enums import ErrorKind, StatusKind
from domain.models import StatusUpdate

logger = logging.getLogger(__name__)

StatusListener = Callable[[StatusUpdate], None]


class StatusChannel:
    """
    Usage
    -----
    channel = StatusChannel()
    channel.subscribe(lambda update: print(update.kind, update.message))
    channel.report(StatusKind.STARTED, "inference loop running")
    """

    def __init__(self, maxsize: int = 64) -> None:
        self._queue: "queue.Queue[Optional[StatusUpdate]]" = queue.Queue(maxsize=maxsize)
        self._listeners: List[StatusListener] = []
        self._lock = threading.Lock()
        self._errors: Counter = Counter()
        self._dropped = 0
        self._closed = False
        self._idle = threading.Condition()
        self._pending = 0
        self._thread = threading.Thread(target=self._dispatch, name="status", daemon=True)
        self._thread.start()

    # ------------------------------------------------------------------
    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register *listener*; returns a function that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)
        return unsubscribe

    def publish(self, update: StatusUpdate) -> bool:
        """Enqueue *update*. Returns False if it was dropped."""
        if self._closed:
            return False
        with self._idle:
            self._pending += 1
        try:
            self._queue.put_nowait(update)
        except queue.Full:
            self._settle()
            self._dropped += 1
            logger.debug("Status queue full, dropped %s", update.kind.value)
            return False
        return True

    def report(
        self,
        kind: StatusKind,
        message: str,
        error_kind: Optional[ErrorKind] = None,
    ) -> bool:
        if error_kind is not None:
            self.record_error(error_kind)
        return self.publish(StatusUpdate(kind=kind, message=message, error_kind=error_kind))

    def record_error(self, kind: ErrorKind) -> None:
        with self._lock:
            self._errors[kind] += 1

    def error_counts(self) -> Dict[ErrorKind, int]:
        with self._lock:
            return dict(self._errors)

    @property
    def dropped(self) -> int:
        return self._dropped

    def drain(self, timeout: float = 2.0) -> bool:
        """
        Block until every queued update has been delivered.
        Returns False on timeout.
        """
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout)

    def close(self, timeout: float = 2.0) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put(None)
        self._thread.join(timeout)

    # ------------------------------------------------------------------
    def _dispatch(self) -> None:
        while True:
            update = self._queue.get()
            if update is None:
                return
            try:
                with self._lock:
                    listeners = list(self._listeners)
                for listener in listeners:
                    try:
                        listener(update)
                    except Exception:
                        logger.exception("Status listener failed")
            finally:
                self._settle()

    def _settle(self) -> None:
        with self._idle:
            self._pending -= 1
            if self._pending == 0:
                self._idle.notify_all()
