"""
FrameSlot — single-element hand-off between capture and inference.

Latest wins: publishing over an unconsumed frame replaces it. Nothing is
ever queued, so the capture path can never build a backlog.
"""
from __future__ import annotations
import threading
from typing import Optional

from domain.models import Frame


class FrameSlot:
    """
    Usage
    -----
    slot = FrameSlot()
    slot.publish(frame)        # capture thread
    frame = slot.take()        # inference tick, None if empty
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._frame: Optional[Frame] = None
        self._published = 0
        self._overwritten = 0

    def publish(self, frame: Frame) -> bool:
        """
        Store *frame*, discarding any unconsumed one.
        Returns True if a previous frame was overwritten.
        """
        with self._lock:
            overwritten = self._frame is not None
            self._frame = frame
            self._published += 1
            if overwritten:
                self._overwritten += 1
        return overwritten

    def take(self) -> Optional[Frame]:
        """Remove and return the latest frame, or None if the slot is empty."""
        with self._lock:
            frame, self._frame = self._frame, None
        return frame

    def peek(self) -> Optional[Frame]:
        with self._lock:
            return self._frame

    def clear(self) -> None:
        with self._lock:
            self._frame = None

    @property
    def published(self) -> int:
        return self._published

    @property
    def overwritten(self) -> int:
        """Frames discarded before any tick consumed them."""
        return self._overwritten

    def __len__(self) -> int:
        with self._lock:
            return 0 if self._frame is None else 1
