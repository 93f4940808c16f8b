"""
Capture surfaces — push-style sources of raw screen buffers.

A surface notifies its listener ("new buffer ready") and lets the caller
pull the current raw buffer. No ML, no frame canonicalisation here.
"""
from __future__ import annotations
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

import cv2
import numpy as np

from domain.enums import PixelFormat
from domain.errors import SurfaceUnavailableError

logger = logging.getLogger(__name__)

BufferListener = Callable[[], None]


class CaptureSurface(ABC):
    """Base class for everything that produces raw screen buffers."""

    pixel_format: PixelFormat = PixelFormat.BGR

    def __init__(self) -> None:
        self._listener: Optional[BufferListener] = None

    def set_listener(self, listener: Optional[BufferListener]) -> None:
        """Register the callback fired whenever a new buffer is ready."""
        self._listener = listener

    @abstractmethod
    def start(self) -> None:
        """Begin producing buffers. Raises SurfaceUnavailableError."""

    @abstractmethod
    def stop(self) -> None:
        """Stop producing buffers and release the device."""

    @abstractmethod
    def acquire_latest(self) -> Optional[np.ndarray]:
        """Pull the current raw buffer (None if nothing new is available)."""

    def _notify(self) -> None:
        listener = self._listener
        if listener is None:
            return
        try:
            listener()
        except Exception:
            logger.exception("Capture listener failed")

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} format={self.pixel_format.value}>"


class PollingCaptureSurface(CaptureSurface):
    """
    Grabs buffers on a background thread at most *fps_limit* times per
    second and fires the listener after each successful grab.

    Subclasses implement _open(), _grab() and _close().
    """

    def __init__(self, fps_limit: int = 5) -> None:
        super().__init__()
        self._frame_time = 1.0 / max(fps_limit, 1)
        self._lock = threading.Lock()
        self._latest: Optional[np.ndarray] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._open()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name=f"capture-{self.__class__.__name__}", daemon=True
        )
        self._thread.start()
        logger.info("Capture started: %r", self)

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=3.0)
            self._thread = None
        self._close()
        with self._lock:
            self._latest = None

    def acquire_latest(self) -> Optional[np.ndarray]:
        with self._lock:
            buffer, self._latest = self._latest, None
        return buffer

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ------------------------------------------------------------------
    def _run(self) -> None:
        prev_time = 0.0
        while not self._stop_event.is_set():
            # FPS limiting
            remaining = self._frame_time - (time.monotonic() - prev_time)
            if remaining > 0 and self._stop_event.wait(remaining):
                break
            prev_time = time.monotonic()

            try:
                buffer = self._grab()
            except Exception as exc:
                logger.debug("Grab failed on %r: %s", self, exc)
                continue
            if buffer is None:
                continue

            with self._lock:
                self._latest = buffer
            self._notify()

    @abstractmethod
    def _open(self) -> None: ...

    @abstractmethod
    def _grab(self) -> Optional[np.ndarray]: ...

    def _close(self) -> None:
        pass


class VideoCaptureSurface(PollingCaptureSurface):
    """
    OpenCV VideoCapture device (capture card, v4l2 loopback of a mirrored
    phone screen, webcam...). Buffers are BGR.

    Parameters
    ----------
    device : int | str
        Camera index or stream URL.
    fps_limit : int
        Maximum buffers per second.
    """

    pixel_format = PixelFormat.BGR

    def __init__(self, device: int | str = 0, fps_limit: int = 5) -> None:
        super().__init__(fps_limit)
        self._device = device
        self._cap: Optional[cv2.VideoCapture] = None

    def _open(self) -> None:
        self._cap = cv2.VideoCapture(self._device)
        if not self._cap.isOpened():
            self._cap.release()
            self._cap = None
            raise SurfaceUnavailableError(f"Cannot open capture device {self._device!r}")

    def _grab(self) -> Optional[np.ndarray]:
        if self._cap is None:
            return None
        ret, frame = self._cap.read()
        return frame if ret else None

    def _close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
