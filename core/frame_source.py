"""
FrameSource — adapts a capture surface into canonical Frames.

Push-triggered: the surface fires on_buffer_ready(), the source pulls the
raw buffer, validates it and publishes a Frame to the slot. Unreadable
buffers are transient: skipped, counted, never reported.
"""
from __future__ import annotations
import logging
from typing import Callable, Optional

import numpy as np

from core.capture import CaptureSurface
from core.frame_slot import FrameSlot
from domain.enums import PixelFormat
from domain.errors import CaptureTransientError
from domain.models import Frame

logger = logging.getLogger(__name__)

DebugSink = Callable[[Frame], None]

_CHANNELS = {
    PixelFormat.GRAY: 1,
    PixelFormat.RGB:  3,
    PixelFormat.BGR:  3,
    PixelFormat.RGBA: 4,
    PixelFormat.BGRA: 4,
}


def to_frame(buffer: Optional[np.ndarray], pixel_format: PixelFormat) -> Frame:
    """
    Validate a raw buffer against its declared pixel format and snapshot it.
    Raises CaptureTransientError if the buffer is unusable.
    """
    if buffer is None:
        raise CaptureTransientError("no buffer available")
    buffer = np.asarray(buffer)
    if buffer.size == 0:
        raise CaptureTransientError("empty buffer")

    expected = _CHANNELS[pixel_format]
    if buffer.ndim == 3 and buffer.shape[2] == 1 and expected == 1:
        buffer = buffer[:, :, 0]
    channels = 1 if buffer.ndim == 2 else (buffer.shape[2] if buffer.ndim == 3 else -1)
    if channels != expected:
        raise CaptureTransientError(
            f"buffer shape {buffer.shape} does not match {pixel_format.value}"
        )
    return Frame.from_buffer(buffer, pixel_format)


class FrameSource:
    """
    Parameters
    ----------
    surface : CaptureSurface
        Push-style raw buffer producer.
    slot : FrameSlot
        Hand-off target. Publishing overwrites any unconsumed frame.
    debug_sink : callable, optional
        Receives every published frame. Fire-and-forget: its failures are
        logged and never affect publication.
    """

    def __init__(
        self,
        surface: CaptureSurface,
        slot: FrameSlot,
        debug_sink: Optional[DebugSink] = None,
    ) -> None:
        self._surface    = surface
        self._slot       = slot
        self._debug_sink = debug_sink
        self._transient_errors = 0

    # ------------------------------------------------------------------
    def attach(self) -> None:
        """Subscribe to the surface's new-buffer notifications."""
        self._surface.set_listener(self.on_buffer_ready)

    def detach(self) -> None:
        self._surface.set_listener(None)

    def on_buffer_ready(self) -> Optional[Frame]:
        """
        Pull, convert and publish the surface's current buffer.
        Returns the published Frame, or None if the buffer was skipped.
        """
        try:
            frame = to_frame(self._surface.acquire_latest(), self._surface.pixel_format)
        except CaptureTransientError as exc:
            self._transient_errors += 1
            logger.debug("Skipping capture buffer: %s", exc)
            return None
        except Exception as exc:
            self._transient_errors += 1
            logger.debug("Capture surface pull failed: %s", exc)
            return None

        if self._slot.publish(frame):
            logger.debug("Unconsumed frame overwritten")

        if self._debug_sink is not None:
            try:
                self._debug_sink(frame)
            except Exception as exc:
                logger.warning("Debug sink failed: %s", exc)

        return frame

    @property
    def transient_errors(self) -> int:
        return self._transient_errors
