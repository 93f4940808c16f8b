"""
DebugImageWriter — dumps every Nth published frame as a PNG.

Plugged into FrameSource as its debug sink. Write failures are raised to
the caller, which logs and ignores them.
"""
from __future__ import annotations
from datetime import datetime
from pathlib import Path

import cv2

from domain.enums import PixelFormat
from domain.models import Frame

# cv2.imwrite expects BGR(A) or single channel
_TO_BGR = {
    PixelFormat.RGB:  cv2.COLOR_RGB2BGR,
    PixelFormat.RGBA: cv2.COLOR_RGBA2BGRA,
}


class DebugImageWriter:

    def __init__(self, directory: Path, every: int = 10) -> None:
        self._dir   = Path(directory)
        self._every = max(every, 1)
        self._count = 0
        self._dir.mkdir(parents=True, exist_ok=True)

    def __call__(self, frame: Frame) -> None:
        self._count += 1
        if (self._count - 1) % self._every:
            return

        pixels = frame.pixels
        code = _TO_BGR.get(frame.pixel_format)
        if code is not None:
            pixels = cv2.cvtColor(pixels, code)

        stamp = datetime.fromtimestamp(frame.timestamp).strftime("%Y%m%d_%H%M%S_%f")
        path = self._dir / f"frame_{stamp}.png"
        if not cv2.imwrite(str(path), pixels):
            raise OSError(f"cv2.imwrite failed for {path}")
