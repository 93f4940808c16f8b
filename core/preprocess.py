"""
Frame → model input tensor.

Resize to the model's square input with bilinear interpolation, convert to
RGB and normalise every channel as (x - mean) / std.
"""
from __future__ import annotations

import cv2
import numpy as np

from domain.enums import PixelFormat
from domain.errors import TransformError
from domain.models import Frame

_TO_RGB = {
    PixelFormat.BGR:  cv2.COLOR_BGR2RGB,
    PixelFormat.BGRA: cv2.COLOR_BGRA2RGB,
    PixelFormat.RGBA: cv2.COLOR_RGBA2RGB,
    PixelFormat.GRAY: cv2.COLOR_GRAY2RGB,
}


def frame_to_tensor(
    frame: Frame,
    size: int = 224,
    mean: float = 0.0,
    std: float = 255.0,
) -> np.ndarray:
    """
    Returns
    -------
    np.ndarray
        float32 array of shape (size, size, 3).
    """
    if std == 0:
        raise TransformError("normalisation std must be non-zero")
    try:
        pixels = frame.pixels
        code = _TO_RGB.get(frame.pixel_format)
        if code is not None:
            pixels = cv2.cvtColor(pixels, code)
        resized = cv2.resize(pixels, (size, size), interpolation=cv2.INTER_LINEAR)
    except cv2.error as exc:
        raise TransformError(f"cannot convert {frame.width}x{frame.height} "
                             f"{frame.pixel_format.value} frame: {exc}") from exc

    if resized.shape != (size, size, 3):
        raise TransformError(f"unexpected tensor shape {resized.shape}")
    return (resized.astype(np.float32) - mean) / std
