"""
Desktop collaborators backed by pyautogui.

Importing this module needs a display; the rest of the package never
imports pyautogui directly.
"""
from __future__ import annotations
import logging
import time
from typing import Optional, Sequence, Tuple

import numpy as np
import pyautogui

from core.capture import PollingCaptureSurface
from core.input_surface import InputSurface, PixelPoint
from domain.enums import PixelFormat
from domain.errors import SurfaceUnavailableError
from domain.models import UINode

logger = logging.getLogger(__name__)

pyautogui.PAUSE = 0.01


class ScreenshotCaptureSurface(PollingCaptureSurface):
    """Full-screen grabs via pyautogui.screenshot(). Buffers are RGB."""

    pixel_format = PixelFormat.RGB

    def _open(self) -> None:
        try:
            pyautogui.size()
        except Exception as exc:
            raise SurfaceUnavailableError(f"No screen to capture: {exc}") from exc

    def _grab(self) -> Optional[np.ndarray]:
        image = pyautogui.screenshot()
        return np.asarray(image.convert("RGB"))


class PyAutoGUIInputSurface(InputSurface):
    """
    Mouse and keyboard of the local desktop.

    The desktop exposes no accessibility tree, so keyboard focus is
    modelled as a single focused, editable root node; setting its text
    types the payload with pyautogui.write().
    """

    NAME = "PYAUTOGUI"

    def __init__(self, typing_interval: float = 0.0) -> None:
        self._typing_interval = typing_interval
        self._focus = UINode(node_id="keyboard-focus", class_name="Desktop",
                             focused=True, editable=True)

    def dispatch_stroke(self, points: Sequence[PixelPoint], duration_ms: int) -> bool:
        if not points:
            return False
        seconds = max(duration_ms, 0) / 1000.0
        try:
            pyautogui.moveTo(*points[0])
            pyautogui.mouseDown()
        except pyautogui.FailSafeException:
            logger.warning("pyautogui fail-safe triggered, stroke rejected")
            return False

        # the button is down: every exit path below must release it
        try:
            if len(points) == 1:
                time.sleep(seconds)
            else:
                segment = seconds / (len(points) - 1)
                for x, y in points[1:]:
                    pyautogui.moveTo(x, y, duration=segment)
        except pyautogui.FailSafeException:
            logger.warning("pyautogui fail-safe triggered, stroke rejected")
            return False
        finally:
            released = self._release_button()
        return released

    def _release_button(self) -> bool:
        try:
            pyautogui.mouseUp()
        except Exception as exc:
            logger.error("mouseUp failed, button may still be held: %s", exc)
            return False
        return True

    def query_active_tree_root(self) -> Optional[UINode]:
        return self._focus

    def set_node_text(self, node: UINode, text: str) -> bool:
        if node is not self._focus:
            return False
        pyautogui.write(text, interval=self._typing_interval)
        node.text = text
        return True

    def screen_size(self) -> Tuple[int, int]:
        width, height = pyautogui.size()
        return int(width), int(height)

    def is_available(self) -> bool:
        try:
            width, height = pyautogui.size()
        except Exception as exc:
            logger.error("pyautogui cannot reach the display: %s", exc)
            return False
        return width > 0 and height > 0
