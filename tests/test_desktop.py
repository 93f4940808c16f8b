"""
pyautogui needs a display, so these tests swap in a recording double for
the module before core.desktop is imported.
"""
import importlib
import sys
import types

import numpy as np
import pytest

from domain.enums import PixelFormat
from domain.errors import SurfaceUnavailableError
from domain.models import UINode


class FailSafeException(Exception):
    pass


class FakeGUI(types.ModuleType):
    """Records every call; a call listed in *fail_on* raises instead."""

    FailSafeException = FailSafeException

    def __init__(self) -> None:
        super().__init__("pyautogui")
        self.PAUSE = 0.1
        self.calls = []
        self.fail_on = {}
        self.screen = (1920, 1080)

    def _record(self, *call):
        self.calls.append(call)
        error = self.fail_on.get(call)
        if error is not None:
            raise error

    def moveTo(self, x, y, duration=0.0):
        self._record("moveTo", x, y)

    def mouseDown(self):
        self._record("mouseDown")

    def mouseUp(self):
        self._record("mouseUp")

    def write(self, text, interval=0.0):
        self._record("write", text)

    def size(self):
        if isinstance(self.screen, Exception):
            raise self.screen
        return self.screen

    def screenshot(self):
        return _FakeImage()


class _FakeImage:

    def convert(self, mode):
        assert mode == "RGB"
        return np.zeros((4, 6, 3), dtype=np.uint8)


@pytest.fixture
def gui(monkeypatch):
    fake = FakeGUI()
    monkeypatch.setitem(sys.modules, "pyautogui", fake)
    monkeypatch.delitem(sys.modules, "core.desktop", raising=False)
    return fake


@pytest.fixture
def desktop(gui):
    module = importlib.import_module("core.desktop")
    yield module
    sys.modules.pop("core.desktop", None)


def _count(gui, name):
    return sum(1 for call in gui.calls if call[0] == name)


class TestStrokes:

    def test_click_presses_and_releases(self, gui, desktop):
        surface = desktop.PyAutoGUIInputSurface()
        assert surface.dispatch_stroke([(10, 10)], 0) is True
        assert gui.calls == [("moveTo", 10, 10), ("mouseDown",), ("mouseUp",)]

    def test_swipe_drags_through_every_point(self, gui, desktop):
        surface = desktop.PyAutoGUIInputSurface()
        assert surface.dispatch_stroke([(10, 10), (50, 10), (90, 10)], 0) is True
        assert gui.calls == [
            ("moveTo", 10, 10), ("mouseDown",),
            ("moveTo", 50, 10), ("moveTo", 90, 10),
            ("mouseUp",),
        ]

    def test_fail_safe_mid_swipe_still_releases_button(self, gui, desktop):
        gui.fail_on[("moveTo", 90, 10)] = FailSafeException("corner")
        surface = desktop.PyAutoGUIInputSurface()

        assert surface.dispatch_stroke([(10, 10), (90, 10)], 100) is False
        assert _count(gui, "mouseDown") == 1
        assert _count(gui, "mouseUp") == 1
        assert gui.calls[-1] == ("mouseUp",)

    def test_unexpected_error_propagates_after_release(self, gui, desktop):
        gui.fail_on[("moveTo", 90, 10)] = OSError("X server gone")
        surface = desktop.PyAutoGUIInputSurface()

        with pytest.raises(OSError):
            surface.dispatch_stroke([(10, 10), (90, 10)], 0)
        assert _count(gui, "mouseUp") == 1

    def test_failed_release_rejects_stroke(self, gui, desktop):
        gui.fail_on[("mouseUp",)] = OSError("button stuck")
        surface = desktop.PyAutoGUIInputSurface()
        assert surface.dispatch_stroke([(10, 10)], 0) is False

    def test_fail_safe_before_press_never_touches_button(self, gui, desktop):
        gui.fail_on[("moveTo", 0, 0)] = FailSafeException("corner")
        surface = desktop.PyAutoGUIInputSurface()
        assert surface.dispatch_stroke([(0, 0)], 0) is False
        assert _count(gui, "mouseDown") == 0
        assert _count(gui, "mouseUp") == 0

    def test_empty_stroke_is_rejected(self, gui, desktop):
        assert desktop.PyAutoGUIInputSurface().dispatch_stroke([], 100) is False
        assert gui.calls == []


class TestKeyboardFocus:

    def test_text_is_typed_into_focus_node(self, gui, desktop):
        surface = desktop.PyAutoGUIInputSurface()
        node = surface.query_focused_editable_node()

        assert node is not None and node.focused and node.editable
        assert surface.set_node_text(node, "hola") is True
        assert node.text == "hola"
        assert gui.calls == [("write", "hola")]

    def test_foreign_node_is_rejected(self, gui, desktop):
        surface = desktop.PyAutoGUIInputSurface()
        assert surface.set_node_text(UINode("other", editable=True), "x") is False
        assert gui.calls == []


def test_screen_size_and_availability(gui, desktop):
    surface = desktop.PyAutoGUIInputSurface()
    assert surface.screen_size() == (1920, 1080)
    assert surface.is_available()

    gui.screen = RuntimeError("no display")
    assert not surface.is_available()


def test_screenshot_surface(gui, desktop):
    capture = desktop.ScreenshotCaptureSurface()
    assert capture.pixel_format == PixelFormat.RGB
    assert capture._grab().shape == (4, 6, 3)

    gui.screen = RuntimeError("no display")
    with pytest.raises(SurfaceUnavailableError):
        capture._open()
