from __future__ import annotations

import pytest

from core.executor import ActionExecutor
from core.frame_slot import FrameSlot
from core.input_surface import RecordingInputSurface
from core.status import StatusChannel
from helpers import ManualCaptureSurface, StatusRecorder, make_dummy_model


# ---- fixtures -------------------------------------------------------------
@pytest.fixture
def status():
    channel = StatusChannel(maxsize=64)
    yield channel
    channel.close()


@pytest.fixture
def recorder(status):
    return StatusRecorder(status)


@pytest.fixture
def slot():
    return FrameSlot()


@pytest.fixture
def surface():
    return RecordingInputSurface(size=(1001, 2001))


@pytest.fixture
def executor(surface):
    return ActionExecutor(surface)


@pytest.fixture
def capture():
    return ManualCaptureSurface()


@pytest.fixture
def click_model(tmp_path):
    # priors [0.75, 0.25] → class 0 → Click
    return make_dummy_model(tmp_path / "click.joblib", [0, 0, 0, 1])


@pytest.fixture
def text_model(tmp_path):
    # priors [0.25, 0.25, 0.5] → class 2 → TextInput
    return make_dummy_model(tmp_path / "text.joblib", [0, 1, 2, 2])
