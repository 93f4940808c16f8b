"""
Shared fakes: a capture surface driven by hand, a provider with a
switchable ready flag, joblib artifacts built from real scikit-learn
estimators.
"""
from __future__ import annotations
import threading
import time
from pathlib import Path
from typing import List, Optional

import joblib
import numpy as np
from sklearn.dummy import DummyClassifier

from core.capture import CaptureSurface
from core.model_provider import ModelProvider
from core.status import StatusChannel
from domain.enums import PixelFormat
from domain.errors import SurfaceUnavailableError
from domain.models import StatusUpdate

INPUT_SIZE = 4


class ManualCaptureSurface(CaptureSurface):
    """Buffers are pushed by the test; push() fires the listener like a real surface."""

    pixel_format = PixelFormat.BGR

    def __init__(self, fail_start: bool = False) -> None:
        super().__init__()
        self.fail_start = fail_start
        self.started = False
        self.stop_calls = 0
        self._latest: Optional[np.ndarray] = None

    def push(self, buffer: Optional[np.ndarray]) -> None:
        self._latest = buffer
        self._notify()

    def start(self) -> None:
        if self.fail_start:
            raise SurfaceUnavailableError("capture permission denied")
        self.started = True

    def stop(self) -> None:
        self.started = False
        self.stop_calls += 1

    def acquire_latest(self) -> Optional[np.ndarray]:
        buffer, self._latest = self._latest, None
        return buffer


class StaticProvider(ModelProvider):

    def __init__(self, path: Path, ready: bool = True) -> None:
        self.path = path
        self.ready = ready

    def is_ready(self) -> bool:
        return self.ready

    def resolve_path(self) -> Path:
        return self.path


class StatusRecorder:

    def __init__(self, channel: StatusChannel) -> None:
        self._channel = channel
        self.updates: List[StatusUpdate] = []
        self._lock = threading.Lock()
        channel.subscribe(self._on_update)

    def _on_update(self, update: StatusUpdate) -> None:
        with self._lock:
            self.updates.append(update)

    def kinds(self) -> list:
        self._channel.drain()
        with self._lock:
            return [u.kind for u in self.updates]


def make_dummy_model(path: Path, labels: List[int]) -> Path:
    """
    DummyClassifier(strategy="prior") always returns the label frequencies,
    so the score vector (and the decoded action) is known in advance.
    """
    features = np.zeros((len(labels), INPUT_SIZE * INPUT_SIZE * 3), dtype=np.float32)
    model = DummyClassifier(strategy="prior").fit(features, np.array(labels))
    joblib.dump(model, path)
    return path


def bgr_buffer(value: int = 0, height: int = 8, width: int = 12) -> np.ndarray:
    return np.full((height, width, 3), value, dtype=np.uint8)


class SlowModel:
    """
    Callable model that sleeps on every forward pass and tracks how many
    passes overlap. Counters are class-level because joblib hands the
    engine its own unpickled copy.
    """

    lock = threading.Lock()
    active = 0
    max_active = 0
    calls = 0

    def __init__(self, delay: float, scores: List[float]) -> None:
        self.delay = delay
        self.scores = scores

    def __call__(self, batch: np.ndarray) -> np.ndarray:
        cls = type(self)
        with cls.lock:
            cls.active += 1
            cls.calls += 1
            cls.max_active = max(cls.max_active, cls.active)
        time.sleep(self.delay)
        with cls.lock:
            cls.active -= 1
        return np.asarray([self.scores], dtype=np.float32)

    @classmethod
    def reset(cls) -> None:
        cls.active = cls.max_active = cls.calls = 0


class RecordingModel:
    """Remembers the mean of every input batch it sees."""

    seen: List[float] = []

    def __init__(self, scores: List[float]) -> None:
        self.scores = scores

    def predict_proba(self, batch: np.ndarray) -> np.ndarray:
        type(self).seen.append(float(batch.mean()))
        return np.asarray([self.scores])


def wait_until(predicate, timeout: float = 3.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()
