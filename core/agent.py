"""
Agent — the single entry point a supervisor talks to.

Clean pipeline, no globals:

    CaptureSurface → FrameSource → FrameSlot → InferenceEngine
          → decode → ActionExecutor → InputSurface

Start-up failures (model not ready, surface unavailable) are reported on
the status channel and leave the agent restartable.
"""
from __future__ import annotations
import logging

from core.capture import CaptureSurface
from core.engine import DEFAULT_PERIOD_MS, InferenceEngine
from core.frame_source import FrameSource
from core.input_surface import InputSurface
from core.status import StatusChannel
from domain.enums import LoopState, StatusKind
from domain.errors import ModelLoadError, SurfaceUnavailableError

logger = logging.getLogger(__name__)


class Agent:
    """
    Parameters
    ----------
    engine : InferenceEngine
    source : FrameSource
        Already bound to *capture* and to the engine's slot.
    capture : CaptureSurface
    input_surface : InputSurface
        Checked for availability before the loop starts.
    status : StatusChannel
    period_ms : int
        Tick period handed to the engine.
    """

    def __init__(
        self,
        engine: InferenceEngine,
        source: FrameSource,
        capture: CaptureSurface,
        input_surface: InputSurface,
        status: StatusChannel,
        period_ms: int = DEFAULT_PERIOD_MS,
    ) -> None:
        self._engine    = engine
        self._source    = source
        self._capture   = capture
        self._input     = input_surface
        self._status    = status
        self._period_ms = period_ms
        self._capturing = False

    # ------------------------------------------------------------------
    def start(self) -> bool:
        """
        Load the model if needed, bring up the surfaces and start ticking.
        Returns False when any start-up step failed.
        """
        if self._engine.state == LoopState.RUNNING:
            return True

        try:
            self._engine.load()
        except ModelLoadError:
            return False

        try:
            if not self._input.is_available():
                raise SurfaceUnavailableError(f"input surface {self._input!r} is unavailable")
            self._source.attach()
            self._capture.start()
            self._capturing = True
        except SurfaceUnavailableError as exc:
            self._abort_start(exc)
            return False

        if not self._engine.start(self._period_ms):
            self._stop_capture()
            return False
        return True

    def stop(self) -> None:
        self._engine.stop()
        self._stop_capture()

    def close(self) -> None:
        self._engine.close()
        self._stop_capture()

    # ------------------------------------------------------------------
    def _abort_start(self, exc: SurfaceUnavailableError) -> None:
        logger.error("[%s] Start aborted: %s", exc.kind.value, exc)
        self._stop_capture()
        self._status.report(StatusKind.ERROR, f"Start aborted: {exc}", exc.kind)

    def _stop_capture(self) -> None:
        self._source.detach()
        if self._capturing:
            try:
                self._capture.stop()
            except Exception as exc:
                logger.warning("Capture stop failed: %s", exc)
            self._capturing = False

    @property
    def engine(self) -> InferenceEngine:
        return self._engine

    @property
    def state(self) -> LoopState:
        return self._engine.state

    @property
    def status(self) -> StatusChannel:
        return self._status

    @property
    def period_ms(self) -> int:
        return self._period_ms
