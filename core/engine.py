"""
InferenceEngine — owns the model and runs the perceive → decide → act tick.

    FrameSlot → preprocess → ModelHandle.forward → decode → ActionExecutor

Design decisions:
  - The ModelHandle is created by load() and touched only by this class.
  - A fixed-rate timer fires every period; each firing tries to take the
    in-flight lock without blocking. Busy → the firing is skipped, never
    queued. Free → the tick runs on a single worker thread.
  - Dispatch is part of the tick: the in-flight lock is released only
    after decode + execute return.
  - Per-tick failures are logged and counted; the next period runs anyway.
  - stop() is cooperative; close() releases the handle only once no tick
    is in flight.
"""
from __future__ import annotations
import logging
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Optional

from core.decoder import decode
from core.executor import ActionExecutor
from core.frame_slot import FrameSlot
from core.model_provider import ModelProvider
from core.model_runtime import ModelHandle
from core.periodic import PeriodicTask
from core.preprocess import frame_to_tensor
from core.status import StatusChannel
from domain.enums import ErrorKind, LoadFailure, LoopState, StatusKind, TickResult
from domain.errors import AgentError, ModelLoadError
from domain.models import Action, ExecutionOutcome, InferenceOutput

logger = logging.getLogger(__name__)

DEFAULT_PERIOD_MS = 200

Decoder = Callable[[InferenceOutput], Action]
OutcomeListener = Callable[[ExecutionOutcome], None]


class InferenceEngine:
    """
    Parameters
    ----------
    provider : ModelProvider
        Reports whether a verified artifact is ready and where it is.
    slot : FrameSlot
        Latest-wins frame hand-off filled by the capture path.
    executor : ActionExecutor
        Performs the decoded action.
    status : StatusChannel
        Lifecycle notifications and error aggregation.
    input_size : int
        Side of the square model input.
    output_size : int, optional
        Expected score vector length (None disables the check).
    norm_mean, norm_std : float
        Channel normalisation, (x - mean) / std.
    decoder : callable
        Output vector → Action. Defaults to the argmax template decoder.
    on_outcome : callable, optional
        Observer for every ExecutionOutcome.
    """

    def __init__(
        self,
        provider: ModelProvider,
        slot: FrameSlot,
        executor: ActionExecutor,
        status: StatusChannel,
        input_size: int = 224,
        output_size: Optional[int] = 512,
        norm_mean: float = 0.0,
        norm_std: float = 255.0,
        decoder: Decoder = decode,
        on_outcome: Optional[OutcomeListener] = None,
    ) -> None:
        self._provider    = provider
        self._slot        = slot
        self._executor    = executor
        self._status      = status
        self._input_size  = input_size
        self._output_size = output_size
        self._norm_mean   = norm_mean
        self._norm_std    = norm_std
        self._decoder     = decoder
        self._on_outcome  = on_outcome

        self._handle: Optional[ModelHandle] = None
        self._state          = LoopState.IDLE
        self._suspend_reason: Optional[str] = None
        self._state_lock     = threading.RLock()
        self._in_flight      = threading.Lock()
        self._timer:  Optional[PeriodicTask]       = None
        self._worker: Optional[ThreadPoolExecutor] = None
        self._unavailable_reported = False

        self._stats: Counter = Counter()
        self._stats_lock = threading.Lock()
        self._last_outcome: Optional[ExecutionOutcome] = None

    # ------------------------------------------------------------------
    # Model lifecycle
    # ------------------------------------------------------------------
    def load(self) -> ModelHandle:
        """
        Load the provider's artifact. Idempotent while a valid handle exists.
        Raises ModelLoadError; the engine is then SUSPENDED and a later
        load() may be retried.
        """
        with self._state_lock:
            if self._handle is not None and self._handle.valid:
                return self._handle
            self._handle = None

            try:
                try:
                    ready = self._provider.is_ready()
                except Exception as exc:
                    raise ModelLoadError(LoadFailure.UNAVAILABLE,
                                         f"model provider failed: {exc}") from exc
                if not ready:
                    raise ModelLoadError(LoadFailure.UNAVAILABLE, "model artifact is not ready")
                handle = ModelHandle.load(self._provider.resolve_path(), self._output_size)
            except ModelLoadError as exc:
                self._on_load_failure(exc)
                raise

            self._handle = handle
            self._unavailable_reported = False
            if self._state != LoopState.RUNNING:
                self._set_state(LoopState.SUSPENDED)
            logger.info("Model loaded: %r", handle)
            return handle

    def unload(self) -> None:
        """Invalidate the handle. A running loop falls back to SUSPENDED."""
        with self._in_flight:
            with self._state_lock:
                if self._handle is not None:
                    self._handle.close()
                    self._handle = None
                    logger.info("Model unloaded")

    def _on_load_failure(self, exc: ModelLoadError) -> None:
        self._set_state(LoopState.SUSPENDED, f"{exc.reason.value}: {exc}")
        logger.error("[%s] Model load failed: %s", exc.kind.value, exc)

        if exc.reason == LoadFailure.UNAVAILABLE:
            if self._unavailable_reported:
                return
            self._unavailable_reported = True
        self._status.report(StatusKind.ERROR, f"Model load failed: {exc}", exc.kind)

    # ------------------------------------------------------------------
    # Loop control
    # ------------------------------------------------------------------
    def start(self, period_ms: int = DEFAULT_PERIOD_MS) -> bool:
        """
        Begin ticking every *period_ms*. Returns False (and never ticks)
        when no model is loaded.
        """
        if period_ms <= 0:
            raise ValueError("period_ms must be positive")

        with self._state_lock:
            if self._state == LoopState.RUNNING:
                return True
            if self._handle is None or not self._handle.valid:
                logger.warning("start() ignored: no model loaded (%s)",
                               self._suspend_reason or "load() not called")
                self._set_state(LoopState.SUSPENDED,
                                self._suspend_reason or "model not loaded")
                return False

            self._discard_timer()
            self._worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="inference")
            self._timer  = PeriodicTask(period_ms / 1000.0, self._on_timer, name="inference-timer")
            self._set_state(LoopState.RUNNING)
            self._timer.start()

        logger.info("Inference loop started (period %d ms)", period_ms)
        self._status.report(StatusKind.STARTED, f"Inference loop running every {period_ms} ms")
        return True

    def stop(self) -> None:
        """
        Prevent new ticks and wait for the in-flight one (if any) to finish.
        Does not abort a running forward pass or dispatch.
        """
        with self._state_lock:
            timer, worker = self._timer, self._worker
            self._timer = self._worker = None
            was_running = self._state == LoopState.RUNNING

        if timer is not None:
            timer.cancel()
            timer.join()
        if worker is not None:
            worker.shutdown(wait=True)

        with self._state_lock:
            if self._state == LoopState.RUNNING:
                self._set_state(LoopState.IDLE)

        if was_running:
            logger.info("Inference loop stopped")
            self._status.report(StatusKind.STOPPED, "Inference loop stopped")

    def close(self) -> None:
        """Stop, then release the model once nothing is in flight."""
        self.stop()
        self.unload()
        self._slot.clear()
        with self._state_lock:
            self._set_state(LoopState.STOPPED)

    def _discard_timer(self) -> None:
        # leftovers from a loop that suspended itself
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._worker is not None:
            self._worker.shutdown(wait=False)
            self._worker = None

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------
    def run_tick(self) -> TickResult:
        """Run one tick on the calling thread, honouring the in-flight guard."""
        if not self._in_flight.acquire(blocking=False):
            return self._count(TickResult.SKIPPED_BUSY)
        try:
            return self._tick()
        finally:
            self._in_flight.release()

    def _on_timer(self) -> None:
        if not self._in_flight.acquire(blocking=False):
            self._count(TickResult.SKIPPED_BUSY)
            logger.debug("Tick skipped: previous tick still running")
            return

        worker = self._worker
        if worker is None:
            self._in_flight.release()
            return
        try:
            worker.submit(self._tick_and_release)
        except RuntimeError:
            # worker shut down between cancel() and this firing
            self._in_flight.release()

    def _tick_and_release(self) -> TickResult:
        try:
            return self._tick()
        finally:
            self._in_flight.release()

    def _tick(self) -> TickResult:
        handle = self._handle
        if handle is None or not handle.valid:
            self._on_handle_lost()
            return self._count(TickResult.SKIPPED_NO_MODEL)

        frame = self._slot.take()
        if frame is None:
            return self._count(TickResult.SKIPPED_NO_FRAME)

        try:
            tensor = frame_to_tensor(frame, self._input_size, self._norm_mean, self._norm_std)
            output = handle.forward(tensor)
            action = self._decoder(output)
        except AgentError as exc:
            logger.warning("[%s] Tick skipped: %s", exc.kind.value, exc)
            self._status.record_error(exc.kind)
            return self._count(TickResult.FAILED)
        except Exception as exc:
            logger.warning("[%s] Tick skipped: %s", ErrorKind.INFERENCE_RUNTIME.value, exc)
            self._status.record_error(ErrorKind.INFERENCE_RUNTIME)
            return self._count(TickResult.FAILED)

        outcome = self._executor.execute(action)
        self._last_outcome = outcome
        if not outcome.success and outcome.error_kind is not None:
            self._status.record_error(outcome.error_kind)
        if self._on_outcome is not None:
            try:
                self._on_outcome(outcome)
            except Exception:
                logger.exception("Outcome listener failed")

        return self._count(TickResult.COMPLETED)

    def _on_handle_lost(self) -> None:
        with self._state_lock:
            if self._timer is not None:
                self._timer.cancel()
            if self._state != LoopState.RUNNING:
                return
            self._set_state(LoopState.SUSPENDED, "model handle invalidated")
        logger.error("Model handle invalidated, loop suspended")
        self._status.report(StatusKind.ERROR, "Model handle invalidated, loop suspended",
                            ErrorKind.MODEL_UNAVAILABLE)

    # ------------------------------------------------------------------
    # State / stats
    # ------------------------------------------------------------------
    def _set_state(self, state: LoopState, reason: Optional[str] = None) -> None:
        if state != self._state:
            logger.debug("[STATE] %s → %s", self._state.value, state.value)
        self._state = state
        self._suspend_reason = reason if state == LoopState.SUSPENDED else None

    def _count(self, result: TickResult) -> TickResult:
        with self._stats_lock:
            self._stats[result] += 1
        return result

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def suspend_reason(self) -> Optional[str]:
        return self._suspend_reason

    @property
    def loaded(self) -> bool:
        handle = self._handle
        return handle is not None and handle.valid

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    @property
    def last_outcome(self) -> Optional[ExecutionOutcome]:
        return self._last_outcome

    def stats(self) -> Dict[TickResult, int]:
        with self._stats_lock:
            return dict(self._stats)
