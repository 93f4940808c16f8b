"""
Error taxonomy for the agent.

Every error carries an ErrorKind so callers (engine, executor, status
channel) can aggregate failures without string matching.
"""
from __future__ import annotations

from domain.enums import ErrorKind, LoadFailure


class AgentError(Exception):
    """Base class for every recoverable agent failure."""

    kind: ErrorKind = ErrorKind.DISPATCH


class CaptureTransientError(AgentError):
    """Raw buffer could not be read or converted; the frame is skipped."""

    kind = ErrorKind.CAPTURE_TRANSIENT


class ModelLoadError(AgentError):
    """Model could not be turned into a ModelHandle."""

    def __init__(self, reason: LoadFailure, message: str = "") -> None:
        super().__init__(message or reason.value)
        self.reason = reason

    @property
    def kind(self) -> ErrorKind:  # type: ignore[override]
        if self.reason == LoadFailure.UNAVAILABLE:
            return ErrorKind.MODEL_UNAVAILABLE
        return ErrorKind.MODEL_LOAD


class TransformError(AgentError):
    """Frame to tensor conversion failed."""

    kind = ErrorKind.TRANSFORM


class InferenceRuntimeError(AgentError):
    """Forward pass failed or produced an unusable output."""

    kind = ErrorKind.INFERENCE_RUNTIME


class DispatchError(AgentError):
    """Input surface rejected a gesture or text operation."""

    kind = ErrorKind.DISPATCH


class SurfaceUnavailableError(AgentError):
    """Capture or input surface cannot be used (missing permission, no display...)."""

    kind = ErrorKind.SURFACE_UNAVAILABLE
