"""
ModelHandle — wraps the serialised estimator loaded with joblib.
No frame handling and no decoding: just forward().
"""
from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import joblib
import numpy as np

from domain.enums import LoadFailure
from domain.errors import InferenceRuntimeError, ModelLoadError
from domain.models import InferenceOutput

logger = logging.getLogger(__name__)


def _resolve_forward(model: Any) -> Optional[Callable[[np.ndarray], Any]]:
    """
    Pick the scoring entry point of the deserialised object.
    scikit-learn classifiers expose predict_proba; margin models expose
    decision_function; anything else must itself be callable.
    """
    for name in ("predict_proba", "decision_function"):
        fn = getattr(model, name, None)
        if callable(fn):
            return fn
    if callable(model):
        return model
    return None


class ModelHandle:
    """
    Exclusively owned by the InferenceEngine.

    Parameters
    ----------
    model : Any
        Deserialised estimator.
    output_size : int, optional
        Expected length of every output vector. None disables the check.
    """

    def __init__(self, model: Any, output_size: Optional[int] = None) -> None:
        forward = _resolve_forward(model)
        if forward is None:
            raise ModelLoadError(
                LoadFailure.RUNTIME_INIT_FAILURE,
                f"{type(model).__name__} has no predict_proba, decision_function or __call__",
            )
        if hasattr(model, "verbose"):
            model.verbose = 0
        self._model: Any = model
        self._forward: Optional[Callable[[np.ndarray], Any]] = forward
        self._output_size = output_size

    # ------------------------------------------------------------------
    @classmethod
    def load(cls, path: Path, output_size: Optional[int] = None) -> "ModelHandle":
        try:
            model = joblib.load(path)
        except FileNotFoundError as exc:
            raise ModelLoadError(LoadFailure.UNAVAILABLE, str(exc)) from exc
        except Exception as exc:
            raise ModelLoadError(
                LoadFailure.CORRUPT, f"Cannot deserialise {path}: {exc}"
            ) from exc
        return cls(model, output_size)

    def forward(self, tensor: np.ndarray) -> InferenceOutput:
        """
        Run one forward pass on a single input tensor.

        Returns
        -------
        np.ndarray
            1-D float32 scores of length output_size.
        """
        if self._forward is None:
            raise InferenceRuntimeError("model handle is closed")

        batch = np.ascontiguousarray(tensor, dtype=np.float32).reshape(1, -1)
        try:
            raw = self._forward(batch)
        except Exception as exc:
            raise InferenceRuntimeError(f"forward pass failed: {exc}") from exc

        output = np.asarray(raw, dtype=np.float32)
        if output.ndim == 2 and output.shape[0] == 1:
            output = output[0]
        output = output.ravel()

        if output.size == 0:
            raise InferenceRuntimeError("model produced an empty output")
        if self._output_size is not None and output.size != self._output_size:
            raise InferenceRuntimeError(
                f"model produced {output.size} scores, expected {self._output_size}"
            )
        return output

    # ------------------------------------------------------------------
    @property
    def valid(self) -> bool:
        return self._forward is not None

    def close(self) -> None:
        self._model   = None
        self._forward = None

    def __repr__(self) -> str:
        name = type(self._model).__name__ if self._model is not None else "closed"
        return f"<ModelHandle {name} output_size={self._output_size}>"
