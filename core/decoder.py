"""
Action decoder — pure mapping from a model output vector to one Action.

Argmax over the scores (first occurrence wins ties); the winning score is
the action's confidence, used as-is. Each class index maps to a fixed
action template; every other index means "do nothing this tick".
"""
from __future__ import annotations
from typing import Sequence, Union

import numpy as np

from domain.models import Action, Click, Swipe, TextInput, Wait

# ---- class indices ------------------------------------------------------
CLICK_CLASS = 0
SWIPE_CLASS = 1
TEXT_CLASS  = 2
NONE_CLASS  = 3

# ---- templates ----------------------------------------------------------
CLICK_POINT        = (0.5, 0.5)
SWIPE_START        = (0.2, 0.5)
SWIPE_END          = (0.8, 0.5)
SWIPE_DURATION_MS  = 500
TEXT_PAYLOAD       = "Hello AutoGLM"


def select(output: Union[np.ndarray, Sequence[float]]) -> tuple[int, float]:
    """
    Index and value of the maximum score.
    NaN never wins; (-1, 0.0) for an empty or all-NaN output.
    """
    scores = np.asarray(output, dtype=np.float64).ravel()
    if scores.size == 0 or np.all(np.isnan(scores)):
        return -1, 0.0
    index = int(np.argmax(np.where(np.isnan(scores), -np.inf, scores)))
    return index, float(scores[index])


def decode(
    output: Union[np.ndarray, Sequence[float]],
    swipe_duration_ms: int = SWIPE_DURATION_MS,
) -> Action:
    index, confidence = select(output)

    if index == CLICK_CLASS:
        return Click(confidence=confidence, x=CLICK_POINT[0], y=CLICK_POINT[1])
    if index == SWIPE_CLASS:
        return Swipe(
            confidence=confidence,
            start_x=SWIPE_START[0], start_y=SWIPE_START[1],
            end_x=SWIPE_END[0],     end_y=SWIPE_END[1],
            duration_ms=swipe_duration_ms,
        )
    if index == TEXT_CLASS:
        return TextInput(confidence=confidence, text=TEXT_PAYLOAD)
    return Wait(confidence=confidence)
