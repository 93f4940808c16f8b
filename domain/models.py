from __future__ import annotations
from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Tuple
import time

import numpy as np

from domain.enums import ActionKind, ErrorKind, PixelFormat, StatusKind

# Type aliases
Point2D = Tuple[float, float]
InferenceOutput = np.ndarray          # 1-D float scores, fixed length


@dataclass(frozen=True, eq=False)
class Frame:
    """
    One captured screen image.
    Pixels are a private read-only copy so a published frame can never be
    mutated by the capture path after hand-off.
    """
    pixels: np.ndarray
    width: int
    height: int
    pixel_format: PixelFormat
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def from_buffer(
        cls,
        buffer: np.ndarray,
        pixel_format: PixelFormat,
        timestamp: Optional[float] = None,
    ) -> "Frame":
        pixels = np.array(buffer, copy=True)
        pixels.setflags(write=False)
        height, width = pixels.shape[:2]
        return cls(
            pixels=pixels,
            width=int(width),
            height=int(height),
            pixel_format=pixel_format,
            timestamp=time.time() if timestamp is None else timestamp,
        )

    @property
    def channels(self) -> int:
        return 1 if self.pixels.ndim == 2 else int(self.pixels.shape[2])


# ---- actions ----------------------------------------------------------
@dataclass(frozen=True)
class Action:
    """Base of the action tagged union. Every variant carries a confidence."""
    kind: ClassVar[ActionKind]
    confidence: float


@dataclass(frozen=True)
class Click(Action):
    kind: ClassVar[ActionKind] = ActionKind.CLICK
    x: float
    y: float


@dataclass(frozen=True)
class Swipe(Action):
    kind: ClassVar[ActionKind] = ActionKind.SWIPE
    start_x: float
    start_y: float
    end_x: float
    end_y: float
    duration_ms: int = 500


@dataclass(frozen=True)
class TextInput(Action):
    kind: ClassVar[ActionKind] = ActionKind.TEXT_INPUT
    text: str


@dataclass(frozen=True)
class Wait(Action):
    kind: ClassVar[ActionKind] = ActionKind.WAIT


@dataclass(frozen=True)
class ExecutionOutcome:
    """Result of one dispatch attempt. Observed, never retried."""
    action: Action
    success: bool
    error_kind: Optional[ErrorKind] = None
    detail: str = ""


# ---- status -----------------------------------------------------------
@dataclass(frozen=True)
class StatusUpdate:
    kind: StatusKind
    message: str
    error_kind: Optional[ErrorKind] = None
    timestamp: float = field(default_factory=time.time)


# ---- input surface tree -----------------------------------------------
@dataclass
class UINode:
    """A node of the input surface's UI tree."""
    node_id: str
    class_name: str = ""
    text: str = ""
    focused: bool = False
    editable: bool = False
    children: List["UINode"] = field(default_factory=list)

    def add(self, *children: "UINode") -> "UINode":
        self.children.extend(children)
        return self
