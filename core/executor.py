"""
ActionExecutor — turns a decoded Action into input surface operations.

Design decisions:
  - One handler per Action variant; an unknown variant is a failed outcome.
  - Coordinates are normalised in the Action and mapped to pixels here.
  - Nothing raises out of execute(): every failure becomes an
    ExecutionOutcome with an ErrorKind, logged once, never retried.
  - No confirmation that the action had its intended on-screen effect.
"""
from __future__ import annotations
import logging
from typing import Callable, Dict, Sequence, Type

from core.input_surface import InputSurface, PixelPoint, find_focused_editable
from domain.enums import ErrorKind
from domain.errors import AgentError, DispatchError, SurfaceUnavailableError
from domain.models import Action, Click, ExecutionOutcome, Swipe, TextInput, Wait
from utils.geometry import denormalize

logger = logging.getLogger(__name__)

CLICK_DURATION_MS = 100


class ActionExecutor:
    """
    Usage
    -----
    executor = ActionExecutor(surface)
    outcome  = executor.execute(action)

    Parameters
    ----------
    surface : InputSurface
        Platform capability used for strokes and text edits.
    click_duration_ms : int
        Length of the single-point stroke used for a click.
    """

    def __init__(self, surface: InputSurface, click_duration_ms: int = CLICK_DURATION_MS) -> None:
        self._surface = surface
        self._click_duration_ms = click_duration_ms
        self._handlers: Dict[Type[Action], Callable[[Action], str]] = {
            Click:     self._click,
            Swipe:     self._swipe,
            TextInput: self._text_input,
            Wait:      self._wait,
        }

    # ------------------------------------------------------------------
    def execute(self, action: Action) -> ExecutionOutcome:
        handler = self._handlers.get(type(action))
        if handler is None:
            logger.error("No handler for action %r", action)
            return ExecutionOutcome(action, False, ErrorKind.DISPATCH,
                                    f"unsupported action {type(action).__name__}")

        try:
            detail = handler(action)
        except AgentError as exc:
            logger.warning("[%s] %s failed: %s", exc.kind.value, action.kind.value, exc)
            return ExecutionOutcome(action, False, exc.kind, str(exc))
        except Exception as exc:
            logger.warning("[%s] %s failed: %s", ErrorKind.DISPATCH.value, action.kind.value, exc)
            return ExecutionOutcome(action, False, ErrorKind.DISPATCH, str(exc))

        logger.debug("%s executed (confidence %.3f): %s",
                     action.kind.value, action.confidence, detail)
        return ExecutionOutcome(action, True, None, detail)

    # ------------------------------------------------------------------
    def _click(self, action: Click) -> str:
        point = self._to_pixels(action.x, action.y)
        self._stroke([point], self._click_duration_ms)
        return f"click at {point}"

    def _swipe(self, action: Swipe) -> str:
        start = self._to_pixels(action.start_x, action.start_y)
        end   = self._to_pixels(action.end_x, action.end_y)
        self._stroke([start, end], action.duration_ms)
        return f"swipe {start} -> {end} over {action.duration_ms} ms"

    def _text_input(self, action: TextInput) -> str:
        node = find_focused_editable(self._surface.query_active_tree_root())
        if node is None:
            raise DispatchError("no focused editable node")
        if not self._surface.set_node_text(node, action.text):
            raise DispatchError(f"set text rejected by node {node.node_id}")
        return f"text set on {node.node_id}"

    def _wait(self, action: Wait) -> str:
        return "wait"

    # ------------------------------------------------------------------
    def _to_pixels(self, x: float, y: float) -> PixelPoint:
        width, height = self._surface.screen_size()
        if width <= 0 or height <= 0:
            raise SurfaceUnavailableError(f"invalid screen size {width}x{height}")
        return denormalize((x, y), (width, height))

    def _stroke(self, points: Sequence[PixelPoint], duration_ms: int) -> None:
        if not self._surface.dispatch_stroke(points, duration_ms):
            raise DispatchError(f"stroke {list(points)} rejected")
