"""
Input surfaces — the platform capability the executor drives.

Every surface must:
  - dispatch a stroke (1 point = tap, 2+ points = swipe path)
  - expose the active UI node tree and set text on a node
  - report its screen extent so normalised coordinates can be mapped

This enforces a contract and lets the executor stay platform-agnostic.
"""
from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from domain.models import UINode

logger = logging.getLogger(__name__)

PixelPoint = Tuple[int, int]


def iter_nodes(root: Optional[UINode]) -> Iterator[UINode]:
    """
    Depth-first, pre-order walk with an explicit stack.
    Children are visited left to right; tree depth is unbounded.
    """
    if root is None:
        return
    stack: List[UINode] = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def find_focused_editable(root: Optional[UINode]) -> Optional[UINode]:
    """First node (pre-order) that is both focused and editable."""
    for node in iter_nodes(root):
        if node.focused and node.editable:
            return node
    return None


class InputSurface(ABC):
    """Base class for all input surfaces."""

    NAME: str = "UNNAMED_SURFACE"

    @abstractmethod
    def dispatch_stroke(self, points: Sequence[PixelPoint], duration_ms: int) -> bool:
        """
        Perform one continuous stroke through *points* (pixel coordinates)
        lasting *duration_ms*. Returns the platform's accept/reject signal.
        """

    @abstractmethod
    def query_active_tree_root(self) -> Optional[UINode]:
        """Root of the active window's node tree, or None."""

    @abstractmethod
    def set_node_text(self, node: UINode, text: str) -> bool:
        """Replace the text of *node*. Returns False if rejected."""

    @abstractmethod
    def screen_size(self) -> Tuple[int, int]:
        """(width, height) in pixels."""

    def query_focused_editable_node(self) -> Optional[UINode]:
        return find_focused_editable(self.query_active_tree_root())

    def is_available(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.NAME!r}>"


@dataclass(frozen=True)
class StrokeRecord:
    points: Tuple[PixelPoint, ...]
    duration_ms: int


class RecordingInputSurface(InputSurface):
    """
    In-memory surface: records strokes and text edits instead of touching
    the real device. Used for dry runs and tests.

    Parameters
    ----------
    size : (int, int)
        Pretend screen extent.
    root : UINode, optional
        Node tree returned by query_active_tree_root().
    accept : bool
        Value returned by dispatch_stroke / set_node_text.
    """

    NAME = "RECORDING"

    def __init__(
        self,
        size: Tuple[int, int] = (1080, 2400),
        root: Optional[UINode] = None,
        accept: bool = True,
    ) -> None:
        self._size   = size
        self.root    = root
        self.accept  = accept
        self.strokes: List[StrokeRecord] = []
        self.text_edits: List[Tuple[str, str]] = []   # (node_id, text)

    def dispatch_stroke(self, points: Sequence[PixelPoint], duration_ms: int) -> bool:
        self.strokes.append(StrokeRecord(tuple(points), duration_ms))
        logger.info("[dry-run] stroke %s over %d ms", list(points), duration_ms)
        return self.accept

    def query_active_tree_root(self) -> Optional[UINode]:
        return self.root

    def set_node_text(self, node: UINode, text: str) -> bool:
        if self.accept:
            node.text = text
        self.text_edits.append((node.node_id, text))
        logger.info("[dry-run] set text on %s: %r", node.node_id, text)
        return self.accept

    def screen_size(self) -> Tuple[int, int]:
        return self._size
