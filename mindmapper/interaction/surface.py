"""Interfaces to the rendering surface and to document-level pointer events."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol, Sequence

from mindmapper.models.schemas import Position


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.left + self.width and self.top <= y <= self.top + self.height


class RenderSurface(Protocol):
    """The graph canvas. Coordinates it returns are local to its container."""

    def rendered_position(self, node_id: str) -> Position | None: ...

    def container_origin(self) -> Position:
        """Top-left corner of the container in page coordinates."""
        ...

    def selected_edge_pairs(self) -> Sequence[tuple[str, str]]: ...

    def set_height(self, height: float) -> None: ...

    def run_layout(self, options: dict[str, Any]) -> None: ...


DocumentListener = Callable[[Position], None]


class DocumentEvents:
    """Registry for page-wide listeners (``mousedown``, ``scroll``...).

    The UI glue forwards raw page events to :meth:`dispatch`; components that
    need global listeners register here so that attach/detach is explicit.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[DocumentListener]] = {}

    def add_listener(self, event: str, listener: DocumentListener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def remove_listener(self, event: str, listener: DocumentListener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: str | None = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, []))
        return sum(len(v) for v in self._listeners.values())

    def dispatch(self, event: str, point: Position) -> None:
        for listener in list(self._listeners.get(event, [])):
            listener(point)
