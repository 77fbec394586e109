"""Floating pop-out chat windows.

Window state (Closed/Open/Minimized/Fullscreen) and pointer interaction
(Idle/Dragging/Resizing) are separate state machines. Document-level pointer
listeners exist only while an interaction is in progress: they are attached
on the Idle -> Dragging/Resizing edge and detached on pointer-up.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from ..logging_config import get_logger

logger = get_logger(__name__)

POINTER_MOVE = "mousemove"
POINTER_UP = "mouseup"


class WindowState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    MINIMIZED = "minimized"
    FULLSCREEN = "fullscreen"


class Interaction(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


MIN_SIZE = Size(350, 400)
DEFAULT_POSITION = Point(100, 100)
DEFAULT_SIZE = Size(450, 600)
DEFAULT_VIEWPORT = Size(1920, 1080)

PointerListener = Callable[[Point], None]


class PointerDocument:
    """Document-level pointer listener registry."""

    def __init__(self):
        self._listeners: dict[str, list[PointerListener]] = {}

    def add_listener(self, event: str, listener: PointerListener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def remove_listener(self, event: str, listener: PointerListener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: str | None = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, []))
        return sum(len(listeners) for listeners in self._listeners.values())

    def dispatch(self, event: str, point: Point) -> None:
        for listener in list(self._listeners.get(event, [])):
            listener(point)


class PopOutWindow:
    """Position, size and mode of one floating private chat."""

    def __init__(
        self,
        peer_id: str,
        document: PointerDocument,
        viewport: Size = DEFAULT_VIEWPORT,
        position: Point = DEFAULT_POSITION,
        size: Size = DEFAULT_SIZE,
    ):
        self.peer_id = peer_id
        self._document = document
        self.viewport = viewport
        self.position = position
        self.size = size
        self.state = WindowState.OPEN
        self.interaction = Interaction.IDLE

        self._drag_offset = Point(0, 0)
        self._resize_origin = Point(0, 0)
        self._resize_start = size

    # Window state
    def toggle_minimize(self) -> WindowState:
        if self.state == WindowState.CLOSED:
            return self.state
        if self.state == WindowState.MINIMIZED:
            self.state = WindowState.OPEN
        else:
            self._end_interaction()
            self.state = WindowState.MINIMIZED
        return self.state

    def toggle_fullscreen(self) -> WindowState:
        if self.state == WindowState.CLOSED:
            return self.state
        if self.state == WindowState.FULLSCREEN:
            self.state = WindowState.OPEN
        else:
            self._end_interaction()
            self.state = WindowState.FULLSCREEN
        return self.state

    def close(self) -> None:
        self._end_interaction()
        self.state = WindowState.CLOSED

    def reopen(self) -> None:
        if self.state == WindowState.CLOSED:
            self.state = WindowState.OPEN

    def set_viewport(self, viewport: Size) -> None:
        self.viewport = viewport

    # Interactions
    def begin_drag(self, pointer: Point, on_control: bool = False) -> bool:
        """Pointer-down on the header. Controls inside the header don't drag."""
        if on_control or self.interaction != Interaction.IDLE:
            return False
        if self.state in (WindowState.CLOSED, WindowState.FULLSCREEN):
            return False

        self._drag_offset = Point(pointer.x - self.position.x, pointer.y - self.position.y)
        self._start(Interaction.DRAGGING)
        return True

    def begin_resize(self, pointer: Point) -> bool:
        """Pointer-down on the resize handle."""
        if self.interaction != Interaction.IDLE or self.state != WindowState.OPEN:
            return False

        self._resize_origin = pointer
        self._resize_start = self.size
        self._start(Interaction.RESIZING)
        return True

    def _start(self, interaction: Interaction) -> None:
        self.interaction = interaction
        self._document.add_listener(POINTER_MOVE, self._on_pointer_move)
        self._document.add_listener(POINTER_UP, self._on_pointer_up)

    def _end_interaction(self) -> None:
        if self.interaction == Interaction.IDLE:
            return
        self._document.remove_listener(POINTER_MOVE, self._on_pointer_move)
        self._document.remove_listener(POINTER_UP, self._on_pointer_up)
        self.interaction = Interaction.IDLE

    def _on_pointer_move(self, pointer: Point) -> None:
        if self.interaction == Interaction.RESIZING:
            max_width = self.viewport.width - self.position.x
            max_height = self.viewport.height - self.position.y
            width = self._resize_start.width + (pointer.x - self._resize_origin.x)
            height = self._resize_start.height + (pointer.y - self._resize_origin.y)
            # Floor wins over the viewport cap
            self.size = Size(
                max(MIN_SIZE.width, min(width, max_width)),
                max(MIN_SIZE.height, min(height, max_height)),
            )
        elif self.interaction == Interaction.DRAGGING:
            x = pointer.x - self._drag_offset.x
            y = pointer.y - self._drag_offset.y
            self.position = Point(
                max(0, min(x, self.viewport.width - self.size.width)),
                max(0, min(y, self.viewport.height - self.size.height)),
            )

    def _on_pointer_up(self, pointer: Point) -> None:
        self._end_interaction()


class PopOutManager:
    """Zero or more pop-out windows keyed by peer id."""

    def __init__(self, document: PointerDocument | None = None, viewport: Size = DEFAULT_VIEWPORT):
        self.document = document or PointerDocument()
        self._viewport = viewport
        self._windows: dict[str, PopOutWindow] = {}

    @property
    def windows(self) -> list[PopOutWindow]:
        return [w for w in self._windows.values() if w.state != WindowState.CLOSED]

    def get(self, peer_id: str) -> PopOutWindow | None:
        window = self._windows.get(peer_id)
        if window is None or window.state == WindowState.CLOSED:
            return None
        return window

    def open(self, peer_id: str) -> PopOutWindow:
        window = self._windows.get(peer_id)
        if window is None:
            window = PopOutWindow(peer_id, self.document, viewport=self._viewport)
            self._windows[peer_id] = window
            logger.debug("Pop-out opened for %s", peer_id)
        else:
            window.reopen()
        return window

    def close(self, peer_id: str) -> None:
        window = self._windows.pop(peer_id, None)
        if window:
            window.close()

    def close_all(self) -> None:
        for peer_id in list(self._windows):
            self.close(peer_id)

    def set_viewport(self, viewport: Size) -> None:
        self._viewport = viewport
        for window in self._windows.values():
            window.set_viewport(viewport)
