# app/domain/interaction.py
"""Selection, drag and resize gestures for design mode.

A gesture has two phases. While the pointer moves, only the machine's own
state changes (a preview the renderer can draw). When the gesture ends the
final geometry is committed to the registry in a single ``update`` call and
the machine settles back on ``Selected``.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from app.config.settings import settings
from app.domain.field_registry import FieldPatch, FieldRegistry
from app.domain.geometry import (
    FieldKind,
    Geometry,
    Point,
    ResizeHandle,
    below_minimum,
    clamp_size,
    handle_at,
    hit_test,
    resize_geometry,
)

# --- LOGGER ---
logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s [%(levelname)s] [INTERACTION] %(message)s', '%Y-%m-%d %H:%M:%S')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(settings.LOG_LEVEL)
    logger.propagate = False


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Selected:
    field_id: str


@dataclass(frozen=True)
class Dragging:
    field_id: str
    start_pointer: Point
    start_position: Point
    offset: Tuple[float, float] = (0.0, 0.0)


@dataclass(frozen=True)
class Resizing:
    field_id: str
    handle: ResizeHandle
    start_pointer: Point
    start_geometry: Geometry
    current_geometry: Geometry


State = Union[Idle, Selected, Dragging, Resizing]

IDLE = Idle()


@dataclass(frozen=True)
class GesturePreview:
    """Transient geometry of a field under a gesture; never stored in the registry."""

    field_id: str
    geometry: Geometry


class InteractionStateMachine:
    def __init__(self, registry: FieldRegistry):
        self.registry = registry
        self.state: State = IDLE
        self.enabled = True

    @property
    def selected_id(self) -> Optional[str]:
        if isinstance(self.state, Idle):
            return None
        return self.state.field_id

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        """Fill mode: drop any selection or gesture and ignore further events."""
        self.enabled = False
        self.state = IDLE

    def release(self, field_id: str) -> None:
        if self.selected_id == field_id:
            self.state = IDLE

    def pointer_down(self, point: Point) -> State:
        if not self.enabled or isinstance(self.state, (Dragging, Resizing)):
            return self.state
        if isinstance(self.state, Selected):
            selected = self.registry.get(self.state.field_id)
            # Handles stick out of the box; pressing one keeps the selection.
            if selected is not None and selected.kind is FieldKind.PHOTO and handle_at(selected.geometry, point) is not None:
                return self.state
        # Topmost field wins: it is drawn last.
        for field in reversed(self.registry.list()):
            if hit_test(field, point):
                self.state = Selected(field.id)
                return self.state
        self.state = IDLE
        return self.state

    # --- drag ---

    def drag_start(self, point: Point) -> State:
        if not self.enabled or not isinstance(self.state, Selected):
            return self.state
        field = self.registry.get(self.state.field_id)
        if field is None or not hit_test(field, point):
            return self.state
        self.state = Dragging(field.id, point, field.position)
        return self.state

    def drag_move(self, point: Point) -> State:
        if not self.enabled or not isinstance(self.state, Dragging):
            return self.state
        offset = (point.x - self.state.start_pointer.x, point.y - self.state.start_pointer.y)
        self.state = Dragging(self.state.field_id, self.state.start_pointer, self.state.start_position, offset)
        return self.state

    def drag_end(self, point: Point) -> State:
        if not self.enabled or not isinstance(self.state, Dragging):
            return self.state
        drag = self.state
        x = drag.start_position.x + point.x - drag.start_pointer.x
        y = drag.start_position.y + point.y - drag.start_pointer.y
        self.registry.update(drag.field_id, FieldPatch(x=x, y=y))
        logger.debug(f"Field {drag.field_id} moved to ({x}, {y}).")
        self.state = Selected(drag.field_id)
        return self.state

    # --- resize ---

    def resize_start(self, point: Point, handle: Optional[ResizeHandle] = None) -> State:
        if not self.enabled or not isinstance(self.state, Selected):
            return self.state
        field = self.registry.get(self.state.field_id)
        if field is None or field.kind is not FieldKind.PHOTO:
            return self.state
        if handle is None:
            handle = handle_at(field.geometry, point)
            if handle is None:
                return self.state
        geometry = field.geometry
        self.state = Resizing(field.id, ResizeHandle(handle), point, geometry, geometry)
        return self.state

    def resize_move(self, point: Point) -> State:
        if not self.enabled or not isinstance(self.state, Resizing):
            return self.state
        resize = self.state
        current = self._resized(resize, point)
        self.state = Resizing(resize.field_id, resize.handle, resize.start_pointer, resize.start_geometry, current)
        return self.state

    def resize_end(self, point: Point) -> State:
        if not self.enabled or not isinstance(self.state, Resizing):
            return self.state
        resize = self.state
        final = self._resized(resize, point)
        if below_minimum(final):
            logger.info(
                f"Resize of field {resize.field_id} to {final.w:.1f}x{final.h:.1f} rejected, keeping pre-resize geometry."
            )
            final = resize.start_geometry
        w, h = clamp_size(final.w, final.h)
        self.registry.update(resize.field_id, FieldPatch(x=final.x, y=final.y, w=w, h=h))
        self.state = Selected(resize.field_id)
        return self.state

    def _resized(self, resize: Resizing, point: Point) -> Geometry:
        dx = point.x - resize.start_pointer.x
        dy = point.y - resize.start_pointer.y
        return resize_geometry(resize.start_geometry, resize.handle, dx, dy)

    def preview(self) -> Optional[GesturePreview]:
        state = self.state
        if isinstance(state, Dragging):
            field = self.registry.get(state.field_id)
            if field is None:
                return None
            return GesturePreview(state.field_id, field.geometry.moved(*state.offset))
        if isinstance(state, Resizing):
            return GesturePreview(state.field_id, state.current_geometry)
        return None
