# app/domain/geometry.py
"""Field geometry in background-image pixel space.

Everything here is pure: fields are frozen models, and every helper returns
new values instead of mutating its arguments. Pointer coordinates arriving
from a zoomed or scrolled view are mapped into image space through
:class:`Viewport` before they reach any of these functions.
"""
from enum import Enum
from typing import Dict, NamedTuple, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

from app.config.settings import settings

HANDLE_SIZE = 10
TEXT_SELECTION_PADDING = 2


class FieldKind(str, Enum):
    TEXT = "text"
    PHOTO = "photo"


class Point(NamedTuple):
    x: float
    y: float


class Geometry(NamedTuple):
    x: float
    y: float
    w: float
    h: float

    def contains(self, point: Point) -> bool:
        return self.x <= point.x <= self.x + self.w and self.y <= point.y <= self.y + self.h

    def moved(self, dx: float, dy: float) -> "Geometry":
        return self._replace(x=self.x + dx, y=self.y + dy)


class Field(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    kind: FieldKind
    label: str
    x: float
    y: float
    w: float
    h: float
    font_size: int

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)

    @property
    def size(self) -> Tuple[float, float]:
        return (self.w, self.h)

    @property
    def geometry(self) -> Geometry:
        return Geometry(self.x, self.y, self.w, self.h)


class ResizeHandle(str, Enum):
    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    MIDDLE_LEFT = "middle-left"
    MIDDLE_RIGHT = "middle-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"


# (horizontal, vertical) anchor of each handle: -1 = left/top edge,
# 0 = centre (axis not resized), 1 = right/bottom edge.
_HANDLE_AXES: Dict[ResizeHandle, Tuple[int, int]] = {
    ResizeHandle.TOP_LEFT: (-1, -1),
    ResizeHandle.TOP_CENTER: (0, -1),
    ResizeHandle.TOP_RIGHT: (1, -1),
    ResizeHandle.MIDDLE_LEFT: (-1, 0),
    ResizeHandle.MIDDLE_RIGHT: (1, 0),
    ResizeHandle.BOTTOM_LEFT: (-1, 1),
    ResizeHandle.BOTTOM_CENTER: (0, 1),
    ResizeHandle.BOTTOM_RIGHT: (1, 1),
}


class Viewport(BaseModel):
    """Maps screen-space pointer coordinates onto image space."""

    model_config = ConfigDict(frozen=True)

    zoom: float = 1.0
    scroll_x: float = 0.0
    scroll_y: float = 0.0

    @field_validator("zoom")
    @classmethod
    def _zoom_must_be_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("zoom must be greater than zero")
        return value

    def to_image(self, x: float, y: float) -> Point:
        return Point((x + self.scroll_x) / self.zoom, (y + self.scroll_y) / self.zoom)

    def delta_to_image(self, dx: float, dy: float) -> Tuple[float, float]:
        return (dx / self.zoom, dy / self.zoom)


def clamp_size(w: float, h: float, minimum: Optional[float] = None) -> Tuple[float, float]:
    minimum = settings.MIN_FIELD_SIZE if minimum is None else minimum
    return (max(minimum, w), max(minimum, h))


def below_minimum(geometry: Geometry, minimum: Optional[float] = None) -> bool:
    minimum = settings.MIN_FIELD_SIZE if minimum is None else minimum
    return geometry.w < minimum or geometry.h < minimum


def text_selection_box(x: float, y: float, font_size: int) -> Geometry:
    # Text does not wrap or clip to its size, so selection uses a fixed-width box.
    return Geometry(
        x - TEXT_SELECTION_PADDING,
        y - TEXT_SELECTION_PADDING,
        settings.TEXT_SELECTION_WIDTH,
        font_size + 2 * TEXT_SELECTION_PADDING,
    )


def hit_box(field: Field) -> Geometry:
    if field.kind is FieldKind.TEXT:
        return text_selection_box(field.x, field.y, field.font_size)
    return field.geometry


def hit_test(field: Field, point: Point) -> bool:
    return hit_box(field).contains(point)


def handle_points(geometry: Geometry) -> Dict[ResizeHandle, Point]:
    points = {}
    for handle, (hx, hy) in _HANDLE_AXES.items():
        px = geometry.x + geometry.w * (hx + 1) / 2
        py = geometry.y + geometry.h * (hy + 1) / 2
        points[handle] = Point(px, py)
    return points


def handle_at(geometry: Geometry, point: Point) -> Optional[ResizeHandle]:
    half = HANDLE_SIZE / 2
    for handle, centre in handle_points(geometry).items():
        if abs(point.x - centre.x) <= half and abs(point.y - centre.y) <= half:
            return handle
    return None


def resize_geometry(geometry: Geometry, handle: ResizeHandle, dx: float, dy: float) -> Geometry:
    """Geometry after dragging ``handle`` by ``(dx, dy)``; the opposite edge stays put.

    No minimum is enforced here; a gesture that ends under the minimum is
    rejected as a whole by the caller.
    """
    hx, hy = _HANDLE_AXES[ResizeHandle(handle)]
    x, y, w, h = geometry
    if hx < 0:
        x, w = x + dx, w - dx
    elif hx > 0:
        w = w + dx
    if hy < 0:
        y, h = y + dy, h - dy
    elif hy > 0:
        h = h + dy
    return Geometry(x, y, w, h)

