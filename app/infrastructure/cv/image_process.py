# app/infrastructure/cv/image_process.py
import logging
from functools import lru_cache
from typing import Callable, Dict, Iterable, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from app.config.settings import settings
from app.domain.fill_session import FillSession, RenderMode
from app.domain.geometry import Field, FieldKind, Geometry, handle_points, text_selection_box, HANDLE_SIZE
from app.domain.interaction import GesturePreview

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s [%(levelname)s] [RENDER] %(message)s', '%Y-%m-%d %H:%M:%S')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(settings.LOG_LEVEL)
    logger.propagate = False

TEXT_COLOUR = (0, 0, 0, 255)
PLACEHOLDER_FILL = (239, 68, 68, 77)  # rgba(239, 68, 68, 0.3)
PLACEHOLDER_OUTLINE = (255, 0, 0, 255)
CAPTION_SIZE = 12
CAPTION_OFFSET = 15
SELECTION_COLOUR = (59, 130, 246, 255)  # #3b82f6
SELECTION_DASH = 4
TRANSFORMER_COLOUR = (0, 161, 255, 255)
HANDLE_FILL = (255, 255, 255, 255)


@lru_cache(maxsize=32)
def get_font(size: int) -> ImageFont.ImageFont:
    if settings.FONT_PATH:
        return ImageFont.truetype(settings.FONT_PATH, size)
    return ImageFont.load_default(size=size)


def _box(geometry: Geometry) -> Tuple[int, int, int, int]:
    x0, x1 = sorted((round(geometry.x), round(geometry.x + geometry.w)))
    y0, y1 = sorted((round(geometry.y), round(geometry.y + geometry.h)))
    return (x0, y0, x1, y1)


def draw_dashed_rectangle(draw: ImageDraw.ImageDraw, geometry: Geometry, colour, dash: int = SELECTION_DASH) -> None:
    x0, y0, x1, y1 = _box(geometry)
    for start in range(x0, x1, dash * 2):
        end = min(start + dash, x1)
        draw.line([(start, y0), (end, y0)], fill=colour)
        draw.line([(start, y1), (end, y1)], fill=colour)
    for start in range(y0, y1, dash * 2):
        end = min(start + dash, y1)
        draw.line([(x0, start), (x0, end)], fill=colour)
        draw.line([(x1, start), (x1, end)], fill=colour)


def draw_transformer(draw: ImageDraw.ImageDraw, geometry: Geometry) -> None:
    """Outline and resize handles around the selected photo field."""
    draw.rectangle(_box(geometry), outline=TRANSFORMER_COLOUR, width=1)
    half = HANDLE_SIZE / 2
    for point in handle_points(geometry).values():
        draw.rectangle(
            [round(point.x - half), round(point.y - half), round(point.x + half), round(point.y + half)],
            fill=HANDLE_FILL,
            outline=TRANSFORMER_COLOUR,
            width=1,
        )


def _photo_fill(surface: Image.Image, draw: ImageDraw.ImageDraw, field: Field, geometry: Geometry, session: FillSession, selected: bool) -> None:
    if session.photo is None:
        return
    w, h = round(geometry.w), round(geometry.h)
    if w < 1 or h < 1:
        return
    photo = session.photo.convert("RGBA").resize((w, h), Image.Resampling.LANCZOS)
    surface.paste(photo, (round(geometry.x), round(geometry.y)), photo)


def _photo_design(surface: Image.Image, draw: ImageDraw.ImageDraw, field: Field, geometry: Geometry, session: FillSession, selected: bool) -> None:
    draw.rectangle(_box(geometry), fill=PLACEHOLDER_FILL, outline=PLACEHOLDER_OUTLINE, width=2 if selected else 1)
    draw.text(
        (round(geometry.x), round(geometry.y - CAPTION_OFFSET)),
        field.label,
        fill=PLACEHOLDER_OUTLINE,
        font=get_font(CAPTION_SIZE),
    )


def _text_fill(surface: Image.Image, draw: ImageDraw.ImageDraw, field: Field, geometry: Geometry, session: FillSession, selected: bool) -> None:
    text = session.value_for(field.label)
    if text:
        draw.text((round(geometry.x), round(geometry.y)), text, fill=TEXT_COLOUR, font=get_font(field.font_size))


def _text_design(surface: Image.Image, draw: ImageDraw.ImageDraw, field: Field, geometry: Geometry, session: FillSession, selected: bool) -> None:
    draw.text((round(geometry.x), round(geometry.y)), field.label, fill=TEXT_COLOUR, font=get_font(field.font_size))
    if selected:
        draw_dashed_rectangle(draw, text_selection_box(geometry.x, geometry.y, field.font_size), SELECTION_COLOUR)


FieldRenderer = Callable[[Image.Image, ImageDraw.ImageDraw, Field, Geometry, FillSession, bool], None]

RENDERERS: Dict[Tuple[FieldKind, RenderMode], FieldRenderer] = {
    (FieldKind.PHOTO, RenderMode.FILL): _photo_fill,
    (FieldKind.PHOTO, RenderMode.DESIGN): _photo_design,
    (FieldKind.TEXT, RenderMode.FILL): _text_fill,
    (FieldKind.TEXT, RenderMode.DESIGN): _text_design,
}


def render(
    background: Optional[Image.Image],
    fields: Iterable[Field],
    mode: RenderMode,
    fill_session: Optional[FillSession] = None,
    selected_id: Optional[str] = None,
    preview: Optional[GesturePreview] = None,
) -> Optional[Image.Image]:
    """Composite ``background`` and ``fields`` into a new RGBA surface.

    The background is never modified. In fill mode ``selected_id`` and
    ``preview`` are ignored, so a fill render carries no editing decorations.
    Returns ``None`` while the background is not available.
    """
    if background is None:
        logger.warning("Background image not loaded; nothing to render.")
        return None

    mode = RenderMode(mode)
    fields = tuple(fields)
    session = fill_session or FillSession()
    if mode is RenderMode.FILL:
        selected_id, preview = None, None
        if session.photo is None and any(f.kind is FieldKind.PHOTO for f in fields):
            logger.debug("No fill photo supplied; photo fields are left empty.")

    surface = background.convert("RGBA")
    draw = ImageDraw.Draw(surface, "RGBA")
    selected_geometry = None

    for field in fields:
        geometry = field.geometry
        if preview is not None and preview.field_id == field.id:
            geometry = preview.geometry
        selected = field.id == selected_id
        RENDERERS[(field.kind, mode)](surface, draw, field, geometry, session, selected)
        if selected and field.kind is FieldKind.PHOTO:
            selected_geometry = geometry

    if selected_geometry is not None:
        draw_transformer(draw, selected_geometry)
    return surface
