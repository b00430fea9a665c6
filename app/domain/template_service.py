# app/domain/template_service.py
import threading
import logging
from typing import Dict, List, Optional, Tuple, Union

from PIL import Image

from app.config.settings import settings
from app.domain.field_registry import FieldRegistry
from app.domain.fill_session import FillSession, RenderMode
from app.domain.geometry import Field, FieldKind, ResizeHandle, Viewport
from app.domain.interaction import InteractionStateMachine, State
from app.infrastructure.cv import image_process
from app.infrastructure.cv.assets import decode_image
from app.infrastructure.export.document import ExportedDocument, export_document

# --- LOGGER ---
logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(message)s', '%Y-%m-%d %H:%M:%S')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(settings.LOG_LEVEL)
    logger.propagate = False


class TemplateService:
    """One live template: background, fields, current mode and fill session.

    Every public method takes the service lock, so events coming from
    concurrent request threads are applied one at a time and in full.
    Pointer positions are given in view coordinates and mapped into image
    space with the caller's :class:`Viewport`.
    """

    def __init__(self):
        self.lock = threading.Lock()
        self.registry = FieldRegistry()
        self.interaction = InteractionStateMachine(self.registry)
        self.mode = RenderMode.DESIGN
        self.fill_session = FillSession()
        self.background: Optional[Image.Image] = None

    # --- assets ---

    def set_background(self, src: Union[str, bytes]) -> Image.Image:
        img = decode_image(src)
        with self.lock:
            self.background = img
            out_of_bounds = [f.id for f in self.registry if f.x >= img.width or f.y >= img.height]
            kept = len(self.registry)
        logger.info(f"Background loaded ({img.width}x{img.height}), {kept} fields kept.")
        if out_of_bounds:
            # Fields are never rescaled or cleared when the background changes.
            logger.warning(f"Fields anchored outside the new background: {out_of_bounds}")
        return img

    def background_size(self) -> Optional[Tuple[int, int]]:
        with self.lock:
            if self.background is None:
                return None
            return self.background.size

    def set_photo(self, src: Union[str, bytes]) -> Image.Image:
        img = decode_image(src)
        with self.lock:
            self.fill_session.photo = img
        logger.info(f"Fill photo loaded ({img.width}x{img.height}).")
        return img

    def clear_photo(self) -> None:
        with self.lock:
            self.fill_session.photo = None

    # --- fields ---

    def add_field(self, kind: FieldKind, label: Optional[str] = None) -> Field:
        with self.lock:
            field = self.registry.add(kind, label)
        logger.info(f"Field {field.id} added ({field.kind.value} '{field.label}').")
        return field

    def remove_field(self, field_id: str) -> bool:
        with self.lock:
            removed = self.registry.remove(field_id)
            self.interaction.release(field_id)
        if removed:
            logger.info(f"Field {field_id} removed.")
        return removed

    def list_fields(self) -> List[Field]:
        with self.lock:
            return list(self.registry.list())

    # --- modes ---

    def set_mode(self, mode: RenderMode) -> RenderMode:
        mode = RenderMode(mode)
        with self.lock:
            self.mode = mode
            if mode is RenderMode.FILL:
                self.interaction.disable()
            else:
                self.interaction.enable()
        logger.info(f"Switched to {mode.value} mode.")
        return mode

    def set_values(self, values: Dict[str, str]) -> Dict[str, str]:
        with self.lock:
            self.fill_session.values = dict(values)
            return dict(self.fill_session.values)

    def fill_form(self) -> Dict:
        """What the fill form has to ask for: one input per distinct label, plus the photo."""
        with self.lock:
            return {
                "labels": self.registry.labels(),
                "needs_photo": self.registry.has_photo(),
                "values": dict(self.fill_session.values),
                "has_photo": self.fill_session.photo is not None,
            }

    # --- interaction ---

    def _dispatch(self, event: str, x: float, y: float, viewport: Optional[Viewport], *args) -> State:
        point = (viewport or Viewport()).to_image(x, y)
        with self.lock:
            return getattr(self.interaction, event)(point, *args)

    def pointer_down(self, x: float, y: float, viewport: Optional[Viewport] = None) -> State:
        return self._dispatch("pointer_down", x, y, viewport)

    def drag_start(self, x: float, y: float, viewport: Optional[Viewport] = None) -> State:
        return self._dispatch("drag_start", x, y, viewport)

    def drag_move(self, x: float, y: float, viewport: Optional[Viewport] = None) -> State:
        return self._dispatch("drag_move", x, y, viewport)

    def drag_end(self, x: float, y: float, viewport: Optional[Viewport] = None) -> State:
        return self._dispatch("drag_end", x, y, viewport)

    def resize_start(self, x: float, y: float, viewport: Optional[Viewport] = None, handle: Optional[ResizeHandle] = None) -> State:
        return self._dispatch("resize_start", x, y, viewport, handle)

    def resize_move(self, x: float, y: float, viewport: Optional[Viewport] = None) -> State:
        return self._dispatch("resize_move", x, y, viewport)

    def resize_end(self, x: float, y: float, viewport: Optional[Viewport] = None) -> State:
        return self._dispatch("resize_end", x, y, viewport)

    def interaction_state(self) -> State:
        with self.lock:
            return self.interaction.state

    # --- output ---

    def render(self, mode: Optional[RenderMode] = None) -> Optional[Image.Image]:
        with self.lock:
            mode = RenderMode(mode or self.mode)
            design = mode is RenderMode.DESIGN and self.mode is RenderMode.DESIGN
            return image_process.render(
                self.background,
                self.registry.list(),
                mode,
                self.fill_session,
                selected_id=self.interaction.selected_id if design else None,
                preview=self.interaction.preview() if design else None,
            )

    def export(self, fmt: Optional[str] = None) -> ExportedDocument:
        # Exports are always filled and free of editing decorations.
        surface = self.render(RenderMode.FILL)
        document = export_document(surface, fmt)
        logger.info(f"Exported {document.filename} ({document.page_size[0]}x{document.page_size[1]}, {document.orientation}).")
        return document
