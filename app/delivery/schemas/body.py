from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from app.domain.fill_session import RenderMode
from app.domain.geometry import FieldKind, ResizeHandle, Viewport
from app.domain.interaction import Dragging, Resizing, Selected, State

class ImageUpload(BaseModel):
    # PNG/JPEG as base64 or a data URL
    image: str

class ImageInfo(BaseModel):
    width: int
    height: int

class BackgroundInfo(BaseModel):
    loaded: bool
    width: Optional[int] = None
    height: Optional[int] = None

class FieldCreate(BaseModel):
    kind: FieldKind
    label: Optional[str] = None

class FieldOut(BaseModel):
    id: str
    kind: FieldKind
    label: str
    x: float
    y: float
    w: float
    h: float
    font_size: int

class ModeUpdate(BaseModel):
    mode: RenderMode

class PointerEvent(BaseModel):
    # View coordinates; mapped to image pixels through the viewport
    x: float
    y: float
    viewport: Viewport = Field(default_factory=Viewport)

class ResizeStartEvent(PointerEvent):
    # Detected from the pointer position when omitted
    handle: Optional[ResizeHandle] = None

class InteractionOut(BaseModel):
    state: str
    field_id: Optional[str] = None
    handle: Optional[ResizeHandle] = None

    @classmethod
    def from_state(cls, state: State) -> "InteractionOut":
        if isinstance(state, Resizing):
            return cls(state="resizing", field_id=state.field_id, handle=state.handle)
        if isinstance(state, Dragging):
            return cls(state="dragging", field_id=state.field_id)
        if isinstance(state, Selected):
            return cls(state="selected", field_id=state.field_id)
        return cls(state="idle")

class FillValues(BaseModel):
    values: Dict[str, str] = Field(default_factory=dict)

class FillForm(BaseModel):
    labels: List[str]
    needs_photo: bool
    values: Dict[str, str]
    has_photo: bool

class ExportRequest(BaseModel):
    format: Optional[str] = None  # pdf | png | jpeg; settings.EXPORT_FORMAT when omitted
