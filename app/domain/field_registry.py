# app/domain/field_registry.py
import uuid
from typing import Iterator, List, Optional, Tuple

from pydantic import BaseModel

from app.config.settings import settings
from app.domain.errors import InvalidFieldCreation
from app.domain.geometry import Field, FieldKind


class FieldPatch(BaseModel):
    """Partial geometry change; ``None`` leaves the attribute untouched."""

    x: Optional[float] = None
    y: Optional[float] = None
    w: Optional[float] = None
    h: Optional[float] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


class FieldRegistry:
    """Ordered fields of one template. Later entries draw on top.

    ``add``, ``remove`` and ``update`` are the only ways to change a field.
    Entries are frozen, so handing them out through ``list`` never exposes a
    writable alias.
    """

    def __init__(self):
        self._fields: List[Field] = []

    def _new_id(self) -> str:
        while True:
            candidate = uuid.uuid4().hex[:12]
            if candidate not in self:
                return candidate

    def add(self, kind: FieldKind, label: Optional[str] = None) -> Field:
        kind = FieldKind(kind)
        if kind is FieldKind.TEXT:
            label = (label or "").strip()
            if not label:
                raise InvalidFieldCreation("Text fields need a non-empty label.")
            label = label.upper()
            w, h = 0, 0
        else:
            label = settings.PHOTO_FIELD_LABEL
            w, h = settings.PHOTO_FIELD_WIDTH, settings.PHOTO_FIELD_HEIGHT

        field = Field(
            id=self._new_id(),
            kind=kind,
            label=label,
            x=settings.DEFAULT_FIELD_X,
            y=settings.DEFAULT_FIELD_Y,
            w=w,
            h=h,
            font_size=settings.DEFAULT_FONT_SIZE,
        )
        self._fields.append(field)
        return field

    def remove(self, field_id: str) -> bool:
        for index, field in enumerate(self._fields):
            if field.id == field_id:
                del self._fields[index]
                return True
        return False

    def update(self, field_id: str, patch: FieldPatch) -> Optional[Field]:
        for index, field in enumerate(self._fields):
            if field.id == field_id:
                updated = field.model_copy(update=patch.changes())
                self._fields[index] = updated
                return updated
        return None

    def get(self, field_id: str) -> Optional[Field]:
        for field in self._fields:
            if field.id == field_id:
                return field
        return None

    def list(self) -> Tuple[Field, ...]:
        return tuple(self._fields)

    def labels(self) -> List[str]:
        """Distinct text labels in registry order."""
        seen = []
        for field in self._fields:
            if field.kind is FieldKind.TEXT and field.label not in seen:
                seen.append(field.label)
        return seen

    def has_photo(self) -> bool:
        return any(f.kind is FieldKind.PHOTO for f in self._fields)

    def __contains__(self, field_id: object) -> bool:
        return any(f.id == field_id for f in self._fields)

    def __iter__(self) -> Iterator[Field]:
        return iter(tuple(self._fields))

    def __len__(self) -> int:
        return len(self._fields)
