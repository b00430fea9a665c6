# app/infrastructure/export/document.py
import os
from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image
from reportlab.lib.pagesizes import landscape, portrait
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from app.config.settings import settings
from app.domain.errors import ExportPrecondition

MEDIA_TYPES = {
    "pdf": "application/pdf",
    "png": "image/png",
    "jpeg": "image/jpeg",
}


@dataclass(frozen=True)
class ExportedDocument:
    filename: str
    media_type: str
    content: bytes
    page_size: Tuple[int, int]
    orientation: str


def _normalise_format(fmt: Optional[str]) -> str:
    fmt = (fmt or settings.EXPORT_FORMAT or "pdf").lower()
    if fmt == "jpg":
        fmt = "jpeg"
    if fmt not in MEDIA_TYPES:
        raise ValueError(f"Unsupported export format: {fmt}")
    return fmt


def _filename_for(fmt: str, filename: Optional[str]) -> str:
    stem, _ = os.path.splitext(filename or settings.EXPORT_FILENAME)
    extension = "jpg" if fmt == "jpeg" else fmt
    return f"{stem}.{extension}"


def _pdf_bytes(surface: Image.Image, page_size: Tuple[int, int]) -> bytes:
    buf = BytesIO()
    # invariant=1 drops the creation timestamp and random document id
    pdf = canvas.Canvas(buf, pagesize=page_size, invariant=1)
    pdf.drawImage(ImageReader(surface), 0, 0, width=page_size[0], height=page_size[1])
    pdf.showPage()
    pdf.save()
    return buf.getvalue()


def _raster_bytes(surface: Image.Image, fmt: str) -> bytes:
    if fmt == "jpeg":
        save_kwargs = dict(format="JPEG", quality=settings.JPEG_QUALITY)
    else:
        save_kwargs = dict(format="PNG")
    buf = BytesIO()
    surface.save(buf, **save_kwargs)
    return buf.getvalue()


def export_document(surface: Optional[Image.Image], fmt: Optional[str] = None, filename: Optional[str] = None) -> ExportedDocument:
    """Flatten ``surface`` into a single-page document of the same pixel size.

    Orientation is landscape when the surface is at least as wide as it is
    tall, portrait otherwise. Raises :class:`ExportPrecondition` when there is
    no surface to export.
    """
    if surface is None:
        raise ExportPrecondition("Nothing has been rendered yet; load a background image first.")

    fmt = _normalise_format(fmt)
    width, height = surface.size
    if width >= height:
        orientation, page_size = "landscape", landscape((width, height))
    else:
        orientation, page_size = "portrait", portrait((width, height))

    # Every output format is opaque
    flat = surface.convert("RGB")
    if fmt == "pdf":
        content = _pdf_bytes(flat, page_size)
    else:
        content = _raster_bytes(flat, fmt)

    return ExportedDocument(
        filename=_filename_for(fmt, filename),
        media_type=MEDIA_TYPES[fmt],
        content=content,
        page_size=(int(page_size[0]), int(page_size[1])),
        orientation=orientation,
    )
