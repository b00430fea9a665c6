# app/infrastructure/cv/assets.py
import base64
import binascii
import io
from typing import Union

from PIL import Image, UnidentifiedImageError

from app.config.settings import settings
from app.domain.errors import InvalidAsset

ACCEPTED_FORMATS = ("PNG", "JPEG")


def source_to_bytes(src: Union[str, bytes]) -> bytes:
    """Raw bytes from a ``data:image/...`` URL, a bare base64 string or bytes."""
    if isinstance(src, (bytes, bytearray)):
        return bytes(src)
    try:
        if src.startswith("data:image"):
            _, encoded = src.split(",", 1)
            return base64.b64decode(encoded + "===")
        return base64.b64decode(src + "===")
    except (ValueError, binascii.Error) as e:
        raise InvalidAsset(f"Asset is not valid base64: {e}") from e


def decode_image(src: Union[str, bytes]) -> Image.Image:
    data = source_to_bytes(src)
    if not data:
        raise InvalidAsset("Asset is empty.")
    if len(data) > settings.MAX_ASSET_BYTES:
        raise InvalidAsset(f"Asset exceeds {settings.MAX_ASSET_BYTES} bytes.")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidAsset(f"Asset could not be decoded as an image: {e}") from e
    if img.format not in ACCEPTED_FORMATS:
        raise InvalidAsset(f"Unsupported image format {img.format}; expected PNG or JPEG.")
    return img.convert("RGBA")
