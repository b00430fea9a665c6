import base64
import io

import pytest
from PIL import Image

from app.domain.field_registry import FieldRegistry
from app.domain.interaction import InteractionStateMachine

WHITE = (255, 255, 255)
BLUE = (0, 0, 255)


def png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def data_url(img: Image.Image) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes(img)).decode("ascii")


@pytest.fixture
def background():
    return Image.new("RGB", (400, 300), WHITE).convert("RGBA")


@pytest.fixture
def photo():
    return Image.new("RGB", (30, 40), BLUE).convert("RGBA")


@pytest.fixture
def registry():
    return FieldRegistry()


@pytest.fixture
def machine(registry):
    return InteractionStateMachine(registry)
