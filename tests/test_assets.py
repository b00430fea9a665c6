import base64
import io

import pytest
from PIL import Image

from app.domain.errors import InvalidAsset
from app.infrastructure.cv.assets import decode_image
from conftest import data_url, png_bytes


def test_decodes_data_url(photo):
    img = decode_image(data_url(photo))
    assert img.size == (30, 40)
    assert img.mode == "RGBA"


def test_decodes_bare_base64_and_raw_bytes(photo):
    raw = png_bytes(photo)
    assert decode_image(base64.b64encode(raw).decode("ascii")).size == (30, 40)
    assert decode_image(raw).size == (30, 40)


def test_decodes_jpeg():
    buf = io.BytesIO()
    Image.new("RGB", (64, 48), "red").save(buf, format="JPEG")
    assert decode_image(buf.getvalue()).size == (64, 48)


@pytest.mark.parametrize("src", [b"", b"not an image", "!!!!"])
def test_rejects_undecodable_input(src):
    with pytest.raises(InvalidAsset):
        decode_image(src)


def test_rejects_other_formats():
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), "red").save(buf, format="GIF")
    with pytest.raises(InvalidAsset):
        decode_image(buf.getvalue())
