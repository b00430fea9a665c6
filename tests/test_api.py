import base64
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from app.config.settings import settings
from app.main import app
from conftest import data_url

API = settings.API_V1_STR
TOKEN = base64.b64encode(f"{settings.BASIC_AUTH_USERNAME}:{settings.BASIC_AUTH_PASSWORD}".encode()).decode()
AUTH = {"Authorization": f"Basic {TOKEN}"}


@pytest.fixture
def client():
    # lifespan creates a fresh template service for every test
    with TestClient(app, headers=AUTH) as c:
        yield c


@pytest.fixture
def loaded(client, background):
    res = client.put(f"{API}/background", json={"image": data_url(background)})
    assert res.status_code == 200
    assert res.json() == {"width": 400, "height": 300}
    return client


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["background_loaded"] is False


def test_requires_basic_auth():
    with TestClient(app) as c:
        assert c.get(f"{API}/fields").status_code == 401
        bad = base64.b64encode(b"admin:wrong").decode()
        assert c.get(f"{API}/fields", headers={"Authorization": f"Basic {bad}"}).status_code == 401


def test_render_and_export_before_background(client):
    assert client.get(f"{API}/background").json() == {"loaded": False, "width": None, "height": None}
    assert client.get(f"{API}/render").status_code == 204
    assert client.post(f"{API}/export").status_code == 409


def test_invalid_background_is_rejected(client):
    res = client.put(f"{API}/background", json={"image": "bm90IGFuIGltYWdl"})
    assert res.status_code == 422


def test_field_crud(client):
    res = client.post(f"{API}/fields", json={"kind": "text", "label": "nome"})
    assert res.status_code == 201
    field = res.json()
    assert field["label"] == "NOME"
    assert (field["x"], field["y"], field["w"], field["h"], field["font_size"]) == (50, 50, 0, 0, 20)

    assert client.post(f"{API}/fields", json={"kind": "text"}).status_code == 422
    assert client.post(f"{API}/fields", json={"kind": "circle"}).status_code == 422

    photo = client.post(f"{API}/fields", json={"kind": "photo"}).json()
    assert photo["label"] == "FOTO"
    assert [f["id"] for f in client.get(f"{API}/fields").json()] == [field["id"], photo["id"]]

    assert client.delete(f"{API}/fields/{field['id']}").status_code == 204
    assert client.delete(f"{API}/fields/missing").status_code == 204
    assert [f["id"] for f in client.get(f"{API}/fields").json()] == [photo["id"]]


def test_drag_and_resize_over_http(loaded):
    photo = loaded.post(f"{API}/fields", json={"kind": "photo"}).json()

    res = loaded.post(f"{API}/interaction/pointer-down", json={"x": 60, "y": 60})
    assert res.json() == {"state": "selected", "field_id": photo["id"], "handle": None}

    assert loaded.post(f"{API}/interaction/drag/start", json={"x": 60, "y": 60}).json()["state"] == "dragging"
    loaded.post(f"{API}/interaction/drag/move", json={"x": 70, "y": 60})
    assert loaded.get(f"{API}/fields").json()[0]["x"] == 50
    assert loaded.post(f"{API}/interaction/drag/end", json={"x": 80, "y": 70}).json()["state"] == "selected"
    moved = loaded.get(f"{API}/fields").json()[0]
    assert (moved["x"], moved["y"]) == (70, 60)

    res = loaded.post(f"{API}/interaction/resize/start", json={"x": 170, "y": 190})
    assert res.json()["handle"] == "bottom-right"
    loaded.post(f"{API}/interaction/resize/end", json={"x": 73, "y": 63})
    resized = loaded.get(f"{API}/fields").json()[0]
    assert (resized["w"], resized["h"]) == (100, 130)

    loaded.post(f"{API}/interaction/resize/start", json={"x": 170, "y": 190, "handle": "bottom-right"})
    loaded.post(f"{API}/interaction/resize/end", json={"x": 180, "y": 200})
    resized = loaded.get(f"{API}/fields").json()[0]
    assert (resized["w"], resized["h"]) == (110, 140)


def test_zoomed_pointer_and_invalid_viewport(loaded):
    photo = loaded.post(f"{API}/fields", json={"kind": "photo"}).json()
    res = loaded.post(f"{API}/interaction/pointer-down", json={"x": 200, "y": 200, "viewport": {"zoom": 2}})
    assert res.json()["field_id"] == photo["id"]
    res = loaded.post(f"{API}/interaction/pointer-down", json={"x": 1, "y": 1, "viewport": {"zoom": 0}})
    assert res.status_code == 422


def test_fill_mode_flow_and_export(loaded, photo):
    loaded.post(f"{API}/fields", json={"kind": "text", "label": "NOME"})
    loaded.post(f"{API}/fields", json={"kind": "photo"})
    assert loaded.put(f"{API}/mode", json={"mode": "fill"}).json() == {"mode": "fill"}

    res = loaded.post(f"{API}/interaction/pointer-down", json={"x": 60, "y": 60})
    assert res.json()["state"] == "idle"

    loaded.put(f"{API}/fill/values", json={"values": {"NOME": "Maria Silva"}})
    assert loaded.put(f"{API}/fill/photo", json={"image": data_url(photo)}).json() == {"width": 30, "height": 40}
    form = loaded.get(f"{API}/fill/form").json()
    assert form == {"labels": ["NOME"], "needs_photo": True, "values": {"NOME": "Maria Silva"}, "has_photo": True}

    render = loaded.get(f"{API}/render")
    assert render.status_code == 200
    assert render.headers["content-type"] == "image/png"

    res = loaded.post(f"{API}/export")
    assert res.status_code == 200
    assert res.headers["content-type"] == "application/pdf"
    assert res.headers["content-disposition"] == 'attachment; filename="carteirinha-oab.pdf"'
    assert res.headers["x-page-orientation"] == "landscape"
    assert res.content.startswith(b"%PDF")


def test_png_export_is_background_sized(loaded):
    res = loaded.post(f"{API}/export", json={"format": "png"})
    assert res.status_code == 200
    assert Image.open(BytesIO(res.content)).size == (400, 300)


def test_unknown_export_format(loaded):
    assert loaded.post(f"{API}/export", json={"format": "tiff"}).status_code == 422


def test_background_info_after_upload(loaded):
    assert loaded.get(f"{API}/background").json() == {"loaded": True, "width": 400, "height": 300}
    assert loaded.get("/health").json()["background_loaded"] is True
