import pytest
from pydantic import ValidationError

from app.domain.geometry import (
    Geometry,
    Point,
    ResizeHandle,
    Viewport,
    below_minimum,
    clamp_size,
    handle_at,
    handle_points,
    hit_test,
    resize_geometry,
    text_selection_box,
)


def test_clamp_size_raises_each_axis_to_minimum():
    assert clamp_size(3, 3) == (5, 5)
    assert clamp_size(3, 40) == (5, 40)
    assert clamp_size(120, 130) == (120, 130)


def test_below_minimum_checks_either_axis():
    assert below_minimum(Geometry(0, 0, 4.9, 100))
    assert below_minimum(Geometry(0, 0, 100, 2))
    assert not below_minimum(Geometry(0, 0, 5, 5))


def test_text_selection_box_uses_advisory_width():
    assert text_selection_box(50, 50, 20) == Geometry(48, 48, 100, 24)


def test_text_field_is_hit_through_selection_box(registry):
    field = registry.add("text", "nome")
    assert field.size == (0, 0)
    assert hit_test(field, Point(140, 60))
    assert not hit_test(field, Point(149, 60))


def test_photo_field_is_hit_through_its_size(registry):
    field = registry.add("photo")
    assert hit_test(field, Point(150, 180))
    assert not hit_test(field, Point(151, 100))


def test_handle_points_sit_on_the_bounding_box():
    points = handle_points(Geometry(50, 50, 100, 130))
    assert points[ResizeHandle.TOP_LEFT] == Point(50, 50)
    assert points[ResizeHandle.BOTTOM_CENTER] == Point(100, 180)
    assert points[ResizeHandle.MIDDLE_RIGHT] == Point(150, 115)


def test_handle_at_tolerates_half_a_handle():
    geometry = Geometry(50, 50, 100, 130)
    assert handle_at(geometry, Point(154, 176)) is ResizeHandle.BOTTOM_RIGHT
    assert handle_at(geometry, Point(100, 100)) is None


@pytest.mark.parametrize(
    "handle, expected",
    [
        (ResizeHandle.BOTTOM_RIGHT, Geometry(50, 50, 110, 150)),
        (ResizeHandle.TOP_LEFT, Geometry(60, 70, 90, 110)),
        (ResizeHandle.TOP_CENTER, Geometry(50, 70, 100, 110)),
        (ResizeHandle.MIDDLE_LEFT, Geometry(60, 50, 90, 130)),
    ],
)
def test_resize_geometry_keeps_opposite_edge(handle, expected):
    assert resize_geometry(Geometry(50, 50, 100, 130), handle, 10, 20) == expected


def test_viewport_maps_screen_to_image_space():
    viewport = Viewport(zoom=2, scroll_x=10, scroll_y=0)
    assert viewport.to_image(110, 100) == Point(60, 50)
    assert viewport.delta_to_image(20, 8) == (10, 4)


def test_viewport_rejects_non_positive_zoom():
    with pytest.raises(ValidationError):
        Viewport(zoom=0)
