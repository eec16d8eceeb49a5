"""Tests for the circular crop session (coordinate model and state machine)."""

import math

import pytest
from PIL import Image

from signature_generator.crop_session import CropSession, CropState, circle_mask
from signature_generator.errors import (
    InvalidImageError, InvalidZoomError, NoImageLoadedError, SessionAlreadyConsumedError,
)

VIEWPORT = 300
DIAMETER = 200


def make_session(src_w, src_h, image=None, **kwargs):
    return CropSession(**kwargs).initialize(src_w, src_h, VIEWPORT, VIEWPORT, DIAMETER, image=image)


# --- initialize ---

@pytest.mark.parametrize("size", [(4000, 2000), (300, 600), (1, 1), (1234, 567), (10, 10000)])
def test_initialize_preserves_aspect_ratio(size):
    w, h = size
    s = make_session(w, h)

    assert s.base_width / s.base_height == pytest.approx(w / h)
    assert min(s.base_width, s.base_height) == pytest.approx(DIAMETER)
    assert s.zoom == 1.0
    assert s.state == CropState.READY


@pytest.mark.parametrize("size", [(4000, 2000), (300, 600), (500, 500)])
def test_initialize_centers_image(size):
    s = make_session(*size)

    assert s.offset_x + s.base_width / 2 == pytest.approx(VIEWPORT / 2)
    assert s.offset_y + s.base_height / 2 == pytest.approx(VIEWPORT / 2)


def test_initialize_landscape_and_portrait_fit():
    landscape = make_session(400, 200)
    assert (landscape.base_width, landscape.base_height) == pytest.approx((400, 200))
    assert (landscape.offset_x, landscape.offset_y) == pytest.approx((-50, 50))

    portrait = make_session(300, 600)
    assert (portrait.base_width, portrait.base_height) == pytest.approx((200, 400))
    assert (portrait.offset_x, portrait.offset_y) == pytest.approx((50, -50))


@pytest.mark.parametrize("size", [(100, 0), (0, 100), (-5, 100), (math.inf, 100), (100, math.nan)])
def test_initialize_rejects_invalid_dimensions(size):
    s = CropSession()
    with pytest.raises(InvalidImageError):
        s.initialize(size[0], size[1], VIEWPORT, VIEWPORT, DIAMETER)
    assert s.state == CropState.UNINITIALIZED


def test_initialize_rejects_image_size_mismatch():
    with pytest.raises(InvalidImageError):
        make_session(100, 100, image=Image.new("RGB", (50, 50)))


def test_from_image_reads_dimensions(split_image):
    s = CropSession.from_image(split_image, VIEWPORT, VIEWPORT)
    assert (s.source_width, s.source_height) == (200, 200)
    assert s.state == CropState.READY


# --- drag ---

@pytest.mark.parametrize("zoom", [1.0, 0.5, 2.5])
def test_drag_moves_offset_by_pointer_delta(zoom):
    s = make_session(640, 480)
    s.set_zoom(zoom)
    start = (s.offset_x, s.offset_y)

    s.begin_drag(10, 20)
    assert s.is_dragging
    s.update_drag(35, -5)
    s.end_drag()

    assert s.offset_x - start[0] == pytest.approx(25)
    assert s.offset_y - start[1] == pytest.approx(-25)
    assert s.state == CropState.READY
    assert s.drag_anchor is None


def test_update_drag_without_drag_is_noop():
    s = make_session(640, 480)
    before = (s.offset_x, s.offset_y)
    s.update_drag(500, 500)
    s.end_drag()
    assert (s.offset_x, s.offset_y) == before
    assert s.state == CropState.READY


def test_begin_drag_twice_resets_anchor():
    s = make_session(200, 200)
    s.begin_drag(0, 0)
    s.begin_drag(100, 100)
    s.update_drag(110, 100)
    assert s.offset_x == pytest.approx(60)
    assert s.offset_y == pytest.approx(50)


def test_drag_is_unclamped_by_default():
    s = make_session(200, 200)
    s.begin_drag(0, 0)
    s.update_drag(1000, -1000)
    assert (s.offset_x, s.offset_y) == pytest.approx((1050, -950))


def test_clamp_pan_keeps_circle_covered():
    s = make_session(200, 200, clamp_pan=True)
    s.begin_drag(0, 0)
    s.update_drag(100, 100)
    assert (s.offset_x, s.offset_y) == pytest.approx((50, 50))

    s.set_zoom(2.0)
    s.begin_drag(0, 0)
    s.update_drag(-1000, 1000)
    # circle spans 50..250; a 400px image may start anywhere in [-150, 50]
    assert (s.offset_x, s.offset_y) == pytest.approx((-150, 50))


# --- zoom ---

@pytest.mark.parametrize("zoom", [0.25, 1.0, 1.7, 3.0, 8.0])
def test_set_zoom_keeps_viewport_center_source_pixel(zoom):
    s = make_session(800, 600)
    # pan first so the image is no longer centered
    s.begin_drag(150, 150)
    s.update_drag(190, 120)
    s.end_drag()
    before = s.viewport_to_source(VIEWPORT / 2, VIEWPORT / 2)

    s.set_zoom(zoom)

    after = s.viewport_to_source(VIEWPORT / 2, VIEWPORT / 2)
    assert after == pytest.approx(before)


def test_set_zoom_on_centered_image_grows_around_center():
    s = make_session(200, 200)
    s.set_zoom(2.0)
    # offset -= (new_size - old_size) / 2
    assert (s.offset_x, s.offset_y) == pytest.approx((-50, -50))
    assert (s.base_width, s.base_height) == pytest.approx((200, 200))
    assert (s.display_width, s.display_height) == pytest.approx((400, 400))


@pytest.mark.parametrize("zoom", [0, -1.5, math.nan, math.inf])
def test_set_zoom_rejects_invalid_values(zoom):
    s = make_session(200, 200)
    s.set_zoom(1.5)
    before = (s.zoom, s.offset_x, s.offset_y)

    with pytest.raises(InvalidZoomError):
        s.set_zoom(zoom)

    assert (s.zoom, s.offset_x, s.offset_y) == before


def test_set_zoom_during_drag_keeps_pointer_anchor():
    s = make_session(200, 200)
    s.begin_drag(100, 100)
    s.set_zoom(2.0)
    zoomed = (s.offset_x, s.offset_y)

    s.update_drag(100, 100)
    assert (s.offset_x, s.offset_y) == pytest.approx(zoomed)

    s.update_drag(110, 90)
    assert (s.offset_x, s.offset_y) == pytest.approx((zoomed[0] + 10, zoomed[1] - 10))


# --- coordinate mapping ---

def test_viewport_source_mapping_round_trips():
    s = make_session(1000, 500)
    s.set_zoom(1.8)
    sx, sy = s.viewport_to_source(123.0, 45.0)
    assert s.source_to_viewport(sx, sy) == pytest.approx((123.0, 45.0))


def test_source_box_covers_whole_square_source_at_zoom_one():
    s = make_session(300, 300)
    box = s.source_box()
    assert (box.left, box.top, box.size) == pytest.approx((0, 0, 300))


def test_source_box_after_zoom():
    s = make_session(200, 200)
    s.set_zoom(2.0)
    box = s.source_box()
    assert (box.left, box.top, box.size) == pytest.approx((50, 50, 100))


def test_source_box_landscape_is_centered_square():
    s = make_session(400, 200)
    box = s.source_box()
    assert (box.left, box.top, box.size) == pytest.approx((100, 0, 200))


# --- commit ---

def test_commit_full_square_source(split_image):
    s = make_session(200, 200, image=split_image)
    raster = s.commit()

    assert raster.size == (150, 150)
    assert raster.mode == "RGBA"
    assert raster.getpixel((40, 75)) == (255, 0, 0, 255)
    assert raster.getpixel((110, 75)) == (0, 0, 255, 255)
    assert raster.getpixel((0, 0))[3] == 0
    assert raster.getpixel((149, 149))[3] == 0
    assert s.state == CropState.COMMITTED


@pytest.mark.parametrize("zoom", [1.0, 2.5, 0.4])
def test_commit_output_size_is_fixed(zoom):
    image = Image.new("RGB", (4000, 2000), (10, 200, 30))
    s = make_session(4000, 2000, image=image)
    s.set_zoom(zoom)

    raster = s.commit()

    assert raster.size == (150, 150)
    assert raster.getpixel((75, 75)) == (10, 200, 30, 255)


def test_commit_custom_output_size():
    image = Image.new("RGB", (300, 200), (1, 2, 3))
    s = make_session(300, 200, image=image, output_size=64)
    assert s.commit().size == (64, 64)


def test_commit_outside_image_is_transparent(split_image):
    s = make_session(200, 200, image=split_image)
    s.begin_drag(0, 0)
    s.update_drag(1000, 1000)

    raster = s.commit()

    assert raster.size == (150, 150)
    assert raster.getchannel("A").getextrema() == (0, 0)


def test_commit_uses_explicit_image(split_image):
    s = make_session(200, 200)
    raster = s.commit(split_image)
    assert raster.getpixel((40, 75)) == (255, 0, 0, 255)


def test_commit_without_image_fails():
    s = make_session(200, 200)
    with pytest.raises(NoImageLoadedError):
        s.commit()
    assert s.state == CropState.READY


def test_commit_before_initialize_fails():
    with pytest.raises(NoImageLoadedError):
        CropSession().commit(Image.new("RGB", (10, 10)))


def test_commit_twice_fails(split_image):
    s = make_session(200, 200, image=split_image)
    s.commit()
    with pytest.raises(SessionAlreadyConsumedError):
        s.commit(split_image)


def test_commit_while_dragging(split_image):
    s = make_session(200, 200, image=split_image)
    s.begin_drag(10, 10)
    assert s.commit().size == (150, 150)
    assert not s.is_dragging


# --- lifecycle ---

def test_operations_before_initialize():
    s = CropSession()
    with pytest.raises(NoImageLoadedError):
        s.begin_drag(0, 0)
    with pytest.raises(NoImageLoadedError):
        s.set_zoom(2.0)
    with pytest.raises(NoImageLoadedError):
        s.source_box()
    s.update_drag(1, 1)
    s.end_drag()
    assert s.state == CropState.UNINITIALIZED


def test_cancel_is_idempotent_and_terminal(split_image):
    s = make_session(200, 200, image=split_image)
    s.cancel()
    s.cancel()
    assert s.state == CropState.CANCELLED
    with pytest.raises(SessionAlreadyConsumedError):
        s.commit()
    with pytest.raises(SessionAlreadyConsumedError):
        s.set_zoom(2.0)
    with pytest.raises(SessionAlreadyConsumedError):
        s.begin_drag(0, 0)
    with pytest.raises(SessionAlreadyConsumedError):
        s.initialize(200, 200, VIEWPORT, VIEWPORT)


def test_cancel_after_commit_keeps_committed(split_image):
    s = make_session(200, 200, image=split_image)
    s.commit()
    s.cancel()
    assert s.state == CropState.COMMITTED


def test_invalid_output_size():
    with pytest.raises(ValueError):
        CropSession(output_size=0)


# --- mask ---

def test_circle_mask_is_zero_outside_circle():
    size = 150
    mask = circle_mask(size)
    radius = size / 2
    for y in range(size):
        for x in range(size):
            if math.hypot(x + 0.5 - radius, y + 0.5 - radius) >= radius:
                assert mask.getpixel((x, y)) == 0
    assert mask.getpixel((75, 75)) == 255
