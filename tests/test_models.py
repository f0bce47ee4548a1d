"""Tests for the pure crop geometry in ``academy_crop_tool.models``.

None of these need Qt or Pillow; every function takes and returns plain
numbers and frozen dataclasses.
"""

import random

import pytest

from academy_crop_tool.errors import DegenerateCropError
from academy_crop_tool.models import (
    Corner, CropRect, DisplayTransform, Mode,
    clamp_crop, compute_display_transform, cursor_hint, drag_crop, hit_test,
    initial_crop, output_size, paint_rect, resize_crop, source_rect, viewport_for_ratio,
)

EPS = 1e-9
RATIO = 4 / 3


def _assert_transform(t: DisplayTransform, draw_w, draw_h, offset_x, offset_y):
    assert t.draw_w == pytest.approx(draw_w)
    assert t.draw_h == pytest.approx(draw_h)
    assert t.offset_x == pytest.approx(offset_x, abs=1e-9)
    assert t.offset_y == pytest.approx(offset_y, abs=1e-9)


# =============================================================================
# Viewport & display transform
# =============================================================================
def test_viewport_for_landscape_ratio_uses_wide_cap():
    vp = viewport_for_ratio(4 / 3)
    assert (vp.width, vp.height) == (500, 375)


def test_viewport_for_portrait_ratio_uses_narrow_cap():
    vp = viewport_for_ratio(3 / 4)
    assert (vp.width, vp.height) == (400, 533)


def test_viewport_respects_explicit_cap():
    vp = viewport_for_ratio(1.0, 500)
    assert (vp.width, vp.height) == (500, 500)


def test_matching_aspect_fills_viewport():
    t = compute_display_transform(1600, 1200, 500, 375)
    _assert_transform(t, 500, 375, 0, 0)


def test_wider_image_is_letterboxed_vertically():
    t = compute_display_transform(1600, 900, 500, 500)
    _assert_transform(t, 500, 281.25, 0, 109.375)


def test_taller_image_is_letterboxed_horizontally():
    t = compute_display_transform(900, 1600, 500, 500)
    _assert_transform(t, 281.25, 500, 109.375, 0)


def test_quarter_rotation_swaps_image_dimensions():
    t = compute_display_transform(1600, 900, 500, 500, rotation=90)
    _assert_transform(t, 281.25, 500, 109.375, 0)
    t = compute_display_transform(1600, 900, 500, 500, rotation=270)
    _assert_transform(t, 281.25, 500, 109.375, 0)


def test_half_rotation_keeps_dimensions():
    t = compute_display_transform(1600, 900, 500, 500, rotation=180)
    _assert_transform(t, 500, 281.25, 0, 109.375)


def test_zoom_scales_filling_axis_from_left_edge():
    t = compute_display_transform(1600, 900, 500, 500, scale=2.0)
    _assert_transform(t, 1000, 562.5, 0, -31.25)


def test_zoom_out_shrinks_painted_region():
    t = compute_display_transform(1600, 900, 500, 500, scale=0.5)
    _assert_transform(t, 250, 140.625, 0, 179.6875)


def test_paint_rect_without_rotation_is_transform_rect():
    t = compute_display_transform(1600, 900, 500, 500)
    assert paint_rect(t, 0, 500, 500) == pytest.approx((0, 109.375, 500, 281.25))


def test_paint_rect_quarter_turn_of_centred_image():
    t = compute_display_transform(1600, 900, 500, 500, rotation=90)
    # The bitmap is drawn unrotated (wide) and the painter turns it upright
    assert paint_rect(t, 90, 500, 500) == pytest.approx((0, 109.375, 500, 281.25))


def test_paint_rect_half_turn_of_off_centre_image():
    t = compute_display_transform(1600, 900, 500, 500, scale=2.0, rotation=180)
    x, y, w, h = paint_rect(t, 180, 500, 500)
    assert (x, y, w, h) == pytest.approx((-500, -31.25, 1000, 562.5), abs=1e-9)


# =============================================================================
# Initial placement
# =============================================================================
def test_initial_crop_fills_eighty_percent_of_matching_viewport():
    t = compute_display_transform(1600, 1200, 500, 375)
    crop = initial_crop(t, RATIO)
    assert (crop.x, crop.y, crop.w, crop.h) == pytest.approx((50, 37.5, 400, 300))


def test_initial_crop_is_height_bound_in_letterbox():
    t = compute_display_transform(1600, 900, 500, 500)
    crop = initial_crop(t, RATIO)
    assert (crop.x, crop.y, crop.w, crop.h) == pytest.approx((100, 137.5, 300, 225))


def test_initial_crop_portrait_ratio_centred_in_painted_region():
    vp = viewport_for_ratio(3 / 4)
    t = compute_display_transform(1600, 1200, vp.width, vp.height)
    crop = initial_crop(t, 3 / 4)
    assert (crop.x, crop.y, crop.w, crop.h) == pytest.approx((110, 146.5, 180, 240))
    assert crop.w / crop.h == pytest.approx(3 / 4)


# =============================================================================
# Hit testing
# =============================================================================
CROP = CropRect(100, 100, 200, 150)


@pytest.mark.parametrize("point, corner", [
    ((100, 100), Corner.TOP_LEFT),
    ((94, 94), Corner.TOP_LEFT),
    ((106, 106), Corner.TOP_LEFT),
    ((300, 100), Corner.TOP_RIGHT),
    ((100, 250), Corner.BOTTOM_LEFT),
    ((305, 255), Corner.BOTTOM_RIGHT),
])
def test_hit_test_corner_zones(point, corner):
    assert hit_test(CROP, *point) == (Mode.RESIZE, corner)


def test_hit_test_body_is_drag():
    assert hit_test(CROP, 200, 175) == (Mode.DRAG, None)
    assert hit_test(CROP, 107, 107) == (Mode.DRAG, None)
    # Edges of the body are inclusive
    assert hit_test(CROP, 200, 100) == (Mode.DRAG, None)


def test_hit_test_outside_is_idle():
    assert hit_test(CROP, 50, 50) == (Mode.IDLE, None)
    assert hit_test(CROP, 93, 100) == (Mode.IDLE, None)
    assert hit_test(CROP, 200, 257) == (Mode.IDLE, None)


def test_hit_test_corner_wins_over_body():
    tiny = CropRect(0, 0, 10, 7.5)
    assert hit_test(tiny, 5, 3.75) == (Mode.RESIZE, Corner.TOP_LEFT)


def test_hit_test_is_idempotent():
    results = {hit_test(CROP, 299, 249) for _ in range(10)}
    assert results == {(Mode.RESIZE, Corner.BOTTOM_RIGHT)}


def test_cursor_hints():
    assert cursor_hint(Mode.RESIZE, Corner.TOP_LEFT) == "resize-nwse"
    assert cursor_hint(Mode.RESIZE, Corner.BOTTOM_RIGHT) == "resize-nwse"
    assert cursor_hint(Mode.RESIZE, Corner.TOP_RIGHT) == "resize-nesw"
    assert cursor_hint(Mode.RESIZE, Corner.BOTTOM_LEFT) == "resize-nesw"
    assert cursor_hint(Mode.DRAG, None) == "move"
    assert cursor_hint(Mode.IDLE, None) == "default"


# =============================================================================
# Resize
# =============================================================================
def _resize(crop, corner, dx, canvas=(500, 500)):
    return resize_crop(crop, corner, dx, RATIO, *canvas)


def test_resize_bottom_right_keeps_top_left():
    out = _resize(CROP, Corner.BOTTOM_RIGHT, 40)
    assert (out.x, out.y) == (CROP.x, CROP.y)
    assert (out.w, out.h) == pytest.approx((240, 180))


def test_resize_top_left_keeps_bottom_right():
    out = _resize(CROP, Corner.TOP_LEFT, 40)
    assert (out.w, out.h) == pytest.approx((160, 120))
    assert (out.right, out.bottom) == pytest.approx((CROP.right, CROP.bottom))
    assert (out.x, out.y) == pytest.approx((140, 130))


def test_resize_top_right_keeps_bottom_left():
    out = _resize(CROP, Corner.TOP_RIGHT, 20)
    assert out.x == CROP.x
    assert out.bottom == pytest.approx(CROP.bottom)
    assert (out.w, out.h) == pytest.approx((220, 165))


def test_resize_bottom_left_keeps_top_right():
    out = _resize(CROP, Corner.BOTTOM_LEFT, -20)
    assert out.y == CROP.y
    assert out.right == pytest.approx(CROP.right)
    assert (out.x, out.w, out.h) == pytest.approx((80, 220, 165))


def test_resize_enforces_minimum_width():
    out = _resize(CROP, Corner.BOTTOM_RIGHT, -500)
    assert (out.w, out.h) == pytest.approx((50, 37.5))
    assert (out.x, out.y) == (CROP.x, CROP.y)


def test_resize_clamps_to_right_edge():
    out = _resize(CROP, Corner.BOTTOM_RIGHT, 1000)
    assert (out.x, out.y) == (100, 100)
    assert (out.w, out.h) == pytest.approx((400, 300))
    assert out.right <= 500 + EPS


def test_resize_clamps_to_bottom_edge_through_ratio():
    crop = CropRect(100, 300, 200, 150)
    out = _resize(crop, Corner.BOTTOM_RIGHT, 1000)
    assert out.bottom == pytest.approx(500)
    assert out.w == pytest.approx(200 * RATIO)
    assert (out.x, out.y) == (100, 300)


def test_resize_clamps_to_top_left_edges_and_keeps_anchor():
    crop = CropRect(20, 30, 200, 150)
    out = _resize(crop, Corner.TOP_LEFT, -1000)
    assert out.x == pytest.approx(0, abs=EPS)
    assert (out.w, out.h) == pytest.approx((220, 165))
    assert (out.right, out.bottom) == pytest.approx((220, 180))


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_random_interactions_preserve_invariants(seed):
    rng = random.Random(seed)
    canvas_w, canvas_h = 500, 375
    crop = initial_crop(compute_display_transform(1600, 900, canvas_w, canvas_h), RATIO)

    for _ in range(300):
        if rng.random() < 0.5:
            corner = rng.choice(list(Corner))
            anchor = crop.corner_point(_opposite(corner))
            crop = resize_crop(crop, corner, rng.uniform(-200, 200), RATIO, canvas_w, canvas_h)
            assert crop.corner_point(_opposite(corner)) == pytest.approx(anchor, abs=1e-6)
            assert crop.w >= 50 - EPS
        else:
            crop = drag_crop(
                crop, rng.uniform(-300, 800), rng.uniform(-300, 700),
                rng.uniform(0, crop.w), rng.uniform(0, crop.h), canvas_w, canvas_h,
            )

        assert abs(crop.w / crop.h - RATIO) < EPS
        assert crop.x >= -EPS and crop.y >= -EPS
        assert crop.right <= canvas_w + EPS
        assert crop.bottom <= canvas_h + EPS


def _opposite(corner: Corner) -> Corner:
    return {
        Corner.TOP_LEFT: Corner.BOTTOM_RIGHT,
        Corner.BOTTOM_RIGHT: Corner.TOP_LEFT,
        Corner.TOP_RIGHT: Corner.BOTTOM_LEFT,
        Corner.BOTTOM_LEFT: Corner.TOP_RIGHT,
    }[corner]


# =============================================================================
# Drag & clamp
# =============================================================================
def test_drag_follows_pointer_minus_grab_offset():
    out = drag_crop(CROP, 50, 60, 10, 10, 500, 500)
    assert (out.x, out.y, out.w, out.h) == (40, 50, 200, 150)


def test_drag_clamps_each_axis():
    low = drag_crop(CROP, -100, -100, 10, 10, 500, 500)
    assert (low.x, low.y) == (0, 0)
    high = drag_crop(CROP, 1000, 1000, 10, 10, 500, 500)
    assert (high.x, high.y) == (300, 350)
    mixed = drag_crop(CROP, 1000, 120, 10, 10, 500, 500)
    assert (mixed.x, mixed.y) == (300, 110)


def test_clamp_crop_moves_rect_inside_and_fixes_ratio():
    out = clamp_crop(CropRect(450, 450, 100, 10), RATIO, 500, 500)
    assert (out.x, out.y, out.w, out.h) == pytest.approx((400, 425, 100, 75))


def test_clamp_crop_floors_width_and_shrinks_oversize():
    small = clamp_crop(CropRect(0, 0, 10, 10), RATIO, 500, 500)
    assert small.w == 50
    big = clamp_crop(CropRect(0, 0, 900, 10), RATIO, 500, 375)
    assert (big.w, big.h) == pytest.approx((500, 375))


# =============================================================================
# Commit mapping
# =============================================================================
WIDE = compute_display_transform(1600, 900, 500, 500)


def test_source_rect_maps_through_letterbox():
    src = source_rect(CropRect(100, 150, 200, 150), WIDE, 1600, 900)
    assert (src.x, src.y, src.w, src.h) == pytest.approx((320, 130, 640, 480))
    assert src.box() == pytest.approx((320, 130, 960, 610))


def test_source_rect_clips_to_image_origin():
    src = source_rect(CropRect(0, 0, 200, 150), WIDE, 1600, 900)
    assert (src.x, src.y) == (0, 0)
    assert (src.w, src.h) == pytest.approx((640, 480))


def test_source_rect_clips_to_far_edges():
    src = source_rect(CropRect(400, 320, 100, 75), WIDE, 1600, 900)
    assert src.x + src.w == pytest.approx(1600)
    assert src.y + src.h == pytest.approx(900)


def test_source_rect_outside_painted_region_is_degenerate():
    zoomed_out = compute_display_transform(1600, 900, 500, 500, scale=0.5)
    with pytest.raises(DegenerateCropError) as exc_info:
        source_rect(CropRect(300, 200, 150, 112.5), zoomed_out, 1600, 900)
    assert exc_info.value.source[0] >= 1600


def test_source_rect_below_image_is_degenerate():
    with pytest.raises(DegenerateCropError):
        source_rect(CropRect(100, 400, 100, 75), WIDE, 1600, 900)


@pytest.mark.parametrize("ratio, size", [
    (4 / 3, (800, 600)),
    (3 / 4, (600, 800)),
    (1.0, (800, 800)),
    (16 / 9, (800, 450)),
])
def test_output_size_long_edge(ratio, size):
    assert output_size(ratio) == size


def test_output_size_custom_long_edge():
    assert output_size(4 / 3, 400) == (400, 300)
