import pytest

from docsign.components import (
    PageSize,
    apply_percent_delta,
    clamp_position,
    clamp_size,
    pixel_delta_to_percent,
    to_output_origin,
    to_output_origin_text,
)


def test_clamp_position_inside_unchanged():
    assert clamp_position((50, 60)) == (50, 60)


def test_clamp_position_out_of_range():
    assert clamp_position((150, -20)) == (100, 0)


def test_apply_percent_delta_clamps_after_move():
    assert apply_percent_delta((95, 5), 10, -10) == (100, 0)
    assert apply_percent_delta((10, 20), 5, 5) == (15, 25)


def test_pixel_delta_to_percent():
    assert pixel_delta_to_percent(50, 100, 500, 1000) == (10.0, 10.0)


def test_pixel_delta_zero_container_is_zero():
    assert pixel_delta_to_percent(30, 40, 0, 0) == (0.0, 0.0)


def test_clamp_size_between_half_and_double():
    assert clamp_size((10, 1000), (200, 100), 0.5, 2.0) == (100, 200)
    assert clamp_size((250, 80), (200, 100), 0.5, 2.0) == (250, 80)


def test_output_origin_center_of_letter():
    assert to_output_origin((50, 50), (100, 100), PageSize(612, 792)) == pytest.approx((306.0, 296.0))


def test_output_origin_top_left_corner():
    # 左上角放置时，图片顶边贴住页面顶边
    x, y = to_output_origin((0, 0), (200, 100), (612, 792))
    assert (x, y) == pytest.approx((0.0, 692.0))


def test_output_origin_text_does_not_subtract_height():
    assert to_output_origin_text((50, 60), (612, 792)) == pytest.approx((306.0, 316.8))


def test_output_origin_y_decreases_as_percent_grows():
    ys = [to_output_origin((0, p), (50, 50), (612, 792))[1] for p in range(0, 101, 10)]
    assert all(a > b for a, b in zip(ys, ys[1:]))
