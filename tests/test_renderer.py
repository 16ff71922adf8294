import numpy as np
import pytest

from mandelzoom.kernel import iterate
from mandelzoom.palette import Palette, default_palette
from mandelzoom.renderer import FieldRenderer, FrameMetrics, ViewWindow, row_coordinates
from mandelzoom.schedule import ZoomSchedule

START = ZoomSchedule().initial_view()


def _expected_pixels(view, width, height, max_iterations, palette):
    expected = np.zeros((height, width, 4), dtype=np.uint8)
    for py in range(height):
        for px in range(width):
            re = px * view.size / width - view.size / 2 + view.center_x
            im = (height - py) * view.size / height - view.size / 2 + view.center_y
            expected[py, px] = palette.color(iterate(re, im, max_iterations), max_iterations)
    return expected


def test_row_coordinates_follow_the_flipped_mapping():
    view = ViewWindow(center_x=-0.7, center_y=0.25, size=2.0)
    real, imag = row_coordinates(view, 3, width=8, height=6)
    assert real.tolist() == [px * 2.0 / 8 - 2.0 / 2 + -0.7 for px in range(8)]
    assert imag.tolist() == [(6 - 3) * 2.0 / 6 - 2.0 / 2 + 0.25] * 8
    _, top = row_coordinates(view, 0, width=8, height=6)
    _, bottom = row_coordinates(view, 5, width=8, height=6)
    assert top[0] > bottom[0]


def test_small_frame_center_and_corners():
    view = ViewWindow(center_x=0.0, center_y=0.0, size=4.0)
    with FieldRenderer(4, 4, max_iterations=10, workers=2) as renderer:
        real, imag = row_coordinates(view, 2, 4, 4)
        assert (real[2], imag[2]) == (0.0, 0.0)

        center = renderer.escape_counts(view, 2)[2]
        corner = renderer.escape_counts(view, 0)[0]
        assert center == 10
        assert corner <= 1

        pixels, _ = renderer.render_frame(view)
        assert tuple(pixels[2, 2]) == (0, 0, 0, 0)
        assert tuple(pixels[0, 0]) == tuple(renderer.palette.colors[corner])


def test_frame_matches_per_pixel_reference():
    view = ViewWindow(center_x=-0.5, center_y=0.0, size=3.0)
    with FieldRenderer(16, 12, max_iterations=50, workers=4) as renderer:
        pixels, _ = renderer.render_frame(view)
        expected = _expected_pixels(view, 16, 12, 50, renderer.palette)
    assert pixels.shape == (12, 16, 4)
    assert pixels.dtype == np.uint8
    assert len(pixels.tobytes()) == 16 * 12 * 4
    np.testing.assert_array_equal(pixels, expected)


@pytest.mark.parametrize("workers", [1, 2, 3, 8, 32])
def test_worker_count_does_not_change_output(workers):
    with FieldRenderer(24, 20, workers=1) as reference:
        expected = reference.render_frame(START)[0].copy()
    with FieldRenderer(24, 20, workers=workers) as renderer:
        pixels = renderer.render_frame(START)[0].copy()
    np.testing.assert_array_equal(pixels, expected)


def test_repeated_renders_are_identical():
    with FieldRenderer(20, 20, workers=4) as renderer:
        first = renderer.render_frame(START)[0].copy()
        second = renderer.render_frame(START)[0].copy()
    np.testing.assert_array_equal(first, second)


@pytest.mark.parametrize("backend", ["python", "tensorflow"])
def test_backends_agree_with_numpy(backend):
    view = ViewWindow(center_x=-0.75, center_y=0.1, size=2.5)
    with FieldRenderer(12, 10, max_iterations=30, workers=3) as reference:
        expected = reference.render_frame(view)[0].copy()
    with FieldRenderer(12, 10, max_iterations=30, workers=3, backend=backend) as renderer:
        pixels = renderer.render_frame(view)[0].copy()
    np.testing.assert_array_equal(pixels, expected)


def test_buffer_is_rewritten_every_frame():
    zoomed = ViewWindow(center_x=-0.7, center_y=0.25, size=0.05)
    with FieldRenderer(16, 16, workers=4) as renderer:
        renderer.render_frame(START)
        pixels, _ = renderer.render_frame(zoomed)
        reused = pixels.copy()
    with FieldRenderer(16, 16, workers=4) as fresh:
        expected = fresh.render_frame(zoomed)[0].copy()
    np.testing.assert_array_equal(reused, expected)


def test_every_pixel_is_a_palette_entry_or_transparent():
    palette = default_palette()
    allowed = {tuple(c) for c in palette.colors} | {(0, 0, 0, 0)}
    with FieldRenderer(20, 20, workers=4) as renderer:
        pixels, _ = renderer.render_frame(START)
    assert {tuple(p) for p in pixels.reshape(-1, 4)} <= allowed


def test_short_palette_is_used_modulo_its_length():
    palette = Palette([(255, 0, 0, 255), (0, 0, 255, 255)])
    with FieldRenderer(8, 8, palette=palette, workers=2) as renderer:
        pixels, _ = renderer.render_frame(START)
    allowed = {(255, 0, 0, 255), (0, 0, 255, 255), (0, 0, 0, 0)}
    assert {tuple(p) for p in pixels.reshape(-1, 4)} <= allowed


def test_metrics_record_frame_duration():
    with FieldRenderer(10, 10, workers=2) as renderer:
        assert renderer.metrics.last_frame_duration == 0.0
        _, metrics = renderer.render_frame(START)
    assert isinstance(metrics, FrameMetrics)
    assert metrics.last_frame_duration > 0.0
    assert renderer.metrics is metrics
    assert FrameMetrics(last_frame_duration=0.0456).milliseconds == 45


def test_worker_errors_surface_after_the_join(monkeypatch):
    renderer = FieldRenderer(6, 6, workers=3)

    def broken(view, row):
        if row == 3:
            raise ArithmeticError("row 3 failed")
        return np.zeros(6, dtype=np.int32)

    monkeypatch.setattr(renderer, "escape_counts", broken)
    with renderer:
        with pytest.raises(ArithmeticError, match="row 3"):
            renderer.render_frame(START)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"width": 0},
        {"height": -1},
        {"max_iterations": 0},
        {"workers": 0},
        {"backend": "opencl"},
    ],
)
def test_invalid_configuration_is_rejected(kwargs):
    with pytest.raises(ValueError):
        FieldRenderer(**kwargs)


def test_closed_renderer_refuses_to_render():
    renderer = FieldRenderer(4, 4, workers=1)
    renderer.close()
    renderer.close()
    with pytest.raises(RuntimeError):
        renderer.render_frame(START)
