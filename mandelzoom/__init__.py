"""Public API for the Mandelbrot zoom renderer."""

from .kernel import HORIZON, MAX_ITERATIONS, iterate, iterate_row, iterate_tensor
from .palette import Palette, default_palette, plan9_colors
from .renderer import BACKENDS, HEIGHT, WIDTH, FieldRenderer, FrameMetrics, ViewWindow, row_coordinates
from .schedule import CENTER_X, CENTER_Y, INITIAL_SIZE, SHRINK_FACTOR, ZoomSchedule, advance

__all__ = [
    "BACKENDS",
    "CENTER_X",
    "CENTER_Y",
    "FieldRenderer",
    "FrameMetrics",
    "HEIGHT",
    "HORIZON",
    "INITIAL_SIZE",
    "MAX_ITERATIONS",
    "Palette",
    "SHRINK_FACTOR",
    "ViewWindow",
    "WIDTH",
    "ZoomSchedule",
    "advance",
    "default_palette",
    "iterate",
    "iterate_row",
    "iterate_tensor",
    "plan9_colors",
    "row_coordinates",
]
