"""Presentation helpers: frame overlay text, FPS tracking and the tick loop."""

from __future__ import annotations

import time
from collections import deque
from functools import lru_cache
from pathlib import Path
from typing import Optional

import numpy as np
import PIL.Image
import PIL.ImageDraw
import PIL.ImageFont

from .renderer import FieldRenderer, FrameMetrics, ViewWindow
from .schedule import ZoomSchedule

BACKGROUND = (0, 0, 0, 255)
TEXT_COLOR = (240, 244, 255, 255)
SHADOW_COLOR = (0, 0, 0, 170)

_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeMono.ttf",
)


class FpsCounter:
    """Presented frames per second over a trailing time window."""

    def __init__(self, window: float = 1.0) -> None:
        self.window = window
        self._ticks: deque[float] = deque()

    def tick(self, now: Optional[float] = None) -> None:
        now = time.perf_counter() if now is None else now
        self._ticks.append(now)
        while self._ticks and now - self._ticks[0] > self.window:
            self._ticks.popleft()

    @property
    def fps(self) -> float:
        if len(self._ticks) < 2:
            return 0.0
        span = self._ticks[-1] - self._ticks[0]
        if span <= 0:
            return 0.0
        return (len(self._ticks) - 1) / span


def format_overlay(metrics: FrameMetrics, fps: float) -> str:
    return f"{metrics.milliseconds} ms {fps:.2f} fps"


def overlay_font_size(image: PIL.Image.Image) -> int:
    return max(10, int(round(min(image.size) * 0.028)))


@lru_cache(maxsize=8)
def load_overlay_font(target_size: int) -> PIL.ImageFont.ImageFont:
    for path in _FONT_CANDIDATES:
        font_path = Path(path)
        if font_path.exists():
            try:
                return PIL.ImageFont.truetype(str(font_path), target_size)
            except OSError:
                continue
    return PIL.ImageFont.load_default()


def annotate_frame(pixels: np.ndarray, text: str) -> np.ndarray:
    """Composite ``pixels`` over black and print ``text`` in the top-left corner.

    Returns a new opaque RGBA array; ``pixels`` is left untouched.
    """

    frame = PIL.Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
    image = PIL.Image.new("RGBA", frame.size, BACKGROUND)
    image.alpha_composite(frame)

    if text:
        draw = PIL.ImageDraw.Draw(image, "RGBA")
        font = load_overlay_font(overlay_font_size(image))
        draw.text((3, 3), text, font=font, fill=SHADOW_COLOR)
        draw.text((2, 2), text, font=font, fill=TEXT_COLOR)

    return np.array(image, dtype=np.uint8, copy=True)


class ZoomAnimation:
    """Drive one render per display tick and advance the zoom between ticks."""

    def __init__(
        self,
        renderer: FieldRenderer,
        schedule: Optional[ZoomSchedule] = None,
        *,
        overlay: bool = True,
    ) -> None:
        self.renderer = renderer
        self.schedule = schedule if schedule is not None else ZoomSchedule()
        self.overlay = overlay
        self.view: ViewWindow = self.schedule.initial_view()
        self.fps = FpsCounter()
        self.frames_rendered = 0

    @property
    def metrics(self) -> FrameMetrics:
        return self.renderer.metrics

    def step(self, present: bool = True) -> Optional[np.ndarray]:
        """Render the current view, advance the zoom and return the image to show.

        With ``present=False`` the frame is only computed and nothing is returned.
        """

        pixels, metrics = self.renderer.render_frame(self.view)
        self.view = self.schedule.advance(self.view)
        self.frames_rendered += 1
        self.fps.tick()
        if not present:
            return None
        text = format_overlay(metrics, self.fps.fps) if self.overlay else ""
        return annotate_frame(pixels, text)
