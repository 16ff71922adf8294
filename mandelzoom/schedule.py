"""Utilities for stepping a Mandelbrot zoom from frame to frame."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterator, Optional

import numpy as np

from .renderer import ViewWindow

CENTER_X = -0.70
CENTER_Y = 0.25
INITIAL_SIZE = 2.0
SHRINK_FACTOR = 0.995


def advance(view: ViewWindow, shrink_factor: float = SHRINK_FACTOR) -> ViewWindow:
    """Return the view for the next frame; the center never moves."""

    size = np.float64(view.size) * np.float64(shrink_factor)
    return replace(view, size=float(size))


@dataclass(frozen=True)
class ZoomSchedule:
    """Constant-center zoom that shrinks the window by a fixed ratio per frame.

    ``reset_below`` bounds the zoom: once the size drops under it the
    schedule starts over from the initial view. ``None`` keeps shrinking
    forever.
    """

    center_x: float = CENTER_X
    center_y: float = CENTER_Y
    initial_size: float = INITIAL_SIZE
    shrink_factor: float = SHRINK_FACTOR
    reset_below: Optional[float] = None

    def initial_view(self) -> ViewWindow:
        return ViewWindow(center_x=self.center_x, center_y=self.center_y, size=self.initial_size)

    def advance(self, view: ViewWindow) -> ViewWindow:
        view = advance(view, self.shrink_factor)
        if self.reset_below is not None and view.size < self.reset_below:
            return self.initial_view()
        return view

    def size_after(self, frames: int) -> float:
        """Window size after ``frames`` unbounded steps."""

        return float(np.float64(self.initial_size) * np.float64(self.shrink_factor) ** frames)

    def views(self, count: Optional[int] = None) -> Iterator[ViewWindow]:
        view = self.initial_view()
        produced = 0
        while count is None or produced < count:
            yield view
            produced += 1
            view = self.advance(view)
