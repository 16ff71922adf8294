"""Rendering primitives for Mandelbrot zoom frames."""

from __future__ import annotations

import os
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .kernel import MAX_ITERATIONS, iterate, iterate_row, iterate_tensor
from .palette import Palette, default_palette

WIDTH = 500
HEIGHT = 500
BACKENDS = ("numpy", "python", "tensorflow")


@dataclass(frozen=True)
class ViewWindow:
    """Square region of the complex plane sampled into the pixel grid."""

    center_x: float
    center_y: float
    size: float


@dataclass(frozen=True)
class FrameMetrics:
    """Timing of the most recent frame, in seconds."""

    last_frame_duration: float

    @property
    def milliseconds(self) -> int:
        return int(self.last_frame_duration * 1000)


def row_coordinates(view: ViewWindow, row: int, width: int, height: int) -> tuple[np.ndarray, np.ndarray]:
    """Complex-plane samples for every pixel of ``row``.

    Row 0 is the top of the window: the imaginary axis is flipped so that
    larger rows map to smaller imaginary parts.
    """

    size = np.float64(view.size)
    columns = np.arange(width, dtype=np.float64)
    real = columns * size / width - size / 2 + np.float64(view.center_x)
    imag = (height - np.float64(row)) * size / height - size / 2 + np.float64(view.center_y)
    return real, np.full(width, imag, dtype=np.float64)


class FieldRenderer:
    """Compute whole frames of escape-time colors, one thread task per row."""

    def __init__(
        self,
        width: int = WIDTH,
        height: int = HEIGHT,
        *,
        max_iterations: int = MAX_ITERATIONS,
        palette: Optional[Palette] = None,
        workers: Optional[int] = None,
        backend: str = "numpy",
        device: Optional[str] = None,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive.")
        if max_iterations <= 0:
            raise ValueError("max_iterations must be positive.")
        if backend not in BACKENDS:
            raise ValueError(f"Unknown backend '{backend}'. Valid choices: {', '.join(BACKENDS)}.")
        workers = workers if workers is not None else (os.cpu_count() or 1)
        if workers <= 0:
            raise ValueError("workers must be at least 1.")

        self.width = int(width)
        self.height = int(height)
        self.max_iterations = int(max_iterations)
        self.palette = palette if palette is not None else default_palette()
        self.workers = int(workers)
        self.backend = backend
        self.device = device

        self.pixels = np.zeros((self.height, self.width, 4), dtype=np.uint8)
        self.metrics = FrameMetrics(last_frame_duration=0.0)
        self._pool: Optional[ThreadPoolExecutor] = ThreadPoolExecutor(
            max_workers=self.workers, thread_name_prefix="mandelzoom-row"
        )

    def __enter__(self) -> "FieldRenderer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None

    def escape_counts(self, view: ViewWindow, row: int) -> np.ndarray:
        real, imag = row_coordinates(view, row, self.width, self.height)
        if self.backend == "numpy":
            return iterate_row(real, imag, self.max_iterations)
        if self.backend == "tensorflow":
            return iterate_tensor(real, imag, self.max_iterations, device=self.device)
        return np.array(
            [iterate(float(re), float(im), self.max_iterations) for re, im in zip(real, imag)],
            dtype=np.int32,
        )

    def render_row(self, view: ViewWindow, row: int) -> None:
        """Compute and store the colors of a single row.

        Only ``self.pixels[row]`` is written, so rows can run concurrently
        without locking.
        """

        counts = self.escape_counts(view, row)
        self.pixels[row] = self.palette.colorize(counts, self.max_iterations)

    def render_frame(self, view: ViewWindow) -> tuple[np.ndarray, FrameMetrics]:
        """Render every row of ``view`` and wait for all of them.

        The returned buffer is owned by the renderer and is overwritten by the
        next call; copy it to keep a frame around.
        """

        if self._pool is None:
            raise RuntimeError("render_frame called on a closed renderer.")

        start = time.perf_counter()
        futures = [self._pool.submit(self.render_row, view, row) for row in range(self.height)]
        wait(futures)
        for future in futures:
            future.result()
        self.metrics = FrameMetrics(last_frame_duration=time.perf_counter() - start)
        return self.pixels, self.metrics
