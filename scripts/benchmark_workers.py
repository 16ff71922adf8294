from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Iterable

import numpy as np

from mandelzoom import FieldRenderer, ZoomSchedule

FRAMES = 5


@dataclass
class Case:
    backend: str
    workers: int


CASES: list[Case] = [
    Case("numpy", 1),
    Case("numpy", 4),
    Case("numpy", 16),
    Case("tensorflow", 1),
    Case("tensorflow", 8),
]


def _bench(case: Case, views: Iterable) -> tuple[float, list[np.ndarray]]:
    frames: list[np.ndarray] = []
    start = time.perf_counter()
    with FieldRenderer(workers=case.workers, backend=case.backend) as renderer:
        for view in views:
            pixels, _ = renderer.render_frame(view)
            frames.append(pixels.copy())
    return (time.perf_counter() - start) / max(len(frames), 1), frames


def main() -> None:
    views = list(ZoomSchedule().views(FRAMES))
    reference: list[np.ndarray] | None = None
    for case in CASES:
        mean, frames = _bench(case, views)
        print(f"[benchmark] {case.backend:<10} workers={case.workers:<3} {mean * 1000:8.1f} ms/frame")
        if reference is None:
            reference = frames
        elif not all(np.array_equal(a, b) for a, b in zip(reference, frames)):
            raise RuntimeError(f"{case.backend} with {case.workers} workers produced different pixels")
    print("\nAll cases produced identical frames.")


if __name__ == "__main__":
    main()
