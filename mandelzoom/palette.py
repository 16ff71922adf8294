"""Indexed color palettes used to shade escape counts."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

import numpy as np

INSIDE_COLOR = (0, 0, 0, 0)


def plan9_colors() -> np.ndarray:
    """Return the 256-entry Plan 9 "rgbv" color map as an (N, 4) uint8 array.

    Entries are ordered by the Plan 9 index: four red levels, each split into
    four value bands of sixteen green/blue combinations. Greys fill the slots
    where every primary is zero.
    """

    colors = np.zeros((256, 4), dtype=np.uint8)
    for r in range(4):
        for v in range(4):
            base = 64 * r + 16 * v
            j = v - r
            for g in range(4):
                for b in range(4):
                    den = max(r, g, b)
                    if den == 0:
                        rgb = (0x11 * v, 0x11 * v, 0x11 * v)
                    else:
                        num = 17 * (4 * den + v)
                        rgb = (r * num // den, g * num // den, b * num // den)
                    colors[base + (j & 0x0F)] = (*rgb, 0xFF)
                    j += 1
    return colors


@dataclass(frozen=True, eq=False)
class Palette:
    """Read-only table of RGBA8 colors indexed by escape count."""

    colors: np.ndarray

    def __post_init__(self) -> None:
        colors = np.array(self.colors, dtype=np.uint8, copy=True).reshape(-1, 4)
        if not len(colors):
            raise ValueError("A palette needs at least one color.")
        colors.setflags(write=False)
        object.__setattr__(self, "colors", colors)

    def __len__(self) -> int:
        return len(self.colors)

    def color(self, count: int, max_iterations: int) -> tuple[int, int, int, int]:
        if count >= max_iterations:
            return INSIDE_COLOR
        return tuple(int(channel) for channel in self.colors[count % len(self.colors)])

    def colorize(self, counts: np.ndarray, max_iterations: int) -> np.ndarray:
        """Map escape counts to RGBA8 rows.

        Counts below ``max_iterations`` index the table modulo its length; the
        remaining points are inside the set and become transparent black.
        """

        counts = np.asarray(counts)
        rgba = self.colors[counts % len(self.colors)]
        rgba[counts >= max_iterations] = INSIDE_COLOR
        return rgba


@lru_cache(maxsize=None)
def default_palette() -> Palette:
    return Palette(plan9_colors())
