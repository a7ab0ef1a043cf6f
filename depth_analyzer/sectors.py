from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

from .errors import MissingImageError
from .proximity import ProximityConfig, near_mask

BANDS = ("left", "center", "right")


def band_bounds(width: int) -> Tuple[int, int]:
    """
    Column boundaries of the three vertical bands.
    left = [0, b1), center = [b1, b2), right = [b2, width).
    Integer division as in `x < w/3` / `x < 2*w/3`, so narrow images
    (w < 3) leave the left (and for w == 1 the center) band empty.
    """
    return width // 3, (2 * width) // 3


@dataclass
class SectorTally:
    """
    Each band of the image has a **near pixel** and a **total pixel** count.
    A near pixel is one accepted by the proximity predicate.
    """
    left: Tuple[int, int] = (0, 0)
    center: Tuple[int, int] = (0, 0)
    right: Tuple[int, int] = (0, 0)
    width: int = 0
    height: int = 0
    bounds: Tuple[int, int] = field(default=(0, 0))

    @property
    def total(self) -> int:
        return self.left[1] + self.center[1] + self.right[1]

    @property
    def near(self) -> int:
        return self.left[0] + self.center[0] + self.right[0]

    def band(self, name: str) -> Tuple[int, int]:
        return getattr(self, name)

    def merge(self, other: "SectorTally") -> "SectorTally":
        """Reduction step for row chunks of the same image."""
        return SectorTally(
            left=(self.left[0] + other.left[0], self.left[1] + other.left[1]),
            center=(self.center[0] + other.center[0], self.center[1] + other.center[1]),
            right=(self.right[0] + other.right[0], self.right[1] + other.right[1]),
            width=max(self.width, other.width),
            height=self.height + other.height,
            bounds=other.bounds if other.width else self.bounds,
        )

    def as_dict(self) -> dict:
        return {name: {"near": self.band(name)[0], "total": self.band(name)[1]} for name in BANDS}


def _tally_rows(rgba: np.ndarray, proximity: ProximityConfig) -> SectorTally:
    h, w = rgba.shape[:2]
    b1, b2 = band_bounds(w)
    mask = near_mask(rgba, proximity)

    def count(x0: int, x1: int) -> Tuple[int, int]:
        return int(np.count_nonzero(mask[:, x0:x1])), h * (x1 - x0)

    return SectorTally(
        left=count(0, b1),
        center=count(b1, b2),
        right=count(b2, w),
        width=w,
        height=h,
        bounds=(b1, b2),
    )


def accumulate(rgba: np.ndarray, proximity: ProximityConfig, workers: int = 1) -> SectorTally:
    """
    Scans every pixel once and tallies (near, total) per band.

    rgba: HxWx(3|4) uint8 array (see imaging.as_rgba)
    workers: >1 splits the rows into chunks scanned on a thread pool and
             merged afterwards; the result is identical to workers=1.
    """
    if rgba is None:
        raise MissingImageError()
    if rgba.ndim != 3 or rgba.shape[2] < 3:
        raise ValueError(f"expected an HxWx3 or HxWx4 pixel array, got shape {rgba.shape}")

    h, w = rgba.shape[:2]
    if workers <= 1 or h < 2:
        return _tally_rows(rgba, proximity)

    chunks = np.array_split(rgba, min(workers, h), axis=0)
    with ThreadPoolExecutor(max_workers=len(chunks)) as pool:
        partials = list(pool.map(lambda c: _tally_rows(c, proximity), chunks))

    tally = SectorTally(width=w, bounds=band_bounds(w))
    for part in partials:
        tally = tally.merge(part)
    return tally
