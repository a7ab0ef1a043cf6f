from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np

from . import config


class ColorMode(str, Enum):
    RED = "RED"
    WHITE = "WHITE"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ProximityConfig:
    """
    Which pixels count as "near" in a depth-annotated image.
    - color_mode: RED checks the red channel only, WHITE checks R, G and B.
    - threshold: a channel must be >= this value (0..255).
    Invalid values are rejected here so the scan never sees them.
    """
    color_mode: ColorMode = ColorMode(config.DEFAULT_COLOR)
    threshold: int = config.DEFAULT_THRESHOLD

    def __post_init__(self):
        mode = self.color_mode
        if not isinstance(mode, ColorMode):
            mode = ColorMode(config.parse_color(mode))
        object.__setattr__(self, "color_mode", mode)
        object.__setattr__(self, "threshold", config.parse_threshold(self.threshold))

    @classmethod
    def from_options(cls, color: str | None = None, threshold=None) -> "ProximityConfig":
        return cls(
            color_mode=color if color is not None else config.DEFAULT_COLOR,
            threshold=threshold if threshold is not None else config.DEFAULT_THRESHOLD,
        )


def is_near(pixel, threshold: int, mode: ColorMode) -> bool:
    """pixel: (R, G, B[, A]) channel values."""
    if mode is ColorMode.RED:
        return pixel[0] >= threshold
    return pixel[0] >= threshold and pixel[1] >= threshold and pixel[2] >= threshold


def near_mask(rgba: np.ndarray, proximity: ProximityConfig) -> np.ndarray:
    """
    Vectorised is_near over an HxWx(3|4) uint8 array.
    Returns an HxW bool mask.
    """
    t = proximity.threshold
    if proximity.color_mode is ColorMode.RED:
        return rgba[..., 0] >= t
    return (rgba[..., 0] >= t) & (rgba[..., 1] >= t) & (rgba[..., 2] >= t)
