from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image


def make_image(h: int = 30, w: int = 30, value: int = 0) -> np.ndarray:
    img = np.full((h, w, 4), value, dtype=np.uint8)
    img[..., 3] = 255
    return img


def make_banded(values, h: int = 30, band_w: int = 10) -> np.ndarray:
    """Three equal bands filled with the given (left, center, right) gray levels."""
    img = make_image(h, band_w * 3)
    for i, v in enumerate(values):
        img[:, i * band_w:(i + 1) * band_w, :3] = v
    return img


def write_png(path: Path, rgba: np.ndarray) -> Path:
    Image.fromarray(rgba, "RGBA").save(path)
    return path
