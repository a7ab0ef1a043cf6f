# depth_analyzer/imaging.py
from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from . import config
from .errors import ImageDecodeError


def is_supported(path) -> bool:
    return Path(path).suffix.lower() in config.SUPPORTED_EXTENSIONS


def as_rgba(arr: np.ndarray) -> np.ndarray:
    """
    Normalises a decoded pixel grid to HxWx4 uint8.
    Grayscale is replicated to R, G, B; a missing alpha channel is opaque.
    """
    arr = np.asarray(arr)
    if arr.dtype != np.uint8:
        raise ValueError(f"expected uint8 pixels, got {arr.dtype}")
    if arr.ndim == 2:
        arr = np.repeat(arr[..., None], 3, axis=2)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"unsupported pixel array shape {arr.shape}")
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=2)
    return arr


def load_image(path) -> np.ndarray:
    """Decodes an image file into an HxWx4 RGBA uint8 array."""
    p = Path(path)
    if not p.is_file():
        raise ImageDecodeError(p, "no such file")
    try:
        with Image.open(p) as img:
            rgba = img.convert("RGBA")
            return np.array(rgba, dtype=np.uint8)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(p, str(e)) from e
