import cv2
import numpy as np

from .decision import Decision
from .sectors import band_bounds


def draw_debug(rgba: np.ndarray, decision: Decision) -> np.ndarray:
    """Band boundaries, per-band ratios and the instruction over a BGR copy."""
    out = cv2.cvtColor(np.ascontiguousarray(rgba[..., :4]), cv2.COLOR_RGBA2BGR)
    h, w = out.shape[:2]
    if h == 0 or w == 0:
        return out

    b1, b2 = band_bounds(w)
    for x in (b1, b2):
        cv2.line(out, (x, 0), (x, h - 1), (0, 255, 255), 1)

    scale = max(0.4, min(1.0, w / 640.0))
    for x0, ratio in ((0, decision.left), (b1, decision.center), (b2, decision.right)):
        cv2.putText(out, f"{ratio:.2f}", (x0 + 4, h - 8), cv2.FONT_HERSHEY_SIMPLEX, scale, (0, 255, 0), 1, cv2.LINE_AA)

    cv2.putText(out, str(decision.cmd), (8, int(24 * scale) + 4), cv2.FONT_HERSHEY_SIMPLEX, scale, (255, 0, 255), 2, cv2.LINE_AA)
    return out


def save_debug(path, rgba: np.ndarray, decision: Decision) -> bool:
    if rgba.size == 0:
        return False
    return bool(cv2.imwrite(str(path), draw_debug(rgba, decision)))
