from __future__ import annotations

import cv2
import numpy as np

from depth_analyzer.decision import Instruction
from depth_analyzer.pipeline import classify
from depth_analyzer.proximity import ColorMode, ProximityConfig
from depth_analyzer.viz import draw_debug

CFG = ProximityConfig(ColorMode.RED, 150)


def make_depth_scene(h: int = 60, w: int = 90) -> np.ndarray:
    """Far background (0) as an 8-bit depth map; bright = near."""
    return np.zeros((h, w), dtype=np.uint8)


def colorize(depth_u8: np.ndarray) -> np.ndarray:
    """Inferno colormap, like a monocular depth model's preview output, as RGB."""
    bgr = cv2.applyColorMap(depth_u8, cv2.COLORMAP_INFERNO)
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def test_obstacle_in_center_steers_right():
    depth = make_depth_scene()
    cv2.rectangle(depth, (30, 0), (59, 59), 255, -1)
    decision = classify(colorize(depth), CFG)
    assert decision.ratios == (0.0, 1.0, 0.0)
    assert decision.cmd is Instruction.RIGHT


def test_wall_on_right_and_center_steers_left():
    depth = make_depth_scene()
    cv2.rectangle(depth, (30, 0), (89, 59), 255, -1)
    decision = classify(colorize(depth), CFG)
    assert decision.cmd is Instruction.LEFT


def test_small_obstacle_left_keeps_forward():
    depth = make_depth_scene()
    cv2.circle(depth, (15, 30), 10, 255, -1)
    decision = classify(colorize(depth), CFG)
    assert 0.0 < decision.left < 0.5
    assert decision.cmd is Instruction.FORWARD


def test_close_wall_everywhere_stops():
    depth = make_depth_scene()
    depth[:] = 255
    decision = classify(colorize(depth), CFG)
    assert decision.cmd is Instruction.STOP


def test_debug_overlay_keeps_image_size():
    depth = make_depth_scene()
    cv2.rectangle(depth, (30, 0), (59, 59), 255, -1)
    rgb = colorize(depth)
    decision = classify(rgb, CFG)
    rgba = np.dstack([rgb, np.full(rgb.shape[:2], 255, dtype=np.uint8)])
    vis = draw_debug(rgba, decision)
    assert vis.shape == (60, 90, 3)
    assert vis.dtype == np.uint8
