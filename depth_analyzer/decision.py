from __future__ import annotations

import abc
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from . import config
from .errors import ConfigError
from .sectors import SectorTally
from .utils import setup_logger

log = setup_logger(__name__)


class Instruction(str, Enum):
    FORWARD = "FORWARD"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    STOP = "STOP"
    NIL = "NIL"

    def __str__(self) -> str:
        return self.value


@dataclass
class Decision:
    cmd: Instruction          # FORWARD | LEFT | RIGHT | STOP (| NIL for reduced/binary)
    left: float               # near ratio per band, 0..1
    center: float
    right: float
    reason: str               # human-readable reason
    policy: str = config.DECISION_MODE
    tally: Optional[SectorTally] = None
    latency_ms: float = 0.0

    @property
    def ratios(self) -> Tuple[float, float, float]:
        return self.left, self.center, self.right


def ratios(tally: SectorTally) -> Tuple[float, float, float]:
    """
    Ratio of near pixels versus total pixels for each band.
    A band with no pixels (zero-size image, or width < 3) has ratio 0.0.
    """
    def ratio(band: Tuple[int, int]) -> float:
        near, total = band
        return near / total if total else 0.0

    return ratio(tally.left), ratio(tally.center), ratio(tally.right)


class DecisionPolicy(abc.ABC):
    """Reduces three per-band near ratios to one instruction."""

    name = "BASE"

    @abc.abstractmethod
    def decide(self, left: float, center: float, right: float) -> Instruction:
        pass

    def explain(self, cmd: Instruction, left: float, center: float, right: float) -> str:
        return f"{cmd} (L={left:.2f} C={center:.2f} R={right:.2f})"

    def evaluate(self, tally: SectorTally) -> Decision:
        left, center, right = ratios(tally)
        cmd = self.decide(left, center, right)
        return Decision(
            cmd=cmd,
            left=left,
            center=center,
            right=right,
            reason=self.explain(cmd, left, center, right),
            policy=self.name,
            tally=tally,
        )


class RatioPolicy(DecisionPolicy):
    """
    Four-state rule, first match wins:
      1. every band >= stop_ratio            -> STOP
      2. center <= right and center <= left  -> FORWARD
      3. right < center and right <= left    -> RIGHT
      4. otherwise                           -> LEFT
    The `<` / `<=` mix is the tie-break: FORWARD, then RIGHT, then LEFT.
    """

    name = "RATIO"

    def __init__(self, stop_ratio: float = config.STOP_RATIO):
        self.stop_ratio = stop_ratio

    def decide(self, left: float, center: float, right: float) -> Instruction:
        if left >= self.stop_ratio and center >= self.stop_ratio and right >= self.stop_ratio:
            return Instruction.STOP
        elif center <= right and center <= left:
            return Instruction.FORWARD
        elif right < center and right <= left:
            return Instruction.RIGHT
        else:
            return Instruction.LEFT

    def explain(self, cmd, left, center, right):
        if cmd is Instruction.STOP:
            why = f"all bands >= {self.stop_ratio:.2f}"
        elif cmd is Instruction.FORWARD:
            why = "center is the clearest band"
        elif cmd is Instruction.RIGHT:
            why = "right is clearer than center"
        else:
            why = "left is the clearest band"
        return f"{why} (L={left:.2f} C={center:.2f} R={right:.2f})"


class ReducedRatioPolicy(DecisionPolicy):
    """Three-state rule without STOP; NIL means "no obstacle ahead"."""

    name = "REDUCED"

    def decide(self, left: float, center: float, right: float) -> Instruction:
        if center <= right and center <= left:
            return Instruction.NIL
        elif right < center and right <= left:
            return Instruction.RIGHT
        return Instruction.LEFT


class BinaryPolicy(DecisionPolicy):
    """
    Danger flags instead of ratios: a band is dangerous when its ratio
    reaches `cutoff`. Precedence: center clear, right clear, left clear, STOP.
    """

    name = "BINARY"

    def __init__(self, cutoff: float = config.DANGER_CUTOFF):
        self.cutoff = cutoff

    def decide(self, left: float, center: float, right: float) -> Instruction:
        if center < self.cutoff:
            return Instruction.NIL
        if right < self.cutoff:
            return Instruction.RIGHT
        if left < self.cutoff:
            return Instruction.LEFT
        return Instruction.STOP

    def explain(self, cmd, left, center, right):
        flags = "".join("X" if r >= self.cutoff else "." for r in (left, center, right))
        return f"{cmd} (danger L/C/R={flags}, cutoff={self.cutoff:.2f})"


def get_policy(mode: Optional[str] = None, **kwargs) -> DecisionPolicy:
    """
    Factory function to get the decision policy
    based on `mode` or the setting in config.py.
    """
    mode = (mode or config.DECISION_MODE).upper()
    log.debug(f"Decision policy: {mode}")

    if mode == "RATIO":
        return RatioPolicy(**kwargs)
    if mode == "REDUCED":
        return ReducedRatioPolicy()
    if mode == "BINARY":
        return BinaryPolicy(**kwargs)

    raise ConfigError(
        f"Unknown decision mode '{mode}'; expected one of {', '.join(config.DECISION_MODES)}."
    )
