"""
Depth Analyzer

Turns a depth-annotated image (brightness = proximity) into one navigation
instruction: FORWARD, RIGHT, LEFT or STOP.
"""

__version__ = "0.2.0"

from .decision import Decision, DecisionPolicy, Instruction, get_policy, ratios
from .errors import AnalyzerError, ConfigError, ImageDecodeError, MissingImageError
from .pipeline import DirectoryWatcher, classify, classify_file, run_batch, run_single
from .proximity import ColorMode, ProximityConfig, is_near
from .sectors import SectorTally, accumulate, band_bounds
