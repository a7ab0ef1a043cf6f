# depth_analyzer/config.py
"""
Central configuration for depth_analyzer.

Module-level constants are the defaults; an optional YAML file and the
command line override them (in that order).
"""
from pathlib import Path

import yaml

from .errors import ConfigError

# --- Proximity Configuration ---

# Which channel(s) mark a pixel as "near":
# "RED":   R >= threshold (typical for inferno/magma depth colormaps)
# "WHITE": R, G and B >= threshold (grayscale depth maps)
DEFAULT_COLOR = "RED"
DEFAULT_THRESHOLD = 150
COLOR_MODES = ("RED", "WHITE")


# --- Decision Configuration ---

# Set the active decision policy:
# "RATIO":   FORWARD / RIGHT / LEFT / STOP from per-band near ratios (default)
# "REDUCED": NIL / RIGHT / LEFT, same comparisons without STOP
# "BINARY":  NIL / RIGHT / LEFT / STOP from per-band danger flags
DECISION_MODE = "RATIO"
DECISION_MODES = ("RATIO", "REDUCED", "BINARY")

# Every band at or above this near ratio => STOP (RATIO policy)
STOP_RATIO = 0.5
# A band at or above this near ratio counts as dangerous (BINARY policy)
DANGER_CUTOFF = 0.5


# --- Ingestion Configuration ---

SUPPORTED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}

# Seconds to sleep between directory polls in watch mode. 0 = spin.
WATCH_POLL_INTERVAL = 0.5
# What to do when a watched file cannot be decoded: "SKIP" or "ABORT"
WATCH_ON_ERROR = "SKIP"
ERROR_POLICIES = ("SKIP", "ABORT")
# Re-analyse every listed file on every poll instead of once per file version
WATCH_REPROCESS = False

# Row chunks scanned in parallel by the sector accumulator
DEFAULT_WORKERS = 1


# Keys accepted in a YAML config file (mirrors the CLI option names)
CONFIG_KEYS = {
    "color",
    "threshold",
    "decision",
    "poll_interval",
    "on_error",
    "reprocess",
    "workers",
    "out_dir",
    "telemetry",
}


def parse_color(token):
    """Case-insensitive RED / WHITE token -> canonical upper-case name."""
    if not isinstance(token, str) or token.strip().upper() not in COLOR_MODES:
        raise ConfigError(
            f"Please specify either RED or WHITE as a proximity color (got {token!r})."
        )
    return token.strip().upper()


def parse_threshold(value):
    """Accepts ints or numeric strings in 0..255."""
    if isinstance(value, bool):
        raise ConfigError(f"Invalid threshold {value!r}: provide a value between 0 and 255.")
    if isinstance(value, str):
        value = value.strip()
    try:
        threshold = int(value)
    except (TypeError, ValueError):
        raise ConfigError(
            f"Invalid threshold {value!r}: provide a value between 0 and 255."
        ) from None
    if isinstance(value, float) and value != threshold:
        raise ConfigError(f"Invalid threshold {value!r}: provide a value between 0 and 255.")
    if not 0 <= threshold <= 255:
        raise ConfigError(f"Invalid threshold {threshold}: provide a value between 0 and 255.")
    return threshold


def parse_decision_mode(token):
    if not isinstance(token, str) or token.strip().upper() not in DECISION_MODES:
        raise ConfigError(
            f"Unknown decision mode {token!r}; expected one of {', '.join(DECISION_MODES)}."
        )
    return token.strip().upper()


def parse_error_policy(token):
    if not isinstance(token, str) or token.strip().upper() not in ERROR_POLICIES:
        raise ConfigError(
            f"Unknown error policy {token!r}; expected one of {', '.join(ERROR_POLICIES)}."
        )
    return token.strip().upper()


def load_config_file(path):
    """
    Reads a YAML mapping of option overrides.
    Values are validated here so bad files fail before any image is read.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level.")

    unknown = set(data) - CONFIG_KEYS
    if unknown:
        raise ConfigError(f"Unknown config keys in {path}: {', '.join(sorted(unknown))}")

    out = dict(data)
    if "color" in out:
        out["color"] = parse_color(out["color"])
    if "threshold" in out:
        out["threshold"] = parse_threshold(out["threshold"])
    if "decision" in out:
        out["decision"] = parse_decision_mode(out["decision"])
    if "on_error" in out:
        out["on_error"] = parse_error_policy(out["on_error"])
    if "poll_interval" in out:
        try:
            out["poll_interval"] = float(out["poll_interval"])
        except (TypeError, ValueError):
            raise ConfigError(f"poll_interval must be a number (got {out['poll_interval']!r})") from None
        if out["poll_interval"] < 0:
            raise ConfigError("poll_interval must be >= 0")
    if "workers" in out:
        if isinstance(out["workers"], bool) or not isinstance(out["workers"], int) or out["workers"] < 1:
            raise ConfigError(f"workers must be a positive integer (got {out['workers']!r})")
    if "reprocess" in out and not isinstance(out["reprocess"], bool):
        raise ConfigError(f"reprocess must be true or false (got {out['reprocess']!r})")
    return out
