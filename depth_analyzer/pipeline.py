from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple

import numpy as np
from tqdm import tqdm

from . import config
from .decision import Decision, DecisionPolicy, get_policy
from .errors import ConfigError, ImageDecodeError, MissingImageError
from .imaging import as_rgba, is_supported, load_image
from .proximity import ProximityConfig
from .sectors import accumulate
from .telemetry import TelemetryClient
from .utils import setup_logger
from .viz import save_debug

log = setup_logger(__name__)


def classify(
    image: Optional[np.ndarray],
    proximity: ProximityConfig,
    policy: Optional[DecisionPolicy] = None,
    workers: int = config.DEFAULT_WORKERS,
) -> Decision:
    """
    Already-decoded pixels -> band tally -> instruction.
    A fresh tally is built on every call; nothing is shared between images.
    """
    if image is None:
        raise MissingImageError()
    policy = policy or get_policy()

    start = time.perf_counter()
    tally = accumulate(as_rgba(image), proximity, workers=workers)
    decision = policy.evaluate(tally)
    decision.latency_ms = (time.perf_counter() - start) * 1000.0
    return decision


def _publish(
    path: Path,
    rgba: np.ndarray,
    decision: Decision,
    out_dir: Optional[Path],
    telemetry: Optional[TelemetryClient],
):
    if out_dir is not None:
        out_dir.mkdir(parents=True, exist_ok=True)
        target = out_dir / f"{path.stem}_debug.png"
        if not save_debug(target, rgba, decision):
            log.warning(f"Could not write debug overlay for {path.name}")
    if telemetry is not None and telemetry.enabled:
        telemetry.record_classification(decision, source=str(path))


def classify_file(
    path,
    proximity: ProximityConfig,
    policy: Optional[DecisionPolicy] = None,
    workers: int = config.DEFAULT_WORKERS,
    out_dir: Optional[Path] = None,
    telemetry: Optional[TelemetryClient] = None,
) -> Decision:
    """Decodes `path` and classifies it. Raises ImageDecodeError on bad files."""
    path = Path(path)
    rgba = load_image(path)
    decision = classify(rgba, proximity, policy, workers=workers)
    log.debug(f"{path.name}: {decision.cmd} | {decision.reason} | {decision.latency_ms:.1f}ms")
    _publish(path, rgba, decision, Path(out_dir) if out_dir else None, telemetry)
    return decision


def run_single(
    path,
    proximity: ProximityConfig,
    policy: Optional[DecisionPolicy] = None,
    workers: int = config.DEFAULT_WORKERS,
    out_dir: Optional[Path] = None,
    telemetry: Optional[TelemetryClient] = None,
) -> Decision:
    """Single-shot mode. A missing image is reported distinctly from an empty one."""
    if path is None:
        raise MissingImageError()
    return classify_file(path, proximity, policy, workers, out_dir, telemetry)


def _iter_supported(directory: Path) -> List[Path]:
    files = []
    for p in sorted(directory.iterdir()):
        if not p.is_file():
            continue
        if not is_supported(p):
            log.debug(f"Skipping unsupported entry: {p.name}")
            continue
        files.append(p)
    return files


def _same_dir(a: Path, b: Path) -> bool:
    return a.resolve() == b.resolve()


def _handle_decode_error(err: ImageDecodeError, on_error: str):
    if on_error == "ABORT":
        log.error(f"{err}; aborting")
        raise err
    log.error(f"{err}; skipping")


def run_batch(
    directory,
    proximity: ProximityConfig,
    policy: Optional[DecisionPolicy] = None,
    on_error: str = config.WATCH_ON_ERROR,
    workers: int = config.DEFAULT_WORKERS,
    out_dir: Optional[Path] = None,
    telemetry: Optional[TelemetryClient] = None,
    progress: bool = True,
) -> Iterator[Tuple[Path, Decision]]:
    """One pass over the supported images of `directory`, sorted by name."""
    directory = Path(directory)
    if not directory.is_dir():
        raise ConfigError(f"Not a directory: {directory}")
    on_error = config.parse_error_policy(on_error)
    policy = policy or get_policy()

    files = _iter_supported(directory)
    log.info(f"Batch: {len(files)} image(s) in {directory}")
    for p in tqdm(files, desc="Classifying", unit="img", disable=not progress):
        try:
            decision = classify_file(p, proximity, policy, workers, out_dir, telemetry)
        except ImageDecodeError as e:
            _handle_decode_error(e, on_error)
            continue
        yield p, decision


class DirectoryWatcher:
    """
    Watch mode: polls a directory and classifies every supported image it lists.

    POLLING -> (entries listed) -> PROCESSING_BATCH -> POLLING ...

    - poll_interval: seconds slept after every poll (0 spins like a busy-wait).
    - reprocess: False classifies each file once per (name, mtime, size);
      True re-analyses every listed file on every poll.
    - on_error: "SKIP" logs a decode failure and moves on, "ABORT" re-raises.
    """

    def __init__(
        self,
        directory,
        proximity: ProximityConfig,
        policy: Optional[DecisionPolicy] = None,
        poll_interval: float = config.WATCH_POLL_INTERVAL,
        on_error: str = config.WATCH_ON_ERROR,
        reprocess: bool = config.WATCH_REPROCESS,
        emit: Callable[[str], None] = print,
        workers: int = config.DEFAULT_WORKERS,
        out_dir: Optional[Path] = None,
        telemetry: Optional[TelemetryClient] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.directory = Path(directory)
        if not self.directory.is_dir():
            raise ConfigError(f"Watch directory does not exist: {self.directory}")
        if poll_interval < 0:
            raise ConfigError("poll_interval must be >= 0")
        self.proximity = proximity
        self.policy = policy or get_policy()
        self.poll_interval = poll_interval
        self.on_error = config.parse_error_policy(on_error)
        self.reprocess = reprocess
        self.emit = emit
        self.workers = workers
        self.out_dir = Path(out_dir) if out_dir else None
        if self.out_dir is not None and _same_dir(self.out_dir, self.directory):
            raise ConfigError(
                f"Debug output directory {self.out_dir} is the watched directory {self.directory}; "
                "overlays would be classified as new images"
            )
        self.telemetry = telemetry
        self._sleep = sleep
        self._seen: Dict[str, Tuple[int, int]] = {}
        self.polls = 0

    def _identity(self, p: Path) -> Optional[Tuple[int, int]]:
        try:
            st = p.stat()
        except FileNotFoundError:
            return None
        return st.st_mtime_ns, st.st_size

    def poll(self) -> List[Tuple[Path, Decision]]:
        """One PROCESSING_BATCH pass over the current listing."""
        self.polls += 1
        results = []
        listed = {}
        for p in _iter_supported(self.directory):
            ident = self._identity(p)
            if ident is None:
                continue  # removed since listing
            listed[p.name] = ident
            if not self.reprocess and self._seen.get(p.name) == ident:
                continue
            self._seen[p.name] = ident
            try:
                decision = classify_file(
                    p, self.proximity, self.policy, self.workers, self.out_dir, self.telemetry
                )
            except ImageDecodeError as e:
                _handle_decode_error(e, self.on_error)
                continue
            self.emit(f"{p.name}: {decision.cmd}")
            results.append((p, decision))

        # forget files that are gone so a re-created file is classified again
        self._seen = {name: ident for name, ident in self._seen.items() if name in listed}
        return results

    def run(self, max_polls: Optional[int] = None) -> int:
        """
        Polls until interrupted (or `max_polls` polls have run).
        Returns the number of polls.
        """
        log.info(
            f"Watching {self.directory} every {self.poll_interval:.2f}s "
            f"(policy={self.policy.name}, on_error={self.on_error}, reprocess={self.reprocess})"
        )
        while max_polls is None or self.polls < max_polls:
            self.poll()
            if self.poll_interval > 0:
                self._sleep(self.poll_interval)
        return self.polls
