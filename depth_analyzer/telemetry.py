from __future__ import annotations

import json
import os
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib import request

from .decision import Decision
from .utils import setup_logger

log = setup_logger(__name__)


class TelemetryClient:
    """
    Minimal, optional telemetry sink for classification results.
    - Appends JSONL to a local file when `log_path` is given.
    - Optionally POSTs to an HTTP endpoint if DEPTH_ANALYZER_TELEMETRY_URL is set.
    """

    def __init__(
        self,
        endpoint_url: Optional[str] = None,
        log_path: Optional[str | Path] = None,
        timeout: float = 0.5,
    ):
        self.endpoint_url = endpoint_url or os.getenv("DEPTH_ANALYZER_TELEMETRY_URL")
        self.log_path = Path(log_path) if log_path else None
        self.timeout = timeout
        self._pending: List[threading.Thread] = []

    @property
    def enabled(self) -> bool:
        return bool(self.endpoint_url or self.log_path)

    def record_classification(self, decision: Decision, source: Optional[str] = None):
        payload = {
            "ts": time.time(),
            "type": "classification",
            "source": source,
            "instruction": str(decision.cmd),
            "policy": decision.policy,
            "left": float(decision.left),
            "center": float(decision.center),
            "right": float(decision.right),
            "latency_ms": float(decision.latency_ms),
        }
        if decision.tally is not None:
            payload["tally"] = decision.tally.as_dict()
        self._emit(payload)

    def _emit(self, payload: Dict[str, Any]):
        if self.log_path:
            try:
                self.log_path.parent.mkdir(parents=True, exist_ok=True)
                with self.log_path.open("a", encoding="utf-8") as f:
                    f.write(json.dumps(payload) + "\n")
            except OSError as e:
                log.debug(f"Telemetry write failed: {e}")

        if self.endpoint_url:
            thread = threading.Thread(target=self._post, args=(payload,), daemon=True)
            thread.start()
            self._pending = [t for t in self._pending if t.is_alive()]
            self._pending.append(thread)

    def flush(self, timeout: Optional[float] = None):
        """Waits for in-flight POSTs so a short run does not drop them."""
        timeout = self.timeout * 2 if timeout is None else timeout
        for thread in self._pending:
            thread.join(timeout)
        self._pending = [t for t in self._pending if t.is_alive()]

    def _post(self, payload: Dict[str, Any]):
        try:
            data = json.dumps(payload).encode("utf-8")
            req = request.Request(
                self.endpoint_url,
                data=data,
                headers={"Content-Type": "application/json"},
                method="POST",
            )
            request.urlopen(req, timeout=self.timeout)
        except Exception as e:
            # Telemetry failures should never break classification.
            log.debug(f"Telemetry POST failed: {e}")
