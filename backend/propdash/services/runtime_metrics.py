# backend/propdash/services/runtime_metrics.py
from __future__ import annotations

import threading


class _Metrics:
    """Process-local counters (engine runs, rejected rows). Reset on restart."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, int] = {}

    def inc(self, name: str, n: int = 1) -> None:
        if not n:
            return
        with self._lock:
            self._counters[name] = int(self._counters.get(name, 0)) + int(n)

    def get(self, name: str) -> int:
        with self._lock:
            return int(self._counters.get(name, 0))

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(sorted(self._counters.items()))

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()


METRICS = _Metrics()
