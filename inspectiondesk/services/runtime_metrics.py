from __future__ import annotations

import threading


class _Metrics:
    """Process-local counters, exposed as text by routers/metrics.py."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, int] = {}

    def inc(self, name: str, n: int = 1) -> None:
        with self._lock:
            self._counters[name] = int(self._counters.get(name, 0)) + int(n)

    def get(self, name: str) -> int:
        with self._lock:
            return int(self._counters.get(name, 0))

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counters)

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()

    def render_text(self) -> str:
        # Prometheus text-ish format, sorted for stable scrapes
        lines = [f"inspectiondesk_{k} {v}" for k, v in sorted(self.snapshot().items())]
        return "\n".join(lines) + "\n"


METRICS = _Metrics()
