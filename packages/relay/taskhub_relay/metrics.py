"""
Relay counters and gauges in Prometheus text format.
"""

from __future__ import annotations

import time
from collections import defaultdict
from typing import Any

PREFIX = "relay_"

_Key = tuple[str, tuple[tuple[str, str], ...]]


def _key(name: str, labels: dict[str, Any]) -> _Key:
    return PREFIX + name, tuple(sorted((k, str(v)) for k, v in labels.items()))


def _render(key: _Key) -> str:
    name, labels = key
    if not labels:
        return name
    inner = ",".join(f'{k}="{v}"' for k, v in labels)
    return f"{name}{{{inner}}}"


class MetricsCollector:
    """
    In-process metrics with optional labels.

    ``inc("events_forwarded_total", event="typing")`` is exported as
    ``relay_events_forwarded_total{event="typing"}``.
    """

    def __init__(self) -> None:
        self._counters: dict[_Key, int] = defaultdict(int)
        self._gauges: dict[_Key, float] = {}
        self._start_time = time.time()

    @property
    def uptime_seconds(self) -> float:
        return time.time() - self._start_time

    def inc(self, name: str, value: int = 1, **labels: Any) -> None:
        self._counters[_key(name, labels)] += value

    def set_gauge(self, name: str, value: float, **labels: Any) -> None:
        self._gauges[_key(name, labels)] = value

    def get(self, name: str, **labels: Any) -> int | float:
        key = _key(name, labels)
        if key in self._gauges:
            return self._gauges[key]
        return self._counters.get(key, 0)

    def to_prometheus(self) -> str:
        lines = []
        for kind, series in (("counter", self._counters), ("gauge", self._gauges)):
            typed: set[str] = set()
            for key in sorted(series):
                if key[0] not in typed:
                    lines.append(f"# TYPE {key[0]} {kind}")
                    typed.add(key[0])
                lines.append(f"{_render(key)} {series[key]}")
        lines.append(f"# TYPE {PREFIX}uptime_seconds gauge")
        lines.append(f"{PREFIX}uptime_seconds {self.uptime_seconds:.1f}")
        return "\n".join(lines) + "\n"
