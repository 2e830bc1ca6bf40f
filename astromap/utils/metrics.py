from __future__ import annotations
import threading
import time
from typing import Dict, Callable
from functools import wraps

class Metrics:
    def __init__(self):
        self.counters: Dict[str, float] = {}
        self.latency: Dict[str, list] = {}
        self._lock = threading.Lock()

    def inc(self, name: str, amt: float = 1.0, labels: Dict[str,str] | None = None):
        key = (name, self._labels(labels))
        with self._lock:
            self.counters[key] = self.counters.get(key, 0.0) + amt

    def observe(self, name: str, value_ms: float, labels: Dict[str,str] | None = None):
        key = (name, self._labels(labels))
        with self._lock:
            self.latency.setdefault(key, []).append(value_ms)
            if len(self.latency[key]) > 1000:
                self.latency[key] = self.latency[key][-1000:]

    def _labels(self, labels: Dict[str,str] | None) -> str:
        if not labels:
            return ""
        parts = [f'{k}="{v}"' for k,v in sorted(labels.items())]
        return "{" + ",".join(parts) + "}"

    def timed(self, stage: str) -> Callable:
        """Count calls and record wall time (ms) of `fn` under the given stage label."""
        def deco(fn):
            @wraps(fn)
            def wrapper(*args, **kwargs):
                t0 = time.perf_counter()
                try:
                    return fn(*args, **kwargs)
                finally:
                    dt = (time.perf_counter() - t0) * 1000.0
                    self.inc("astromap_stage_calls_total", 1.0, {"stage": stage})
                    self.observe("astromap_stage_latency_ms", dt, {"stage": stage})
            return wrapper
        return deco

    def export_prometheus(self) -> str:
        lines = []
        with self._lock:
            counters = sorted(self.counters.items())
            latency = sorted((k, list(v)) for k, v in self.latency.items())
        for (name, labels), v in counters:
            lines.append(f"# TYPE {name} counter")
            lines.append(f"{name}{labels} {v:.0f}")
        for (name, labels), samples in latency:
            if not samples: continue
            avg = sum(samples)/len(samples)
            p95 = sorted(samples)[int(0.95*len(samples))-1] if len(samples) >= 20 else max(samples)
            lines.append(f"# TYPE {name} gauge")
            lines.append(f"{name}_avg{labels} {avg:.2f}")
            lines.append(f"{name}_p95{labels} {p95:.2f}")
        return "\n".join(lines) + "\n"

    def reset(self):
        with self._lock:
            self.counters.clear()
            self.latency.clear()

metrics = Metrics()
