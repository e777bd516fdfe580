from __future__ import annotations

import json
import threading
import time
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from schemas.invoice_schema import ProcessingResult

DEFAULT_LATENCY_WINDOW = 1000


@dataclass
class MetricsCollector:
    """Running counters plus a sliding latency window; safe to share between threads."""

    max_samples: int = DEFAULT_LATENCY_WINDOW
    counters: Counter[str] = field(default_factory=Counter)
    confidence_sum: int = 0
    confidence_count: int = 0
    latencies_ms: deque[float] = field(init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.max_samples < 1:
            raise ValueError("max_samples must be >= 1")
        self.latencies_ms = deque(maxlen=self.max_samples)

    def increment(self, name: str, value: int = 1) -> None:
        with self._lock:
            self.counters[name] += value

    def observe_latency(self, value_ms: float) -> None:
        with self._lock:
            self.latencies_ms.append(value_ms)

    def observe_result(self, result: ProcessingResult, *, low_confidence_threshold: int = 50) -> None:
        with self._lock:
            self.counters["documents_processed_total"] += 1
            if not result.success:
                self.counters["documents_failed_total"] += 1
                return
            self.counters["documents_success_total"] += 1
            self.confidence_sum += result.confidence
            self.confidence_count += 1
            if result.confidence < low_confidence_threshold:
                self.counters["documents_low_confidence_total"] += 1
            if result.errors:
                self.counters["documents_partial_total"] += 1

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            ordered = sorted(self.latencies_ms)
            counters = dict(self.counters)
            confidence_sum, confidence_count = self.confidence_sum, self.confidence_count
        p95: float = 0
        if ordered:
            p95 = ordered[int(0.95 * (len(ordered) - 1))]
        mean_confidence = 0.0
        if confidence_count:
            mean_confidence = round(confidence_sum / confidence_count, 2)
        return {
            "throughput_total": counters.get("documents_processed_total", 0),
            "success_total": counters.get("documents_success_total", 0),
            "failure_total": counters.get("documents_failed_total", 0),
            "low_confidence_total": counters.get("documents_low_confidence_total", 0),
            "partial_total": counters.get("documents_partial_total", 0),
            "latency_p95_ms": p95,
            "mean_confidence": mean_confidence,
        }


def elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


class JsonlMetricsSink:
    def __init__(self, path: str | Path = "logs/metrics.jsonl") -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, event: dict[str, Any]) -> None:
        payload = {
            "recorded_at_utc": datetime.now(timezone.utc).isoformat(),
            **event,
        }
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(payload, ensure_ascii=True) + "\n")
