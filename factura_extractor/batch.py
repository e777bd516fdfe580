from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Callable, Sequence, TypeVar

from factura_extractor.extraction_service import extract_invoice
from factura_extractor.metrics import MetricsCollector, elapsed_ms
from schemas.invoice_schema import ProcessingResult

T = TypeVar("T")


def _timed_extract(extract: Callable[[T], ProcessingResult], item: T) -> tuple[ProcessingResult, float]:
    started = time.perf_counter()
    result = extract(item)
    return result, elapsed_ms(started)


def process_batch(
    items: Sequence[T],
    *,
    extract: Callable[[T], ProcessingResult] = extract_invoice,
    max_workers: int = 4,
    metrics: MetricsCollector | None = None,
    low_confidence_threshold: int = 50,
) -> list[ProcessingResult]:
    """Extract every item on a bounded thread pool; results come back in input order.

    Items are texts by default; pass ``extract`` to feed anything else (file paths,
    page lists) through the same pool, timing and metrics.
    """
    if max_workers < 1:
        raise ValueError("max_workers must be >= 1")
    if not items:
        return []

    with ThreadPoolExecutor(max_workers=min(max_workers, len(items))) as pool:
        outcomes = list(pool.map(partial(_timed_extract, extract), items))

    if metrics is not None:
        for result, latency_ms in outcomes:
            metrics.observe_result(result, low_confidence_threshold=low_confidence_threshold)
            metrics.observe_latency(latency_ms)
    return [result for result, _ in outcomes]
