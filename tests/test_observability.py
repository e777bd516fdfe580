from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from factura_extractor.extraction_service import extract_invoice
from factura_extractor.logger import JsonFormatter, log_document_event
from factura_extractor.metrics import JsonlMetricsSink, MetricsCollector


def test_json_formatter_includes_document_fields() -> None:
    logger = logging.getLogger("test-observability")
    record = logger.makeRecord(
        name=logger.name,
        level=logging.INFO,
        fn="test",
        lno=1,
        msg="extraction",
        args=(),
        exc_info=None,
        extra={
            "document_id": "doc-1",
            "stage": "extraction",
            "latency_ms": 3,
            "outcome": "success",
            "confidence": 60,
        },
    )
    payload = json.loads(JsonFormatter().format(record))
    assert payload["document_id"] == "doc-1"
    assert payload["stage"] == "extraction"
    assert payload["latency_ms"] == 3
    assert payload["outcome"] == "success"
    assert payload["confidence"] == 60
    assert "page" not in payload


def test_log_document_event_helper_does_not_raise() -> None:
    logger = logging.getLogger("test-observability-helper")
    log_document_event(
        logger,
        logging.WARNING,
        "page skipped",
        document_id="doc-22",
        stage="page_assembly",
        outcome="partial_page_failure",
        page=2,
    )


def test_extraction_logs_outcome(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="factura_extractor.extraction_service"):
        extract_invoice("Factura: A1-1", document_id="doc-7")
        extract_invoice("", document_id="doc-8")
    outcomes = {(getattr(r, "document_id", None), getattr(r, "outcome", None)) for r in caplog.records}
    assert ("doc-7", "success") in outcomes
    assert ("doc-8", "no_text_found") in outcomes


def test_metrics_collector_snapshot() -> None:
    metrics = MetricsCollector()
    metrics.observe_result(extract_invoice("Factura: A1-1\nFecha: 01/03/2024"))
    metrics.observe_result(extract_invoice(""))
    metrics.observe_result(extract_invoice("Factura: A1-1", diagnostics=["page 2 unreadable"]))
    for latency in (50, 200, 100):
        metrics.observe_latency(latency)

    snapshot = metrics.snapshot()
    assert snapshot["throughput_total"] == 3
    assert snapshot["success_total"] == 2
    assert snapshot["failure_total"] == 1
    assert snapshot["low_confidence_total"] == 2
    assert snapshot["partial_total"] == 1
    assert snapshot["mean_confidence"] == 15.0
    assert snapshot["latency_p95_ms"] >= 100


def test_jsonl_metrics_sink_writes_event(tmp_path: Path) -> None:
    sink = JsonlMetricsSink(path=tmp_path / "logs" / "metrics.jsonl")
    sink.emit({"metric": "throughput_total", "value": 1})
    lines = (tmp_path / "logs" / "metrics.jsonl").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    payload = json.loads(lines[0])
    assert payload["metric"] == "throughput_total"
    assert payload["value"] == 1


def test_metrics_collector_keeps_a_bounded_latency_window() -> None:
    metrics = MetricsCollector(max_samples=3)
    for latency in range(10):
        metrics.observe_latency(latency)
        metrics.observe_result(extract_invoice("Factura: A1-1"))
    assert list(metrics.latencies_ms) == [7, 8, 9]
    snapshot = metrics.snapshot()
    assert snapshot["throughput_total"] == 10
    assert snapshot["mean_confidence"] == 10.0


def test_metrics_collector_rejects_empty_window() -> None:
    with pytest.raises(ValueError, match="max_samples"):
        MetricsCollector(max_samples=0)
