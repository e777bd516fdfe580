from __future__ import annotations

import importlib
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from factura_extractor.api import create_app
from factura_extractor.config import Settings
from factura_extractor.extraction_service import NO_TEXT_MESSAGE
from factura_extractor.metrics import MetricsCollector

SAMPLE_TEXT = "Factura: A123-456789\nFecha: 01/03/2024\nRFC Emisor: ABC010101AB1\nTotal: $1,160.00\n"


def _client() -> TestClient:
    return TestClient(create_app(Settings(batch_max_workers=2)))


def test_health() -> None:
    response = _client().get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_extract_returns_result_payload_with_band() -> None:
    response = _client().post("/extract", json={"text": SAMPLE_TEXT, "document_id": "doc-1"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["confidence"] == 40
    assert body["data"]["numeroFactura"] == {"value": "A123-456789", "validated": True}
    assert body["data"]["partidas"] == []
    assert body["band"] == "needs_review"
    assert body["needs_ocr"] is True


def test_extract_blank_text_is_a_failed_result_not_an_http_error() -> None:
    response = _client().post("/extract", json={"text": "  "})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert "data" not in body
    assert body["errors"] == [NO_TEXT_MESSAGE]
    assert body["band"] == "error"


def test_extract_missing_text_is_rejected() -> None:
    response = _client().post("/extract", json={})
    assert response.status_code == 422


def test_extract_pages_reports_page_failures() -> None:
    response = _client().post(
        "/extract/pages",
        json={
            "pages": [
                {"number": 1, "text": "Factura: A1-1"},
                {"number": 2, "error": "encrypted"},
            ]
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["errors"] == ["Error extracting text from page 2: encrypted"]


def test_batch_keeps_order_and_updates_stats() -> None:
    client = _client()
    texts = ["Factura: A1-1", "", "Factura: B2-2"]
    response = client.post("/extract/batch", json={"texts": texts})
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 3
    assert [r["success"] for r in body["results"]] == [True, False, True]
    assert body["results"][2]["data"]["numeroFactura"]["value"] == "B2-2"

    stats = client.get("/stats").json()
    assert stats["throughput_total"] == 3
    assert stats["failure_total"] == 1


def test_validate_rejects_bad_rfc_and_reports_amount_violations() -> None:
    client = _client()
    form = {
        "numeroFactura": "A123-456789",
        "fecha": "01/03/2024",
        "rfcEmisor": "ABC010101AB1",
        "rfcReceptor": "XAXX010101000",
        "subtotal": "1,000.00",
        "iva": "160.00",
        "total": "1,100.00",
        "formaPago": "Efectivo",
    }
    ok = client.post("/validate", json=form)
    assert ok.status_code == 200
    assert ok.json()["record"]["total"] == {"value": "1,100.00", "validated": True}
    assert [v["code"] for v in ok.json()["violations"]] == ["amount_mismatch"]

    form["rfcEmisor"] = "NOTANRFC"
    bad = client.post("/validate", json=form)
    assert bad.status_code == 422


def test_long_running_app_keeps_bounded_metrics_state() -> None:
    collector = MetricsCollector(max_samples=5)
    client = TestClient(create_app(Settings(), metrics=collector))
    for n in range(20):
        assert client.post("/extract", json={"text": SAMPLE_TEXT, "document_id": f"doc-{n}"}).status_code == 200

    assert len(collector.latencies_ms) == 5
    stats = client.get("/stats").json()
    assert stats["throughput_total"] == 20
    assert stats["mean_confidence"] == 40.0


def test_api_main_builds_app_from_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BATCH_MAX_WORKERS", "3")
    monkeypatch.setenv("OCR_FALLBACK_THRESHOLD", "20")
    import factura_extractor.api_main as api_main

    module = importlib.reload(api_main)
    assert module.app.state.settings.batch_max_workers == 3
    body = TestClient(module.app).post("/extract", json={"text": SAMPLE_TEXT}).json()
    assert body["needs_ocr"] is False
