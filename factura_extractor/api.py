from __future__ import annotations

import time
from typing import Any

from fastapi import FastAPI
from pydantic import BaseModel, Field

from factura_extractor.batch import process_batch
from factura_extractor.config import Settings
from factura_extractor.extraction_service import PageText, extract_invoice, extract_pages
from factura_extractor.metrics import MetricsCollector, elapsed_ms
from factura_extractor.review_queue import decide_review_status
from factura_extractor.validation import InvoiceEditForm, apply_edits, evaluate_amount_rules
from schemas.invoice_schema import InvoiceRecord, ProcessingResult


class ExtractRequest(BaseModel):
    text: str
    document_id: str | None = None


class PageIn(BaseModel):
    number: int = Field(ge=1)
    text: str = ""
    error: str | None = None


class PagesRequest(BaseModel):
    pages: list[PageIn]
    document_id: str | None = None


class BatchRequest(BaseModel):
    texts: list[str]


def create_app(settings: Settings | None = None, *, metrics: MetricsCollector | None = None) -> FastAPI:
    active = settings or Settings()
    metrics = metrics if metrics is not None else MetricsCollector()
    app = FastAPI(title="Factura Extractor API", version="0.1.0")
    app.state.settings = active

    def _respond(result: ProcessingResult, started: float) -> dict[str, Any]:
        metrics.observe_result(result, low_confidence_threshold=active.ocr_fallback_threshold)
        metrics.observe_latency(elapsed_ms(started))
        decision = decide_review_status(
            result,
            excellent_threshold=active.review_excellent_threshold,
            good_threshold=active.review_good_threshold,
            ocr_threshold=active.ocr_fallback_threshold,
        )
        payload = result.to_payload()
        payload["band"] = decision.band
        payload["review_status"] = decision.status
        payload["reason_codes"] = list(decision.reason_codes)
        payload["needs_ocr"] = "ocr_recommended" in decision.reason_codes
        return payload

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/extract")
    def extract(request: ExtractRequest) -> dict[str, Any]:
        started = time.perf_counter()
        result = extract_invoice(request.text, document_id=request.document_id)
        return _respond(result, started)

    @app.post("/extract/pages")
    def extract_from_pages(request: PagesRequest) -> dict[str, Any]:
        started = time.perf_counter()
        pages = [PageText(number=p.number, text=p.text, error=p.error) for p in request.pages]
        result = extract_pages(pages, document_id=request.document_id)
        return _respond(result, started)

    @app.post("/extract/batch")
    def extract_batch(request: BatchRequest) -> dict[str, Any]:
        results = process_batch(
            request.texts,
            max_workers=active.batch_max_workers,
            metrics=metrics,
            low_confidence_threshold=active.ocr_fallback_threshold,
        )
        return {"count": len(results), "results": [r.to_payload() for r in results]}

    @app.post("/validate")
    def validate(form: InvoiceEditForm) -> dict[str, Any]:
        record = apply_edits(InvoiceRecord(), form)
        return {"record": record.to_payload(), "violations": evaluate_amount_rules(record)}

    @app.get("/stats")
    def stats() -> dict[str, Any]:
        return metrics.snapshot()

    return app
