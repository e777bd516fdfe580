from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Iterable, Sequence

from factura_extractor.confidence import calculate_confidence
from factura_extractor.field_extractor import extract_fields
from factura_extractor.line_items import extract_line_items
from factura_extractor.logger import log_document_event
from schemas.invoice_schema import ProcessingResult

logger = logging.getLogger(__name__)

NO_TEXT_MESSAGE = "No text found in document. OCR may be required."
PAGE_SEPARATOR = "\f"


class ExtractionError(RuntimeError):
    def __init__(self, message: str, code: str = "unexpected_failure") -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class PageText:
    """Text of one document page, or the reason it could not be read."""

    number: int
    text: str = ""
    error: str | None = None


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _failed(errors: list[str]) -> ProcessingResult:
    return ProcessingResult(success=False, data=None, errors=tuple(errors), confidence=0)


def extract_invoice(
    text: str,
    *,
    diagnostics: Sequence[str] = (),
    document_id: str | None = None,
) -> ProcessingResult:
    """Run field, line-item and confidence extraction over one text blob.

    Never raises: empty input and internal faults both come back as a failed
    result with ``confidence=0``. ``diagnostics`` are non-fatal messages from
    the caller (e.g. unreadable pages) and are carried into ``errors``.
    """
    started = time.perf_counter()
    doc_id = document_id or "inline"
    errors = list(diagnostics)
    try:
        if not text or not text.strip():
            raise ExtractionError(NO_TEXT_MESSAGE, code="no_text_found")
        record = extract_fields(text)
        record.partidas = extract_line_items(text)
        confidence = calculate_confidence(record)
    except ExtractionError as exc:
        errors.append(str(exc))
        log_document_event(
            logger,
            logging.WARNING,
            f"Extraction skipped: {exc.code}",
            document_id=doc_id,
            stage="extraction",
            latency_ms=_elapsed_ms(started),
            outcome=exc.code,
        )
        return _failed(errors)
    except Exception as exc:  # noqa: BLE001
        errors.append(f"Failed to process document: {exc}")
        logger.exception("Extraction failed for document_id=%s", doc_id)
        return _failed(errors)

    log_document_event(
        logger,
        logging.INFO,
        "Extraction complete",
        document_id=doc_id,
        stage="extraction",
        latency_ms=_elapsed_ms(started),
        outcome="success",
        confidence=confidence,
    )
    return ProcessingResult(success=True, data=record, errors=tuple(errors), confidence=confidence)


def extract_pages(pages: Iterable[PageText], *, document_id: str | None = None) -> ProcessingResult:
    """Join readable pages with a line break each and extract; unreadable pages become diagnostics."""
    doc_id = document_id or "inline"
    chunks: list[str] = []
    diagnostics: list[str] = []
    for page in pages:
        if page.error is not None:
            diagnostics.append(f"Error extracting text from page {page.number}: {page.error}")
            log_document_event(
                logger,
                logging.WARNING,
                "Page text unavailable",
                document_id=doc_id,
                stage="page_assembly",
                outcome="partial_page_failure",
                page=page.number,
            )
            continue
        chunks.append(page.text + "\n")
    return extract_invoice("".join(chunks), diagnostics=diagnostics, document_id=document_id)


def split_pages(raw: str) -> list[PageText]:
    """Split text on form feeds, the page break emitted by common PDF-to-text tools."""
    return [PageText(number=index, text=chunk) for index, chunk in enumerate(raw.split(PAGE_SEPARATOR), start=1)]
