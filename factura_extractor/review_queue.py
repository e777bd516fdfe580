from __future__ import annotations

from dataclasses import dataclass

from schemas.invoice_schema import InvoiceRecord, ProcessingResult

# Identifiers a ledger row cannot do without.
KEY_FIELD_IDS: tuple[str, ...] = ("numeroFactura", "fecha", "rfcEmisor", "rfcReceptor", "total")


@dataclass(frozen=True)
class ReviewDecision:
    status: str
    band: str
    reason_codes: tuple[str, ...]


def confidence_band(
    result: ProcessingResult,
    *,
    excellent_threshold: int = 80,
    good_threshold: int = 60,
) -> str:
    if not result.success:
        return "error"
    if result.confidence >= excellent_threshold:
        return "excellent"
    if result.confidence >= good_threshold:
        return "good"
    return "needs_review"


def needs_ocr_fallback(result: ProcessingResult, *, threshold: int = 50) -> bool:
    return not result.success or result.confidence < threshold


def completeness_status(record: InvoiceRecord) -> str:
    valid = sum(
        1
        for field_id in KEY_FIELD_IDS
        if record.get_field(field_id).validated and record.get_field(field_id).value.strip()
    )
    if valid == len(KEY_FIELD_IDS):
        return "complete"
    if valid >= len(KEY_FIELD_IDS) * 0.7:
        return "partial"
    return "incomplete"


def decide_review_status(
    result: ProcessingResult,
    *,
    excellent_threshold: int = 80,
    good_threshold: int = 60,
    ocr_threshold: int = 50,
) -> ReviewDecision:
    band = confidence_band(result, excellent_threshold=excellent_threshold, good_threshold=good_threshold)
    reasons: list[str] = []
    if not result.success:
        reasons.append("extraction_failed")
    elif band != "excellent":
        reasons.append("low_confidence")
    if needs_ocr_fallback(result, threshold=ocr_threshold):
        reasons.append("ocr_recommended")
    if result.data is not None and completeness_status(result.data) != "complete":
        reasons.append("missing_identifier")
    if reasons:
        return ReviewDecision(status="REVIEW_REQUIRED", band=band, reason_codes=tuple(reasons))
    return ReviewDecision(status="VALIDATED", band=band, reason_codes=tuple())
