from __future__ import annotations

from factura_extractor.patterns import FIELD_PATTERNS, TAX_ID_FIELDS, is_valid_rfc
from schemas.invoice_schema import InvoiceRecord


def match_field(field_id: str, text: str) -> str | None:
    """Return the first non-empty capture for ``field_id``, trying patterns in priority order."""
    for pattern in FIELD_PATTERNS[field_id]:
        match = pattern.search(text)
        if match is None:
            continue
        value = (match.group(1) or "").strip()
        if not value:
            continue
        if field_id in TAX_ID_FIELDS and not is_valid_rfc(value):
            continue
        return value
    return None


def extract_fields(text: str, record: InvoiceRecord | None = None) -> InvoiceRecord:
    """Populate the eight invoice fields from ``text``.

    A supplied ``record`` is copied, never modified. Fields with no match keep
    whatever value and validation state they already had.
    """
    target = record.model_copy(deep=True) if record is not None else InvoiceRecord()
    for field in target.iter_fields():
        value = match_field(field.id, text)
        if value is None:
            continue
        field.value = value
        field.validated = True
    return target
