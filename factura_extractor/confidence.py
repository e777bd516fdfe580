from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Final

from schemas.invoice_schema import FIELD_IDS, InvoiceRecord

FIELD_WEIGHT: Final[Decimal] = Decimal("0.8")
LINE_ITEM_WEIGHT: Final[Decimal] = Decimal("0.2")


def filled_field_count(record: InvoiceRecord) -> int:
    return sum(1 for field in record.iter_fields() if field.value.strip())


def calculate_confidence(record: InvoiceRecord) -> int:
    """Score 0-100: 80% from filled required fields, 20% from having any line item."""
    filled_fraction = Decimal(filled_field_count(record)) / Decimal(len(FIELD_IDS))
    has_line_items = Decimal(1 if record.partidas else 0)
    score = (FIELD_WEIGHT * filled_fraction + LINE_ITEM_WEIGHT * has_line_items) * 100
    return int(score.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
