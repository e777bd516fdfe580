from __future__ import annotations

import math
import re
from typing import Any

from schemas.invoice_schema import InvoiceRecord

AMOUNT_FIELD_IDS: tuple[str, ...] = ("subtotal", "iva", "total")


def parse_amount(value: Any, default: float = 0.0) -> float:
    """Interpret a captured currency string such as ``"$1,160.00"``; unparseable input gives ``default``."""
    if value is None or value == "":
        return default
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return default
    else:
        text = re.sub(r"[^0-9,.\-]", "", str(value).strip()).replace(",", "")
        if not text:
            return default
        try:
            number = float(text)
        except ValueError:
            return default
    return number if math.isfinite(number) else default


def record_amounts(record: InvoiceRecord) -> dict[str, float]:
    return {field_id: parse_amount(record.get_field(field_id).value) for field_id in AMOUNT_FIELD_IDS}
