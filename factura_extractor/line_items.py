from __future__ import annotations

import math

from factura_extractor.patterns import LINE_ITEM_RE
from schemas.invoice_schema import LineItem


def _safe_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    text = value.replace(",", "").strip()
    if not text:
        return default
    try:
        number = float(text)
    except ValueError:
        return default
    # Digit runs past float range overflow to inf, which has no JSON form.
    return number if math.isfinite(number) else default


def extract_line_items(text: str) -> list[LineItem]:
    # Purely structural: any "<qty> <desc> <price> <amount>" run counts, table or not.
    items: list[LineItem] = []
    for index, match in enumerate(LINE_ITEM_RE.finditer(text), start=1):
        cantidad, descripcion, precio, importe = match.groups()
        items.append(
            LineItem(
                id=f"item-{index}",
                descripcion=descripcion.strip(),
                cantidad=_safe_float(cantidad, 1.0),
                precio=_safe_float(precio, 0.0),
                importe=_safe_float(importe, 0.0),
            )
        )
    return items
