from __future__ import annotations

import re
from typing import Final

_FLAGS: Final[int] = re.IGNORECASE

# Mexican RFC: 3-4 letters (persona moral / física), birth or incorporation date, homoclave.
RFC_GRAMMAR: Final[str] = r"[A-Z&Ñ]{3,4}\d{6}[A-Z0-9]{2}[A0-9]"
RFC_RE: Final[re.Pattern[str]] = re.compile(RFC_GRAMMAR, _FLAGS)

_AMOUNT: Final[str] = r"([\d,]+\.?\d*)"

TAX_ID_FIELDS: Final[frozenset[str]] = frozenset({"rfcEmisor", "rfcReceptor"})

# Ordered most specific (labeled) to most generic; first match wins.
FIELD_PATTERNS: Final[dict[str, tuple[re.Pattern[str], ...]]] = {
    "numeroFactura": (
        re.compile(r"(?:factura|invoice|folio|número|no\.?)\s*:?\s*([A-Z0-9-]+)", _FLAGS),
        re.compile(r"([A-Z]\d{1,4}-\d{1,6})", _FLAGS),
        re.compile(r"folio\s+fiscal\s*:?\s*([A-Z0-9-]+)", _FLAGS),
    ),
    "fecha": (
        re.compile(r"(?:fecha|date)\s*:?\s*(\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4})", _FLAGS),
        re.compile(r"(\d{1,2}\s+de\s+\w+\s+de\s+\d{4})", _FLAGS),
        re.compile(r"(\d{4}-\d{2}-\d{2})", _FLAGS),
    ),
    "rfcEmisor": (
        re.compile(rf"(?:rfc\s+emisor|emisor\s+rfc)\s*:?\s*({RFC_GRAMMAR})", _FLAGS),
        re.compile(rf"emisor.*?({RFC_GRAMMAR})", _FLAGS),
    ),
    "rfcReceptor": (
        re.compile(rf"(?:rfc\s+receptor|receptor\s+rfc)\s*:?\s*({RFC_GRAMMAR})", _FLAGS),
        re.compile(rf"receptor.*?({RFC_GRAMMAR})", _FLAGS),
    ),
    "subtotal": (
        re.compile(rf"(?:subtotal|sub\s*total)\s*:?\s*\$?\s*{_AMOUNT}", _FLAGS),
        re.compile(rf"subtotal\s+{_AMOUNT}", _FLAGS),
    ),
    "iva": (
        re.compile(rf"(?:iva|i\.v\.a\.?)\s*:?\s*\$?\s*{_AMOUNT}", _FLAGS),
        re.compile(rf"impuestos?\s+trasladados?\s+iva\s+{_AMOUNT}", _FLAGS),
    ),
    "total": (
        re.compile(rf"(?:total|importe\s+total)\s*:?\s*\$?\s*{_AMOUNT}", _FLAGS),
        re.compile(rf"total\s+a\s+pagar\s+{_AMOUNT}", _FLAGS),
    ),
    "formaPago": (
        re.compile(r"(?:forma\s+de\s+pago|método\s+de\s+pago)\s*:?\s*(.+?)(?:\n|$)", _FLAGS),
        re.compile(r"pago\s+en\s+(.+?)(?:\n|$)", _FLAGS),
    ),
}

# quantity, description, unit price, optional currency marker + extended amount
LINE_ITEM_RE: Final[re.Pattern[str]] = re.compile(
    r"(\d+\.?\d*)\s+(.+?)\s+(\d+\.?\d*)\s+\$?\s*([\d,]+\.?\d*)"
)


def is_valid_rfc(value: str) -> bool:
    return RFC_RE.fullmatch(value.strip()) is not None
