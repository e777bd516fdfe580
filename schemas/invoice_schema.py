from __future__ import annotations

from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict, Field

# (attribute, field id, label) in extraction and scoring order.
FIELD_DEFINITIONS: tuple[tuple[str, str, str], ...] = (
    ("numero_factura", "numeroFactura", "N° Factura"),
    ("fecha", "fecha", "Fecha"),
    ("rfc_emisor", "rfcEmisor", "RFC Emisor"),
    ("rfc_receptor", "rfcReceptor", "RFC Receptor"),
    ("subtotal", "subtotal", "Subtotal"),
    ("iva", "iva", "IVA"),
    ("total", "total", "Total"),
    ("forma_pago", "formaPago", "Forma de Pago"),
)

FIELD_IDS: tuple[str, ...] = tuple(field_id for _, field_id, _ in FIELD_DEFINITIONS)

_ATTR_BY_ID: dict[str, str] = {field_id: attr for attr, field_id, _ in FIELD_DEFINITIONS}
_LABEL_BY_ID: dict[str, str] = {field_id: label for _, field_id, label in FIELD_DEFINITIONS}


class InvoiceField(BaseModel):
    id: str
    label: str
    value: str = ""
    required: bool = True
    validated: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {"value": self.value, "validated": self.validated}


def empty_field(field_id: str) -> InvoiceField:
    return InvoiceField(id=field_id, label=_LABEL_BY_ID[field_id])


def _slot(field_id: str) -> Any:
    return Field(default_factory=lambda: empty_field(field_id), alias=field_id)


class LineItem(BaseModel):
    id: str
    descripcion: str = ""
    cantidad: float = Field(default=1.0, ge=0, allow_inf_nan=False)
    precio: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    importe: float = Field(default=0.0, allow_inf_nan=False)

    def to_payload(self) -> dict[str, Any]:
        return {
            "descripcion": self.descripcion,
            "cantidad": self.cantidad,
            "precio": self.precio,
            "importe": self.importe,
        }


class InvoiceRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    numero_factura: InvoiceField = _slot("numeroFactura")
    fecha: InvoiceField = _slot("fecha")
    rfc_emisor: InvoiceField = _slot("rfcEmisor")
    rfc_receptor: InvoiceField = _slot("rfcReceptor")
    subtotal: InvoiceField = _slot("subtotal")
    iva: InvoiceField = _slot("iva")
    total: InvoiceField = _slot("total")
    forma_pago: InvoiceField = _slot("formaPago")
    partidas: list[LineItem] = Field(default_factory=list)

    def get_field(self, field_id: str) -> InvoiceField:
        try:
            attr = _ATTR_BY_ID[field_id]
        except KeyError as exc:
            raise KeyError(f"Unknown invoice field: {field_id}") from exc
        return getattr(self, attr)

    def iter_fields(self) -> Iterator[InvoiceField]:
        for field_id in FIELD_IDS:
            yield self.get_field(field_id)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {field.id: field.to_payload() for field in self.iter_fields()}
        payload["partidas"] = [item.to_payload() for item in self.partidas]
        return payload


class ProcessingResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    data: InvoiceRecord | None = None
    errors: tuple[str, ...] = ()
    confidence: int = Field(default=0, ge=0, le=100)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "errors": list(self.errors),
            "confidence": self.confidence,
        }
        if self.data is not None:
            payload["data"] = self.data.to_payload()
        return payload
