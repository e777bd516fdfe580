from __future__ import annotations

from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from factura_extractor.normalization import parse_amount, record_amounts
from factura_extractor.patterns import is_valid_rfc
from schemas.invoice_schema import FIELD_DEFINITIONS, InvoiceRecord, LineItem


class InvoiceEditForm(BaseModel):
    """Manually edited field values; same RFC grammar as extraction."""

    model_config = ConfigDict(populate_by_name=True)

    numero_factura: str = Field(alias="numeroFactura", min_length=1)
    fecha: str = Field(alias="fecha", min_length=1)
    rfc_emisor: str = Field(alias="rfcEmisor")
    rfc_receptor: str = Field(alias="rfcReceptor")
    subtotal: str = Field(alias="subtotal", min_length=1)
    iva: str = Field(alias="iva", min_length=1)
    total: str = Field(alias="total", min_length=1)
    forma_pago: str = Field(alias="formaPago", min_length=1)

    @field_validator("rfc_emisor", "rfc_receptor")
    @classmethod
    def _check_rfc(cls, value: str) -> str:
        value = value.strip()
        if not is_valid_rfc(value):
            raise ValueError("RFC inválido")
        return value


def validate_edit_form(payload: dict[str, Any]) -> InvoiceEditForm:
    return InvoiceEditForm.model_validate(payload)


def form_from_record(record: InvoiceRecord) -> dict[str, str]:
    return {field.id: field.value for field in record.iter_fields()}


def apply_edits(
    record: InvoiceRecord,
    form: InvoiceEditForm,
    *,
    partidas: Iterable[LineItem] | None = None,
) -> InvoiceRecord:
    """Return a copy of ``record`` carrying the form values, every field marked validated."""
    updated = record.model_copy(deep=True)
    for attr, field_id, _ in FIELD_DEFINITIONS:
        field = updated.get_field(field_id)
        field.value = getattr(form, attr)
        field.validated = True
    if partidas is not None:
        updated.partidas = [item.model_copy() for item in partidas]
    return updated


def update_line_item(item: LineItem, **changes: Any) -> LineItem:
    updated = item.model_copy(update=changes)
    if "cantidad" in changes or "precio" in changes:
        updated.importe = updated.cantidad * updated.precio
    return LineItem.model_validate(updated.model_dump())


def new_line_item(existing: Iterable[LineItem]) -> LineItem:
    highest = 0
    for item in existing:
        prefix, _, number = item.id.partition("-")
        if prefix == "item" and number.isdigit():
            highest = max(highest, int(number))
    return LineItem(id=f"item-{highest + 1}", descripcion="", cantidad=1.0, precio=0.0, importe=0.0)


def evaluate_amount_rules(
    record: InvoiceRecord,
    *,
    amount_tolerance: float = 0.01,
) -> list[dict[str, Any]]:
    violations: list[dict[str, Any]] = []
    amounts = record_amounts(record)
    present = {field_id: bool(record.get_field(field_id).value.strip()) for field_id in amounts}

    if all(present.values()):
        computed_total = round(amounts["subtotal"] + amounts["iva"], 2)
        declared_total = round(amounts["total"], 2)
        if abs(computed_total - declared_total) > amount_tolerance:
            violations.append(
                {
                    "code": "amount_mismatch",
                    "severity": "warning",
                    "message": "subtotal + iva does not match total",
                    "expected_total": computed_total,
                    "actual_total": declared_total,
                }
            )

    if record.partidas and present["subtotal"]:
        line_sum = round(sum(parse_amount(item.importe) for item in record.partidas), 2)
        subtotal = round(amounts["subtotal"], 2)
        if abs(line_sum - subtotal) > amount_tolerance:
            violations.append(
                {
                    "code": "line_item_sum_mismatch",
                    "severity": "warning",
                    "message": "sum(partidas.importe) does not match subtotal",
                    "expected_subtotal": line_sum,
                    "actual_subtotal": subtotal,
                }
            )

    return violations
