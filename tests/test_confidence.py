from __future__ import annotations

from factura_extractor.confidence import calculate_confidence, filled_field_count
from schemas.invoice_schema import FIELD_IDS, InvoiceRecord, LineItem


def _record(filled: int, with_item: bool = False) -> InvoiceRecord:
    record = InvoiceRecord()
    for field_id in FIELD_IDS[:filled]:
        record.get_field(field_id).value = "x"
    if with_item:
        record.partidas = [LineItem(id="item-1", descripcion="Broca", cantidad=1, precio=10, importe=10)]
    return record


def test_empty_record_scores_zero() -> None:
    assert calculate_confidence(InvoiceRecord()) == 0


def test_half_fields_and_one_item_scores_sixty() -> None:
    assert calculate_confidence(_record(4, with_item=True)) == 60


def test_three_fields_no_items_scores_thirty() -> None:
    assert calculate_confidence(_record(3)) == 30


def test_complete_record_scores_hundred() -> None:
    assert calculate_confidence(_record(8, with_item=True)) == 100


def test_line_items_alone_score_twenty() -> None:
    assert calculate_confidence(_record(0, with_item=True)) == 20


def test_whitespace_values_do_not_count_as_filled() -> None:
    record = _record(2)
    record.total.value = "   "
    assert filled_field_count(record) == 2
    assert calculate_confidence(record) == 20
