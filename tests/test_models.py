from __future__ import annotations

from datetime import date, datetime, timezone

from stockroom.models import (
    InventoryItem,
    OperationResult,
    TransactionLogEntry,
    normalize_sku,
    parse_store_date,
    parse_store_timestamp,
)


def test_normalize_sku():
    assert normalize_sku("  FLT-Oil-300 ") == "flt-oil-300"
    assert normalize_sku(None) == ""


def test_inventory_item_defaults_missing_fields():
    item = InventoryItem.from_record({"id": "rec1", "fields": {"SKU": "ABC-1"}})

    assert item.sku == "abc-1"
    assert item.quantity == 0
    assert item.unit_cost == 0.0
    assert item.location_id is None
    assert item.value == 0
    assert item.is_low_stock


def test_inventory_item_round_trip_fields():
    item = InventoryItem(
        record_id=None, sku="abc-1", part_name="Widget", quantity=3, reorder_point=1,
        unit_cost=2.5, location_id="A-01", vendor_name="Acme", date_received=date(2024, 6, 1),
    )

    fields = item.to_fields()

    assert fields["Date Received"] == "2024-06-01"
    assert "Last Issue Date" not in fields
    assert InventoryItem.from_record({"id": "rec9", "fields": fields}).value == 7.5


def test_log_entry_falls_back_to_record_created_time():
    entry = TransactionLogEntry.from_record({
        "id": "rec2",
        "createdTime": "2024-06-03T14:05:00.000Z",
        "fields": {"SKU": "abc-1", "Quantity Change": -2, "Transaction Type": "issue"},
    })

    assert entry.transaction_type == "ISSUE"
    assert entry.created_at == datetime(2024, 6, 3, 14, 5, tzinfo=timezone.utc)
    assert entry.inventory_record_id is None


def test_date_parsing_tolerates_bad_values():
    assert parse_store_date("2024-06-01T10:00:00.000Z") == date(2024, 6, 1)
    assert parse_store_date("June 1st") is None
    assert parse_store_timestamp("") is None
    assert parse_store_timestamp("garbage") is None


def test_operation_result_status():
    assert OperationResult.ok("done").status == "success"
    failed = OperationResult.failure("nope", "NOT_FOUND", sku="abc-1")
    assert failed.status == "error"
    assert failed.error_code == "NOT_FOUND"
