from __future__ import annotations

import pytest

from stockroom.audit_log import AuditLogWriter
from stockroom.config import TRANSACTION_LOG_TABLE_NAME


def test_receive_entry_keeps_vendor_and_link(store):
    writer = AuditLogWriter(store)

    entry = writer.log_receive(" FLT-OIL-300", 25, "rec0001", "Acme Filters")

    assert entry.record_id is not None
    assert entry.sku == "flt-oil-300"
    assert entry.quantity_change == 25
    assert entry.inventory_record_id == "rec0001"
    assert entry.created_at is not None
    (record,) = store.records(TRANSACTION_LOG_TABLE_NAME)
    assert record["fields"]["Related Inventory Item"] == ["rec0001"]
    assert record["fields"]["Vendor Name"] == "Acme Filters"


def test_issue_entry_is_negative(store):
    entry = AuditLogWriter(store).log_issue("flt-oil-300", 7, "rec0001")

    assert entry.transaction_type == "ISSUE"
    assert entry.quantity_change == -7
    assert entry.vendor_name is None


@pytest.mark.parametrize(
    "change, kind",
    [(0, "RECEIVE"), (-3, "RECEIVE"), (3, "ISSUE"), (5, "ADJUST")],
)
def test_rejects_inconsistent_entries(store, change, kind):
    with pytest.raises(ValueError):
        AuditLogWriter(store).append("flt-oil-300", change, kind, "rec0001")
    assert store.writes() == []
