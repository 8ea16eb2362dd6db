from __future__ import annotations

import copy
import itertools
import os
import tempfile
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

# Keep test runs from writing into the working tree's logs/ directory
os.environ.setdefault("LOGS_DIR", os.path.join(tempfile.gettempdir(), "stockroom-test-logs"))

import pytest

from stockroom.config import INVENTORY_TABLE_NAME, TRANSACTION_LOG_TABLE_NAME
from stockroom.exceptions import StoreError
from stockroom.models import TransactionFields
from stockroom.notifications import LowStockNotifier
from stockroom.reports import ReportingEngine
from stockroom.transactions import InventoryMutationEngine

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

VENDOR_METRICS_TABLE = "Vendor Metrics"


class FakeRecordStore:
    """In-memory stand-in for RecordStoreClient.

    Filters are evaluated with the predicate's own ``matches`` so the fake
    answers exactly what the formula would select. Log records get a
    "Created Time" one second apart, starting at FIXED_NOW.
    """

    def __init__(self, now: datetime = FIXED_NOW):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self.failures: Dict[tuple, StoreError] = {}
        self._ids = itertools.count(1)
        self._ticks = itertools.count()
        self._now = now
        self._lock = threading.RLock()

    # -- test helpers ---------------------------------------------------

    def fail(self, method: str, table: str, message: str = "simulated outage") -> None:
        self.failures[(method, table)] = StoreError(message, status_code=503)

    def seed(self, table: str, fields: Dict[str, Any], created_time: Optional[datetime] = None) -> Dict[str, Any]:
        return self._insert(table, fields, created_time)

    def records(self, table: str) -> List[Dict[str, Any]]:
        return copy.deepcopy(self.tables.get(table, []))

    def writes(self) -> List[tuple]:
        return [call for call in self.calls if call[0] in ("create", "update")]

    # -- store interface ------------------------------------------------

    def _check(self, method: str, table: str) -> None:
        self.calls.append((method, table))
        error = self.failures.get((method, table))
        if error is not None:
            raise error

    def _insert(self, table: str, fields: Dict[str, Any], created_time: Optional[datetime] = None) -> Dict[str, Any]:
        created = created_time or self._now + timedelta(seconds=next(self._ticks))
        stamp = created.strftime("%Y-%m-%dT%H:%M:%S.000Z")
        record = {"id": f"rec{next(self._ids):04d}", "createdTime": stamp, "fields": dict(fields)}
        if table == TRANSACTION_LOG_TABLE_NAME:
            record["fields"].setdefault(TransactionFields.CREATED_TIME, stamp)
        self.tables.setdefault(table, []).append(record)
        return copy.deepcopy(record)

    def select(self, table, filter=None, fields=None, sort=None, max_records=None):
        with self._lock:
            self._check("select", table)
            return self._select(table, filter, fields, sort, max_records)

    def _select(self, table, filter, fields, sort, max_records):
        records = [r for r in self.tables.get(table, []) if filter is None or filter.matches(r["fields"])]
        for field_name, direction in reversed(list(sort or [])):
            present = [r for r in records if r["fields"].get(field_name) is not None]
            blank = [r for r in records if r["fields"].get(field_name) is None]
            present.sort(key=lambda r: r["fields"][field_name], reverse=(direction == "desc"))
            records = present + blank
        if max_records is not None:
            records = records[:max_records]
        records = copy.deepcopy(records)
        if fields:
            for record in records:
                record["fields"] = {k: v for k, v in record["fields"].items() if k in fields}
        return records

    def first_page(self, table, filter=None, fields=None, sort=None, max_records=None):
        limit = min(max_records, 100) if max_records is not None else 100
        return self.select(table, filter=filter, fields=fields, sort=sort, max_records=limit)

    def find_one(self, table, filter, sort=None):
        records = self.first_page(table, filter=filter, sort=sort, max_records=1)
        return records[0] if records else None

    def create(self, table, rows):
        with self._lock:
            self._check("create", table)
            return [self._insert(table, fields) for fields in rows]

    def update(self, table, updates):
        with self._lock:
            self._check("update", table)
            return self._update(table, updates)

    def _update(self, table, updates):
        by_id = {r["id"]: r for r in self.tables.get(table, [])}
        updated = []
        for change in updates:
            record = by_id.get(change["id"])
            if record is None:
                raise StoreError(f"Record {change['id']} not found in {table}", status_code=404)
            record["fields"].update(change["fields"])
            updated.append(copy.deepcopy(record))
        return updated


@pytest.fixture()
def clock():
    return lambda: FIXED_NOW


@pytest.fixture()
def store():
    return FakeRecordStore()


@pytest.fixture()
def reporting(store, clock):
    return ReportingEngine(store, vendor_metrics_table=VENDOR_METRICS_TABLE, clock=clock)


@pytest.fixture()
def sent_emails():
    return []


@pytest.fixture()
def notifier(reporting, sent_emails, clock):
    def sender(recipients, subject, body):
        sent_emails.append({"to": list(recipients), "subject": subject, "body": body})
        return True, None

    return LowStockNotifier(reporting, recipients=["stores@example.com"], sender=sender, clock=clock)


@pytest.fixture()
def engine(store, notifier, clock):
    return InventoryMutationEngine(store, notifier=notifier, clock=clock)


@pytest.fixture()
def seed_item(store):
    """Factory that inserts an inventory record with sensible defaults."""

    def _seed(sku, quantity, reorder_point=0, unit_cost=1.0, location=None, part_name=None, extra=None):
        fields = {
            "SKU": sku,
            "Part Name": part_name or sku.upper(),
            "Quantity": quantity,
            "Reorder Point": reorder_point,
            "Unit Cost": unit_cost,
        }
        if location is not None:
            fields["Location ID"] = location
        fields.update(extra or {})
        return store.seed(INVENTORY_TABLE_NAME, fields)

    return _seed
