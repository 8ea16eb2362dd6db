"""
Audit Log Writer

Appends one Transaction Log row per stock mutation. Rows are never updated
or deleted by this package.
"""

from typing import Optional

from stockroom.config import TRANSACTION_LOG_TABLE_NAME
from stockroom.models import (
    TRANSACTION_ISSUE,
    TRANSACTION_RECEIVE,
    TransactionLogEntry,
    normalize_sku,
)
from stockroom.record_store import RecordStoreClient
from stockroom.logger import get_logger

logger = get_logger(__name__)


class AuditLogWriter:
    def __init__(self, store: RecordStoreClient, table_name: Optional[str] = None):
        self.store = store
        self.table_name = table_name or TRANSACTION_LOG_TABLE_NAME

    def append(
        self,
        sku: str,
        quantity_change: int,
        transaction_type: str,
        inventory_record_id: str,
        vendor_name: Optional[str] = None,
    ) -> TransactionLogEntry:
        """
        Write a single log entry and return it as stored.

        Raises:
            ValueError: unknown transaction type or a delta whose sign does not match it
            StoreError: the store rejected the write
        """
        if transaction_type not in (TRANSACTION_RECEIVE, TRANSACTION_ISSUE):
            raise ValueError(f"Unknown transaction type: {transaction_type}")
        if transaction_type == TRANSACTION_RECEIVE and quantity_change <= 0:
            raise ValueError("RECEIVE entries need a positive quantity change")
        if transaction_type == TRANSACTION_ISSUE and quantity_change >= 0:
            raise ValueError("ISSUE entries need a negative quantity change")

        entry = TransactionLogEntry(
            record_id=None,
            sku=normalize_sku(sku),
            quantity_change=quantity_change,
            transaction_type=transaction_type,
            inventory_record_id=inventory_record_id,
            vendor_name=vendor_name if transaction_type == TRANSACTION_RECEIVE else None,
        )
        created = self.store.create(self.table_name, [entry.to_fields()])
        stored = TransactionLogEntry.from_record(created[0])

        logger.info(
            f"Logged {transaction_type} of {quantity_change:+d} for SKU '{entry.sku}' "
            f"(log record {stored.record_id})"
        )
        return stored

    def log_receive(
        self, sku: str, quantity: int, inventory_record_id: str, vendor_name: Optional[str]
    ) -> TransactionLogEntry:
        return self.append(sku, quantity, TRANSACTION_RECEIVE, inventory_record_id, vendor_name)

    def log_issue(self, sku: str, quantity: int, inventory_record_id: str) -> TransactionLogEntry:
        return self.append(sku, -quantity, TRANSACTION_ISSUE, inventory_record_id)
