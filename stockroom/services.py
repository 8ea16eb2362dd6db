"""
Service wiring.

Builds one record store client and hands it to every engine, so the
presentation layer and the operator scripts share the same instances
instead of reaching for a global store handle.
"""

from dataclasses import dataclass
from typing import List, Optional

from stockroom.audit_log import AuditLogWriter
from stockroom.notifications import LowStockNotifier
from stockroom.record_store import RecordStoreClient
from stockroom.reports import ReportingEngine
from stockroom.sku_locks import SkuLockRegistry
from stockroom.transactions import InventoryMutationEngine


@dataclass
class Services:
    store: RecordStoreClient
    reporting: ReportingEngine
    notifier: LowStockNotifier
    mutations: InventoryMutationEngine


def build_services(
    store: Optional[RecordStoreClient] = None,
    recipients: Optional[List[str]] = None,
) -> Services:
    store = store or RecordStoreClient()
    reporting = ReportingEngine(store)
    notifier = LowStockNotifier(reporting, recipients=recipients)
    mutations = InventoryMutationEngine(
        store,
        audit_log=AuditLogWriter(store),
        notifier=notifier,
        locks=SkuLockRegistry(),
    )
    return Services(store=store, reporting=reporting, notifier=notifier, mutations=mutations)
