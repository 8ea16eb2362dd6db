"""
Inventory Mutation Engine

Receives and issues stock against the Inventory table and writes one audit
entry per successful mutation.

Each mutation runs read -> validate -> write -> log while holding the lock for
its normalized SKU, so two requests for the same SKU never act on the same
stale quantity. Input is validated before any store call; a rejected request
performs no writes.

All outcomes are returned as OperationResult - nothing is raised to the caller:
- validation and stock-level failures carry a message safe to show staff
- store failures are logged in full and surfaced as a generic message
- low stock alert failures are logged and never change the outcome
"""

import math
import re
from datetime import date, datetime
from typing import Any, Callable, Optional

from stockroom.audit_log import AuditLogWriter
from stockroom.config import INVENTORY_TABLE_NAME, SKU_MIN_LENGTH
from stockroom.exceptions import (
    InsufficientStockError,
    NotFoundError,
    NotificationError,
    StockroomError,
    StoreError,
    ValidationError,
)
from stockroom.filters import field_equals
from stockroom.models import (
    InventoryFields,
    InventoryItem,
    OperationResult,
    normalize_sku,
    utc_now,
)
from stockroom.notifications import LowStockNotifier
from stockroom.record_store import RecordStoreClient
from stockroom.sku_locks import SkuLockRegistry
from stockroom.logger import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR = "INTERNAL_ERROR"

_WHOLE_NUMBER = re.compile(r"[+-]?\d+")


def _whole_number(value: Any, minimum: int, message: str) -> int:
    """Parse an int (or whole-number string) that is at least `minimum`."""
    if isinstance(value, bool):
        raise ValidationError(message)
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and _WHOLE_NUMBER.fullmatch(value.strip()):
        number = int(value.strip())
    else:
        raise ValidationError(message)

    if number < minimum:
        raise ValidationError(message)
    return number


def _non_negative_number(value: Any, message: str) -> float:
    if isinstance(value, bool) or value is None:
        raise ValidationError(message)
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        raise ValidationError(message) from None
    if not math.isfinite(number) or number < 0:
        raise ValidationError(message)
    return number


def _required_text(value: Any, message: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValidationError(message)
    return text


def _optional_text(value: Any) -> Optional[str]:
    text = str(value).strip() if value is not None else ""
    return text or None


class InventoryMutationEngine:
    """Receive and issue operations over an injected record store."""

    def __init__(
        self,
        store: RecordStoreClient,
        audit_log: Optional[AuditLogWriter] = None,
        notifier: Optional[LowStockNotifier] = None,
        locks: Optional[SkuLockRegistry] = None,
        inventory_table: Optional[str] = None,
        sku_min_length: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.audit_log = audit_log or AuditLogWriter(store)
        self.notifier = notifier
        self.locks = locks or SkuLockRegistry()
        self.inventory_table = inventory_table or INVENTORY_TABLE_NAME
        self.sku_min_length = sku_min_length if sku_min_length is not None else SKU_MIN_LENGTH
        self.clock = clock or utc_now

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _today(self) -> date:
        return self.clock().date()

    def _validate_sku(self, item_sku: Any) -> str:
        sku = normalize_sku(item_sku)
        if not sku or len(sku) < self.sku_min_length:
            raise ValidationError(
                f"Invalid SKU {item_sku!r}",
                user_message="Item SKU must be provided and valid.",
            )
        return sku

    def _find_item(self, sku: str) -> Optional[InventoryItem]:
        record = self.store.find_one(self.inventory_table, field_equals(InventoryFields.SKU, sku))
        return InventoryItem.from_record(record) if record else None

    def _notify_low_stock(self, sku: str) -> None:
        if self.notifier is None:
            logger.info(f"SKU '{sku}' is at or below reorder point; no notifier configured")
            return
        try:
            self.notifier.notify()
        except NotificationError as e:
            logger.warning(f"Low stock alert for SKU '{sku}' was not delivered: {str(e)}")
        except Exception as e:
            logger.error(f"Unexpected error sending low stock alert for SKU '{sku}': {str(e)}", exc_info=True)

    # ------------------------------------------------------------------
    # Receive
    # ------------------------------------------------------------------

    def receive_stock(
        self,
        item_sku: Any,
        part_name: Any,
        quantity: Any,
        reorder_point: Any,
        unit_cost: Any,
        location_id: Any = None,
        vendor_name: Any = None,
    ) -> OperationResult:
        """
        Add stock for a SKU, creating the inventory record on first receipt.

        An existing record gets quantity += received amount, and its part name,
        unit cost, reorder point, location, vendor and date received are overwritten.
        One RECEIVE entry (+quantity) is appended to the transaction log.
        """
        try:
            sku = self._validate_sku(item_sku)
            qty = _whole_number(quantity, 1, "Quantity must be a whole positive number.")
            rp = _whole_number(reorder_point, 0, "Reorder Point must be a non-negative whole number.")
            cost = _non_negative_number(unit_cost, "Unit Cost must be a non-negative number.")
            name = _required_text(part_name, "Part Name must be provided.")
            vendor = _required_text(vendor_name, "Vendor Name must be provided.")
            location = _optional_text(location_id)
        except ValidationError as e:
            logger.warning(f"Receive rejected for SKU {item_sku!r}: {e.user_message}")
            return OperationResult.failure(e.user_message, e.code, sku=normalize_sku(item_sku) or None)

        logger.info(f"Receiving {qty} unit(s) of SKU '{sku}'")
        record_id = None
        inventory_written = False

        try:
            with self.locks.hold(sku):
                item = self._find_item(sku)
                today = self._today()

                if item is not None:
                    record_id = item.record_id
                    new_quantity = item.quantity + qty
                    self.store.update(self.inventory_table, [{
                        "id": record_id,
                        "fields": {
                            InventoryFields.QUANTITY: new_quantity,
                            InventoryFields.PART_NAME: name,
                            InventoryFields.REORDER_POINT: rp,
                            InventoryFields.UNIT_COST: cost,
                            InventoryFields.LOCATION_ID: location,
                            InventoryFields.VENDOR_NAME: vendor,
                            InventoryFields.DATE_RECEIVED: today.isoformat(),
                        },
                    }])
                    logger.debug(f"SKU '{sku}': {item.quantity} -> {new_quantity}")
                else:
                    new_quantity = qty
                    new_item = InventoryItem(
                        record_id=None,
                        sku=sku,
                        part_name=name,
                        quantity=new_quantity,
                        reorder_point=rp,
                        unit_cost=cost,
                        location_id=location,
                        vendor_name=vendor,
                        date_received=today,
                    )
                    created = self.store.create(self.inventory_table, [new_item.to_fields()])
                    record_id = created[0]["id"]
                    logger.info(f"Created inventory record {record_id} for new SKU '{sku}'")
                inventory_written = True

                self.audit_log.log_receive(sku, qty, record_id, vendor)

        except StoreError as e:
            if inventory_written:
                logger.error(
                    f"Inventory record {record_id} for SKU '{sku}' was updated but the RECEIVE "
                    f"log entry failed: {str(e)}",
                    exc_info=True,
                )
            else:
                logger.error(f"Error creating receiving transaction for SKU '{sku}': {str(e)}", exc_info=True)
            return OperationResult.failure(
                "Failed to process receiving transaction. Please try again later.", e.code, sku=sku
            )
        except Exception as e:
            logger.error(f"Unexpected error receiving SKU '{sku}': {str(e)}", exc_info=True)
            return OperationResult.failure(
                "Failed to process receiving transaction. Please try again later.", INTERNAL_ERROR, sku=sku
            )

        reorder_needed = new_quantity <= rp
        if reorder_needed:
            self._notify_low_stock(sku)

        message = f"Successfully received {qty} units of {name}. New stock level: {new_quantity}."
        logger.info(message)
        return OperationResult.ok(message, sku=sku, quantity=new_quantity, reorder_needed=reorder_needed)

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue_stock(self, item_sku: Any, quantity: Any) -> OperationResult:
        """
        Remove stock for a SKU.

        Fails with NOT_FOUND when the SKU has no inventory record and with
        INSUFFICIENT_STOCK when the request exceeds the quantity on hand; neither
        performs any write. On success the quantity is reduced, the last issue
        date stamped and one ISSUE entry (-quantity) appended. If the remaining
        quantity is at or below the reorder point the low stock alert runs.
        """
        try:
            sku = self._validate_sku(item_sku)
            qty = _whole_number(quantity, 1, "Quantity to issue must be a whole positive number.")
        except ValidationError as e:
            logger.warning(f"Issue rejected for SKU {item_sku!r}: {e.user_message}")
            return OperationResult.failure(e.user_message, e.code, sku=normalize_sku(item_sku) or None)

        logger.info(f"Issuing {qty} unit(s) of SKU '{sku}'")
        record_id = None
        inventory_written = False

        try:
            with self.locks.hold(sku):
                item = self._find_item(sku)
                if item is None:
                    raise NotFoundError(sku)
                if item.quantity < qty:
                    raise InsufficientStockError(sku, item.part_name, item.quantity, qty)

                record_id = item.record_id
                new_quantity = item.quantity - qty
                self.store.update(self.inventory_table, [{
                    "id": record_id,
                    "fields": {
                        InventoryFields.QUANTITY: new_quantity,
                        InventoryFields.LAST_ISSUE_DATE: self._today().isoformat(),
                    },
                }])
                inventory_written = True

                self.audit_log.log_issue(sku, qty, record_id)

        except (NotFoundError, InsufficientStockError) as e:
            logger.warning(f"Issue rejected for SKU '{sku}': {str(e)}")
            return OperationResult.failure(e.user_message, e.code, sku=sku)
        except StoreError as e:
            if inventory_written:
                logger.error(
                    f"Inventory record {record_id} for SKU '{sku}' was updated but the ISSUE "
                    f"log entry failed: {str(e)}",
                    exc_info=True,
                )
            else:
                logger.error(f"Error creating issuing transaction for SKU '{sku}': {str(e)}", exc_info=True)
            return OperationResult.failure(
                "Failed to process issuing transaction. Please try again later.", e.code, sku=sku
            )
        except Exception as e:
            logger.error(f"Unexpected error issuing SKU '{sku}': {str(e)}", exc_info=True)
            return OperationResult.failure(
                "Failed to process issuing transaction. Please try again later.", INTERNAL_ERROR, sku=sku
            )

        reorder_needed = new_quantity <= item.reorder_point
        if reorder_needed:
            logger.warning(
                f"REORDER ALERT: SKU '{sku}' at {new_quantity} (reorder point {item.reorder_point})"
            )
            self._notify_low_stock(sku)

        message = f"Successfully issued {qty} units of {item.part_name}. Remaining stock: {new_quantity}."
        logger.info(message)
        return OperationResult.ok(message, sku=sku, quantity=new_quantity, reorder_needed=reorder_needed)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup_stock(self, item_sku: Any) -> OperationResult:
        """Current stock details for one SKU, with a reorder status."""
        try:
            sku = self._validate_sku(item_sku)
            item = self._find_item(sku)
            if item is None:
                raise NotFoundError(sku)
        except (ValidationError, NotFoundError) as e:
            return OperationResult.failure(e.user_message, e.code, sku=normalize_sku(item_sku) or None)
        except StockroomError as e:
            logger.error(f"Error looking up SKU {item_sku!r}: {str(e)}", exc_info=True)
            return OperationResult.failure(e.user_message, e.code, sku=normalize_sku(item_sku) or None)

        status = "CRITICAL - REORDER NEEDED" if item.is_low_stock else "OK"
        message = (
            f"{item.part_name or 'N/A'} ({item.sku}): {item.quantity} on hand at "
            f"{item.location_id or 'N/A'}. Status: {status}"
        )
        return OperationResult.ok(
            message, sku=sku, quantity=item.quantity, item=item, reorder_needed=item.is_low_stock
        )
