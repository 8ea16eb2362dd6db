"""
Data model for the stockroom engine.

Records come back from the store as plain dicts of the form
``{"id": ..., "createdTime": ..., "fields": {...}}``. The dataclasses here
map those dicts to typed objects, substituting defaults for missing fields.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from stockroom.config import DATE_FORMAT_STORE

TRANSACTION_RECEIVE = "RECEIVE"
TRANSACTION_ISSUE = "ISSUE"


class InventoryFields:
    SKU = "SKU"
    PART_NAME = "Part Name"
    QUANTITY = "Quantity"
    REORDER_POINT = "Reorder Point"
    UNIT_COST = "Unit Cost"
    LOCATION_ID = "Location ID"
    VENDOR_NAME = "Vendor Name"
    DATE_RECEIVED = "Date Received"
    LAST_ISSUE_DATE = "Last Issue Date"


class TransactionFields:
    SKU = "SKU"
    QUANTITY_CHANGE = "Quantity Change"
    TRANSACTION_TYPE = "Transaction Type"
    VENDOR_NAME = "Vendor Name"
    INVENTORY_ITEM = "Related Inventory Item"
    CREATED_TIME = "Created Time"


class UserFields:
    EMAIL = "Email"
    PASSWORD_HASH = "Password Hash"
    ROLE = "Role"
    DEPARTMENT = "Department"


class VendorMetricFields:
    VENDOR = "Vendor"
    QUALITY_SCORE = "Quality Score"
    DELIVERY_SCORE = "Delivery Score"
    COST_ADHERENCE = "Cost Adherence"
    MEASUREMENT_DATE = "Measurement Date"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_sku(sku: Any) -> str:
    """Canonical SKU form: trimmed and lowercased."""
    if sku is None:
        return ""
    return str(sku).strip().lower()


def parse_store_date(value: Any) -> Optional[date]:
    """Parse a store date ('2024-01-15' or a full ISO timestamp). None when blank or malformed."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], DATE_FORMAT_STORE).date()
    except ValueError:
        return None


def parse_store_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 store timestamp into an aware UTC datetime."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _number(value: Any, default: float = 0) -> float:
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _first_link(value: Any) -> Optional[str]:
    # Linked-record fields come back as a list of ids or names
    if isinstance(value, (list, tuple)):
        return str(value[0]) if value else None
    return str(value) if value else None


@dataclass
class InventoryItem:
    record_id: Optional[str]
    sku: str
    part_name: str = ""
    quantity: int = 0
    reorder_point: int = 0
    unit_cost: float = 0.0
    location_id: Optional[str] = None
    vendor_name: Optional[str] = None
    date_received: Optional[date] = None
    last_issue_date: Optional[date] = None

    @property
    def value(self) -> float:
        return self.quantity * self.unit_cost

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.reorder_point

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "InventoryItem":
        fields = record.get("fields") or {}
        return cls(
            record_id=record.get("id"),
            sku=normalize_sku(fields.get(InventoryFields.SKU)),
            part_name=fields.get(InventoryFields.PART_NAME) or "",
            quantity=int(_number(fields.get(InventoryFields.QUANTITY))),
            reorder_point=int(_number(fields.get(InventoryFields.REORDER_POINT))),
            unit_cost=_number(fields.get(InventoryFields.UNIT_COST)),
            location_id=fields.get(InventoryFields.LOCATION_ID) or None,
            vendor_name=fields.get(InventoryFields.VENDOR_NAME) or None,
            date_received=parse_store_date(fields.get(InventoryFields.DATE_RECEIVED)),
            last_issue_date=parse_store_date(fields.get(InventoryFields.LAST_ISSUE_DATE)),
        )

    def to_fields(self) -> Dict[str, Any]:
        fields = {
            InventoryFields.SKU: self.sku,
            InventoryFields.PART_NAME: self.part_name,
            InventoryFields.QUANTITY: self.quantity,
            InventoryFields.REORDER_POINT: self.reorder_point,
            InventoryFields.UNIT_COST: self.unit_cost,
            InventoryFields.LOCATION_ID: self.location_id,
            InventoryFields.VENDOR_NAME: self.vendor_name,
        }
        if self.date_received:
            fields[InventoryFields.DATE_RECEIVED] = self.date_received.strftime(DATE_FORMAT_STORE)
        if self.last_issue_date:
            fields[InventoryFields.LAST_ISSUE_DATE] = self.last_issue_date.strftime(DATE_FORMAT_STORE)
        return fields


@dataclass
class TransactionLogEntry:
    record_id: Optional[str]
    sku: str
    quantity_change: int
    transaction_type: str
    inventory_record_id: Optional[str] = None
    vendor_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "TransactionLogEntry":
        fields = record.get("fields") or {}
        created = fields.get(TransactionFields.CREATED_TIME) or record.get("createdTime")
        return cls(
            record_id=record.get("id"),
            sku=normalize_sku(fields.get(TransactionFields.SKU)),
            quantity_change=int(_number(fields.get(TransactionFields.QUANTITY_CHANGE))),
            transaction_type=str(fields.get(TransactionFields.TRANSACTION_TYPE) or "UNKNOWN").upper(),
            inventory_record_id=_first_link(fields.get(TransactionFields.INVENTORY_ITEM)),
            vendor_name=fields.get(TransactionFields.VENDOR_NAME) or None,
            created_at=parse_store_timestamp(created),
        )

    def to_fields(self) -> Dict[str, Any]:
        fields = {
            TransactionFields.SKU: self.sku,
            TransactionFields.QUANTITY_CHANGE: self.quantity_change,
            TransactionFields.TRANSACTION_TYPE: self.transaction_type,
        }
        if self.inventory_record_id:
            fields[TransactionFields.INVENTORY_ITEM] = [self.inventory_record_id]
        if self.vendor_name:
            fields[TransactionFields.VENDOR_NAME] = self.vendor_name
        return fields


@dataclass
class VendorMetricSample:
    vendor_name: Optional[str]
    quality_score: float = 0.0
    delivery_score: float = 0.0
    cost_adherence: float = 0.0
    measured_on: Optional[date] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "VendorMetricSample":
        fields = record.get("fields") or {}
        return cls(
            vendor_name=_first_link(fields.get(VendorMetricFields.VENDOR)),
            quality_score=_number(fields.get(VendorMetricFields.QUALITY_SCORE)),
            delivery_score=_number(fields.get(VendorMetricFields.DELIVERY_SCORE)),
            cost_adherence=_number(fields.get(VendorMetricFields.COST_ADHERENCE)),
            measured_on=parse_store_date(fields.get(VendorMetricFields.MEASUREMENT_DATE)),
        )


@dataclass
class AuthenticatedUser:
    id: str
    email: str
    role: Optional[str]
    department: Optional[str]

    def to_session(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email, "role": self.role, "department": self.department}


@dataclass
class OperationResult:
    """Outcome of a mutation or lookup, ready for the presentation layer."""

    success: bool
    message: str
    sku: Optional[str] = None
    quantity: Optional[int] = None
    item: Optional[InventoryItem] = None
    error_code: Optional[str] = None
    reorder_needed: bool = False

    @classmethod
    def ok(cls, message: str, **kwargs) -> "OperationResult":
        return cls(success=True, message=message, **kwargs)

    @classmethod
    def failure(cls, message: str, error_code: str, **kwargs) -> "OperationResult":
        return cls(success=False, message=message, error_code=error_code, **kwargs)

    @property
    def status(self) -> str:
        return "success" if self.success else "error"
