"""
Reporting Engine

Six read-only dashboards derived from the Inventory and Transaction Log tables:

1. Stock Overview (Value & Quantity)
2. Low Stock & Reorder Report
3. Transaction History Log
4. Inventory Turns & Aged Stock
5. Vendor Performance Tracking
6. Location Stock Breakdown

Every report returns a plain dict with a ``success`` flag. Reports never raise:
failures are logged with full detail and returned as ``success=False`` with a
user-safe ``message`` and an empty default data shape. Money values are
two-decimal strings. Reports take no locks and may observe slightly stale data.

This module is pure data processing - no UI or email logic.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from stockroom.config import (
    AGE_BUCKET_OVERFLOW,
    AGE_BUCKETS,
    AGED_STOCK_THRESHOLD_DAYS,
    ANNUAL_COGS,
    DATE_FORMAT_STORE,
    DATETIME_FORMAT_DISPLAY,
    INVENTORY_TABLE_NAME,
    TRANSACTION_HISTORY_LIMIT,
    TRANSACTION_LOG_TABLE_NAME,
    TURNOVER_WINDOW_DAYS,
    UNASSIGNED_LOCATION,
    VENDOR_METRICS_TABLE_NAME,
)
from stockroom.filters import field_compare, field_equals, field_ref
from stockroom.models import (
    TRANSACTION_ISSUE,
    TRANSACTION_RECEIVE,
    InventoryFields,
    InventoryItem,
    TransactionFields,
    TransactionLogEntry,
    VendorMetricSample,
    utc_now,
)
from stockroom.record_store import RecordStoreClient
from stockroom.logger import get_logger

logger = get_logger(__name__)

DAYS_PER_YEAR = 365
UNKNOWN_VENDOR = "Unknown Vendor"

ITEM_COLUMNS = ["sku", "part_name", "quantity", "reorder_point", "unit_cost", "location_id", "value"]
SCORE_COLUMNS = ["quality_score", "delivery_score", "cost_adherence"]


def format_money(value: Any) -> str:
    """Format a number as a two-decimal string. Blank or invalid values become "0.00"."""
    try:
        return f"{float(value):.2f}"
    except (TypeError, ValueError):
        return "0.00"


def _format_date(value: Optional[date]) -> str:
    return value.strftime(DATE_FORMAT_STORE) if value else "N/A"


def _location(item: InventoryItem) -> str:
    return item.location_id or UNASSIGNED_LOCATION


def age_category(age_days: int) -> str:
    """Bucket label for an item age in whole days."""
    for upper_bound, label in AGE_BUCKETS:
        if age_days <= upper_bound:
            return label
    return AGE_BUCKET_OVERFLOW


def _items_frame(items: List[InventoryItem]) -> pd.DataFrame:
    rows = [
        {
            "sku": item.sku,
            "part_name": item.part_name,
            "quantity": item.quantity,
            "reorder_point": item.reorder_point,
            "unit_cost": item.unit_cost,
            "location_id": _location(item),
            "value": item.value,
        }
        for item in items
    ]
    return pd.DataFrame(rows, columns=ITEM_COLUMNS)


def _failure(message: str, **defaults) -> Dict[str, Any]:
    result = {"success": False, "message": message}
    result.update(defaults)
    return result


class ReportingEngine:
    """Builds the six dashboards from an injected record store client."""

    def __init__(
        self,
        store: RecordStoreClient,
        inventory_table: Optional[str] = None,
        transaction_table: Optional[str] = None,
        vendor_metrics_table: Optional[str] = None,
        history_limit: Optional[int] = None,
        aged_threshold_days: Optional[int] = None,
        annual_cogs: Optional[float] = None,
        turnover_window_days: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.inventory_table = inventory_table or INVENTORY_TABLE_NAME
        self.transaction_table = transaction_table or TRANSACTION_LOG_TABLE_NAME
        # An empty string disables the score-based vendor ranking
        self.vendor_metrics_table = (
            vendor_metrics_table if vendor_metrics_table is not None else VENDOR_METRICS_TABLE_NAME
        )
        self.history_limit = history_limit or TRANSACTION_HISTORY_LIMIT
        self.aged_threshold_days = (
            aged_threshold_days if aged_threshold_days is not None else AGED_STOCK_THRESHOLD_DAYS
        )
        self.annual_cogs = annual_cogs if annual_cogs is not None else ANNUAL_COGS
        self.turnover_window_days = turnover_window_days or TURNOVER_WINDOW_DAYS
        self.clock = clock or utc_now

        self._dashboards = {
            1: self.stock_overview_report,
            2: self.low_stock_report,
            3: self.transaction_history_report,
            4: self.inventory_turns_report,
            5: self.vendor_performance_report,
            6: self.location_breakdown_report,
        }

    # ------------------------------------------------------------------
    # Loaders
    # ------------------------------------------------------------------

    def _load_items(self, filter=None, sort=None) -> List[InventoryItem]:
        records = self.store.select(self.inventory_table, filter=filter, sort=sort)
        return [InventoryItem.from_record(record) for record in records]

    def _load_entries(self, filter=None, sort=None, max_records=None) -> List[TransactionLogEntry]:
        records = self.store.select(self.transaction_table, filter=filter, sort=sort, max_records=max_records)
        return [TransactionLogEntry.from_record(record) for record in records]

    @staticmethod
    def _unit_cost_lookup(items: List[InventoryItem]) -> Callable[[TransactionLogEntry], float]:
        by_id = {item.record_id: item.unit_cost for item in items if item.record_id}
        by_sku = {item.sku: item.unit_cost for item in items}

        def unit_cost(entry: TransactionLogEntry) -> float:
            if entry.inventory_record_id in by_id:
                return by_id[entry.inventory_record_id]
            return by_sku.get(entry.sku, 0.0)

        return unit_cost

    def _now(self) -> datetime:
        now = self.clock()
        return now if now.tzinfo else now.replace(tzinfo=timezone.utc)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def report_for_dashboard(self, dashboard_index: int) -> Dict[str, Any]:
        """Run the report behind dashboard 1-6."""
        report = self._dashboards.get(dashboard_index)
        if report is None:
            logger.warning(f"Requested unknown dashboard {dashboard_index}")
            return _failure(f"Unknown dashboard: {dashboard_index}")
        return report()

    # ------------------------------------------------------------------
    # 1. Stock Overview
    # ------------------------------------------------------------------

    def stock_overview_report(self) -> Dict[str, Any]:
        """
        Per-item value and the total inventory value, with value grouped by location.

        Returns:
            {
                "success": True,
                "data": [{sku, part_name, quantity, location_id, unit_cost, reorder_point, value}],
                "total_inventory_value": "35.00",
                "location_chart_data": [{"label": location, "value": "12.00"}],
            }
        """
        try:
            logger.info("Generating Stock Overview report")
            items = sorted(self._load_items(), key=lambda item: item.sku)
            df = _items_frame(items)

            total_value = float(df["value"].sum())
            by_location = df.groupby("location_id", sort=True)["value"].sum()

            data = [
                {
                    "sku": item.sku,
                    "part_name": item.part_name or "N/A",
                    "quantity": item.quantity,
                    "location_id": _location(item),
                    "unit_cost": format_money(item.unit_cost),
                    "reorder_point": item.reorder_point,
                    "value": format_money(item.value),
                }
                for item in items
            ]
            location_chart_data = [
                {"label": str(location), "value": format_money(value)}
                for location, value in by_location.items()
            ]

            logger.info(f"Stock Overview: {len(data)} item(s), total value {format_money(total_value)}")
            return {
                "success": True,
                "data": data,
                "total_inventory_value": format_money(total_value),
                "location_chart_data": location_chart_data,
            }

        except Exception as e:
            logger.error(f"Error generating Stock Overview report: {str(e)}", exc_info=True)
            return _failure(
                "Failed to load stock overview data.",
                data=[],
                total_inventory_value="0.00",
                location_chart_data=[],
            )

    # ------------------------------------------------------------------
    # 2. Low Stock
    # ------------------------------------------------------------------

    def low_stock_report(self) -> Dict[str, Any]:
        """
        Items whose quantity is at or below their reorder point, emptiest first.

        Returns:
            {
                "success": True,
                "critical_count": 2,
                "metrics": [{sku, part_name, quantity, reorder_point, location_id}],
                "low_stock_chart_data": [{"label": "Critical Items", ...}, {"label": "Items OK", ...}],
            }
        """
        try:
            logger.info("Generating Low Stock report")
            low_stock_filter = field_compare(
                InventoryFields.QUANTITY, "<=", field_ref(InventoryFields.REORDER_POINT)
            )
            candidates = self._load_items(
                filter=low_stock_filter,
                sort=[(InventoryFields.QUANTITY, "asc")],
            )
            # Re-check client side so blank fields follow the same rule as the store
            low_items = sorted(
                (item for item in candidates if item.is_low_stock),
                key=lambda item: (item.quantity, item.sku),
            )
            total_items = len(self.store.select(self.inventory_table, fields=[InventoryFields.SKU]))

            metrics = [
                {
                    "sku": item.sku,
                    "part_name": item.part_name or "N/A",
                    "quantity": item.quantity,
                    "reorder_point": item.reorder_point,
                    "location_id": _location(item),
                }
                for item in low_items
            ]
            critical_count = len(metrics)

            logger.info(f"Low Stock: {critical_count} of {total_items} item(s) at or below reorder point")
            return {
                "success": True,
                "critical_count": critical_count,
                "metrics": metrics,
                "low_stock_chart_data": [
                    {"label": "Critical Items", "value": critical_count},
                    {"label": "Items OK", "value": max(total_items - critical_count, 0)},
                ],
            }

        except Exception as e:
            logger.error(f"Error generating Low Stock report: {str(e)}", exc_info=True)
            return _failure(
                "Failed to load low stock data.",
                critical_count=0,
                metrics=[],
                low_stock_chart_data=[],
            )

    # ------------------------------------------------------------------
    # 3. Transaction History
    # ------------------------------------------------------------------

    def transaction_history_report(self, limit: Optional[int] = None) -> Dict[str, Any]:
        """
        Most recent log entries, newest first, valued at the linked item's current unit cost.
        """
        try:
            limit = limit or self.history_limit
            if limit <= 0:
                raise ValueError(f"History limit must be positive, got {limit}")

            logger.info(f"Generating Transaction History report (limit={limit})")
            entries = self._load_entries(
                sort=[(TransactionFields.CREATED_TIME, "desc")],
                max_records=limit,
            )
            oldest = datetime.min.replace(tzinfo=timezone.utc)
            entries = sorted(entries, key=lambda entry: entry.created_at or oldest, reverse=True)[:limit]
            unit_cost = self._unit_cost_lookup(self._load_items())

            data = [
                {
                    "date": entry.created_at.strftime(DATETIME_FORMAT_DISPLAY) if entry.created_at else "N/A",
                    "type": entry.transaction_type,
                    "sku": entry.sku or "N/A",
                    "quantity": entry.quantity_change,
                    "value": format_money(entry.quantity_change * unit_cost(entry)),
                    "vendor": entry.vendor_name or "N/A",
                }
                for entry in entries
            ]

            logger.info(f"Transaction History: {len(data)} entr(ies)")
            return {"success": True, "data": data}

        except Exception as e:
            logger.error(f"Error generating Transaction History report: {str(e)}", exc_info=True)
            return _failure("Failed to load transaction history data.", data=[])

    # ------------------------------------------------------------------
    # 4. Inventory Turns & Aged Stock
    # ------------------------------------------------------------------

    def _annual_cogs(self, items: List[InventoryItem], now: datetime):
        """Return (annual COGS, basis label)."""
        if self.annual_cogs is not None:
            return float(self.annual_cogs), "configured_cogs"

        window_start = now - timedelta(days=self.turnover_window_days)
        issues = self._load_entries(filter=field_equals(TransactionFields.TRANSACTION_TYPE, TRANSACTION_ISSUE))
        unit_cost = self._unit_cost_lookup(items)
        window_cogs = sum(
            abs(entry.quantity_change) * unit_cost(entry)
            for entry in issues
            if entry.created_at is not None and entry.created_at >= window_start
        )
        return window_cogs * DAYS_PER_YEAR / self.turnover_window_days, "issue_history"

    def inventory_turns_report(self) -> Dict[str, Any]:
        """
        Age buckets, aged stock value and inventory turns / days of inventory outstanding.

        Age is whole days between today and Date Received (0 when unknown). Items older
        than the aged threshold count towards aged stock value. Turns = annual COGS /
        current inventory value; DIO = 365 / turns ("N/A" when turns is zero).
        """
        try:
            logger.info("Generating Inventory Turns report")
            now = self._now()
            today = now.date()
            items = sorted(self._load_items(), key=lambda item: item.sku)

            rows = []
            for item in items:
                age_days = max((today - item.date_received).days, 0) if item.date_received else 0
                rows.append({
                    "sku": item.sku,
                    "part_name": item.part_name or "N/A",
                    "quantity": item.quantity,
                    "value_amount": item.value,
                    "age_days": age_days,
                    "age_category": age_category(age_days),
                    "date_received": _format_date(item.date_received),
                    "last_issued": _format_date(item.last_issue_date),
                })

            df = pd.DataFrame(rows, columns=[
                "sku", "part_name", "quantity", "value_amount", "age_days",
                "age_category", "date_received", "last_issued",
            ])
            total_value = float(df["value_amount"].sum())
            aged_value = float(df.loc[df["age_days"] > self.aged_threshold_days, "value_amount"].sum())

            bucket_labels = [label for _, label in AGE_BUCKETS] + [AGE_BUCKET_OVERFLOW]
            by_bucket = df.groupby("age_category")["value_amount"].sum().reindex(bucket_labels, fill_value=0)
            age_chart_data = [
                {"label": label, "value": format_money(value)}
                for label, value in by_bucket.items()
            ]

            annual_cogs, basis = self._annual_cogs(items, now)
            turns = annual_cogs / total_value if total_value > 0 else 0.0
            dio = f"{DAYS_PER_YEAR / turns:.0f}" if turns > 0 else "N/A"

            data = [
                {
                    "sku": row["sku"],
                    "part_name": row["part_name"],
                    "quantity": row["quantity"],
                    "value": format_money(row["value_amount"]),
                    "age_days": row["age_days"],
                    "age_category": row["age_category"],
                    "date_received": row["date_received"],
                    "last_issued": row["last_issued"],
                }
                for row in rows
            ]

            logger.info(
                f"Inventory Turns: turns={turns:.2f} ({basis}), aged value {format_money(aged_value)} "
                f"(> {self.aged_threshold_days} days)"
            )
            return {
                "success": True,
                "data": data,
                "total_inventory_value": format_money(total_value),
                "aged_stock_value": format_money(aged_value),
                "aged_threshold_days": self.aged_threshold_days,
                "age_chart_data": age_chart_data,
                "inventory_turns": f"{turns:.2f}",
                "dio": dio,
                "turnover_basis": basis,
            }

        except Exception as e:
            logger.error(f"Error generating Inventory Turns report: {str(e)}", exc_info=True)
            return _failure(
                "Failed to load Inventory Turns data due to a server error.",
                data=[],
                total_inventory_value="0.00",
                aged_stock_value="0.00",
                aged_threshold_days=self.aged_threshold_days,
                age_chart_data=[],
                inventory_turns="0.00",
                dio="N/A",
                turnover_basis=None,
            )

    # ------------------------------------------------------------------
    # 5. Vendor Performance
    # ------------------------------------------------------------------

    def _vendor_scores(self) -> List[Dict[str, Any]]:
        records = self.store.select(self.vendor_metrics_table)
        samples = [VendorMetricSample.from_record(record) for record in records]
        samples = [s for s in samples if s.vendor_name and s.vendor_name != UNKNOWN_VENDOR]
        if not samples:
            return []

        df = pd.DataFrame(
            [
                {
                    "vendor_name": s.vendor_name,
                    "quality_score": s.quality_score,
                    "delivery_score": s.delivery_score,
                    "cost_adherence": s.cost_adherence,
                }
                for s in samples
            ]
        )
        agg = df.groupby("vendor_name")[SCORE_COLUMNS].mean().round(1)
        agg["overall_score"] = agg[SCORE_COLUMNS].mean(axis=1).round(1)
        agg["sample_count"] = df.groupby("vendor_name").size()
        agg = agg.reset_index().sort_values(["overall_score", "vendor_name"], ascending=[False, True])

        return [
            {
                "vendor_name": str(row["vendor_name"]),
                "quality_score": float(row["quality_score"]),
                "delivery_score": float(row["delivery_score"]),
                "cost_adherence": float(row["cost_adherence"]),
                "overall_score": float(row["overall_score"]),
                "sample_count": int(row["sample_count"]),
            }
            for _, row in agg.iterrows()
        ]

    def _vendor_receipts(self) -> List[Dict[str, Any]]:
        receipts = self._load_entries(filter=field_equals(TransactionFields.TRANSACTION_TYPE, TRANSACTION_RECEIVE))
        if not receipts:
            return []

        unit_cost = self._unit_cost_lookup(self._load_items())
        df = pd.DataFrame(
            [
                {
                    "vendor_name": entry.vendor_name or UNKNOWN_VENDOR,
                    "quantity": entry.quantity_change,
                    "value": entry.quantity_change * unit_cost(entry),
                }
                for entry in receipts
            ]
        )
        agg = df.groupby("vendor_name").agg(
            received_quantity=("quantity", "sum"),
            received_value=("value", "sum"),
            receipt_count=("quantity", "size"),
        )
        agg = agg.reset_index().sort_values(["received_value", "vendor_name"], ascending=[False, True])

        return [
            {
                "vendor_name": str(row["vendor_name"]),
                "received_quantity": int(row["received_quantity"]),
                "received_value": format_money(row["received_value"]),
                "receipt_count": int(row["receipt_count"]),
            }
            for _, row in agg.iterrows()
        ]

    def vendor_performance_report(self) -> Dict[str, Any]:
        """
        Vendor ranking by average quality, delivery and cost adherence scores, plus
        received quantity and value per vendor from RECEIVE transactions.
        """
        try:
            logger.info("Generating Vendor Performance report")
            scores = self._vendor_scores() if self.vendor_metrics_table else []
            receipts = self._vendor_receipts()

            logger.info(f"Vendor Performance: {len(scores)} scored vendor(s), {len(receipts)} supplying vendor(s)")
            return {"success": True, "data": scores, "receipts": receipts}

        except Exception as e:
            logger.error(f"Error generating Vendor Performance report: {str(e)}", exc_info=True)
            return _failure("Failed to load vendor performance data.", data=[], receipts=[])

    # ------------------------------------------------------------------
    # 6. Location Breakdown
    # ------------------------------------------------------------------

    def location_breakdown_report(self) -> Dict[str, Any]:
        """
        In-stock items (quantity > 0) grouped by location, with quantity and value totals.
        """
        try:
            logger.info("Generating Location Breakdown report")
            items = self._load_items(filter=field_compare(InventoryFields.QUANTITY, ">", 0))
            items = sorted((item for item in items if item.quantity > 0), key=lambda item: (_location(item), item.sku))
            df = _items_frame(items)

            totals = df.groupby("location_id", sort=True).agg(
                total_quantity=("quantity", "sum"),
                total_value=("value", "sum"),
            )

            data = [
                {
                    "sku": item.sku,
                    "part_name": item.part_name or "N/A",
                    "quantity": item.quantity,
                    "location_id": _location(item),
                }
                for item in items
            ]
            locations = []
            for location, row in totals.iterrows():
                locations.append({
                    "location_id": str(location),
                    "items": [entry for entry in data if entry["location_id"] == location],
                    "total_quantity": int(row["total_quantity"]),
                    "total_value": format_money(row["total_value"]),
                })
            location_chart_data = [
                {"label": entry["location_id"], "value": entry["total_quantity"]}
                for entry in locations
            ]

            logger.info(f"Location Breakdown: {len(data)} item(s) across {len(locations)} location(s)")
            return {
                "success": True,
                "data": data,
                "locations": locations,
                "location_chart_data": location_chart_data,
            }

        except Exception as e:
            logger.error(f"Error generating Location Breakdown report: {str(e)}", exc_info=True)
            return _failure(
                "Failed to load location breakdown data.",
                data=[],
                locations=[],
                location_chart_data=[],
            )
