"""
Access Policy: maps staff roles to the dashboards they may view.

Dashboard index (1-6):
    1: Stock Overview (Value & Quantity)
    2: Low Stock & Reorder Report
    3: Transaction History Log
    4: Inventory Turns & Aged Stock
    5: Vendor Performance Tracking
    6: Location Stock Breakdown

The table is fixed at import time. Unknown roles are denied everything.
"""

from types import MappingProxyType
from typing import Any, List, Optional

DASHBOARD_NAMES = (
    "Stock Overview (Value & Quantity)",
    "Low Stock & Reorder Report",
    "Transaction History Log",
    "Inventory Turns & Aged Stock",
    "Vendor Performance Tracking",
    "Location Stock Breakdown",
)

ACCESS_MAP = MappingProxyType({
    "Management": frozenset({1, 2, 3, 4, 5, 6}),
    "Sales": frozenset({1, 6}),
    "Warehouse": frozenset({2, 3, 6}),
    "Procurement": frozenset({2, 5}),
    "Finance": frozenset({1, 4, 5}),
    "Logistics": frozenset({3, 6}),
})


def is_authorized(role: Optional[str], dashboard_index: Any) -> bool:
    """True iff the role exists and the dashboard index is in its allowed set."""
    allowed = ACCESS_MAP.get(role) if isinstance(role, str) else None
    if not allowed:
        return False
    if isinstance(dashboard_index, bool) or not isinstance(dashboard_index, int):
        return False
    return dashboard_index in allowed


def allowed_dashboards(role: Optional[str]) -> List[int]:
    """Sorted dashboard indices the role may view (empty for unknown roles)."""
    if not isinstance(role, str):
        return []
    return sorted(ACCESS_MAP.get(role, ()))


def dashboard_name(dashboard_index: int) -> Optional[str]:
    if 1 <= dashboard_index <= len(DASHBOARD_NAMES):
        return DASHBOARD_NAMES[dashboard_index - 1]
    return None
