#!/usr/bin/env python3
"""
Print the current stock record for one SKU.

Usage:
    python scripts/lookup_stock.py FLT-OIL-300
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from stockroom.services import build_services


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: lookup_stock.py SKU")
        return 2

    result = build_services().mutations.lookup_stock(argv[0])
    if not result.success:
        print(f"ERROR: {result.message}")
        return 1

    item = result.item
    print(f"STOCK REPORT for {item.part_name} ({item.sku})")
    print("-" * 43)
    print(f"Current Quantity:  {item.quantity}")
    print(f"Storage Location:  {item.location_id or 'N/A'}")
    print(f"Reorder Point:     {item.reorder_point}")
    print(f"Unit Cost:         {item.unit_cost:.2f}")
    print(f"Last Received:     {item.date_received or 'N/A'}")
    print(f"Last Issued:       {item.last_issue_date or 'N/A'}")
    print()
    print(f"STATUS: {'CRITICAL - REORDER NEEDED' if result.reorder_needed else 'OK'}")
    print("-" * 43)
    return 0


if __name__ == "__main__":
    sys.exit(main())
