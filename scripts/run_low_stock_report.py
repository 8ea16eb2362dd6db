#!/usr/bin/env python3
"""
Cron Runner Script for the Low Stock Report

Prints every item at or below its reorder point and, with --email, sends the
low stock alert to LOW_STOCK_ALERT_RECIPIENTS.

CRON CONFIGURATION:
-------------------
# Run every weekday at 07:00 server time and email the result
0 7 * * 1-5 /usr/bin/python3 /path/to/project/scripts/run_low_stock_report.py --email >> /path/to/project/logs/cron.log 2>&1

ENVIRONMENT VARIABLES:
----------------------
Cron does NOT automatically load .env files; stockroom.config calls load_dotenv()
relative to the working directory, so either cd into the project first or export
the variables in the crontab.

REQUIRED ENVIRONMENT VARIABLES:
- AIRTABLE_API_KEY
- AIRTABLE_BASE_ID
- INVENTORY_TABLE_NAME (default: Inventory)
- LOW_STOCK_ALERT_RECIPIENTS (only with --email)
- SMTP_SERVER, SMTP_USER, SMTP_PASSWORD, SMTP_PORT (only with --email)

EXIT CODES:
- 0: report generated (and alert sent or not needed)
- 1: report or alert failed
"""

import argparse
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from stockroom.exceptions import NotificationError
from stockroom.notifications import render_low_stock_text
from stockroom.services import build_services


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Print the low stock report.")
    parser.add_argument("--email", action="store_true", help="also send the low stock alert email")
    args = parser.parse_args(argv)

    print("=" * 70)
    print("GENERATING LOW STOCK REPORT")
    print("=" * 70)

    services = build_services()
    report = services.reporting.low_stock_report()
    if not report["success"]:
        print(f"Error: {report['message']}")
        return 1

    print(render_low_stock_text(report["metrics"]))
    print()

    if args.email:
        try:
            sent = services.notifier.notify()
        except NotificationError as e:
            print(f"Alert email failed: {str(e)}")
            return 1
        print("Alert email sent." if sent else "No alert needed.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
