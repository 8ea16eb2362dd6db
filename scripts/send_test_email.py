#!/usr/bin/env python3
"""
Send a diagnostic email to LOW_STOCK_ALERT_RECIPIENTS to verify SMTP settings.

Most common causes of failure:
1. SMTP_PASSWORD (app password) is incorrect, expired, or was revoked.
2. The SMTP account requires 2-factor authentication for app passwords.
3. SMTP_SERVER / SMTP_PORT do not accept STARTTLS.
"""

import sys
from datetime import datetime
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from stockroom.config import LOW_STOCK_ALERT_RECIPIENTS
from stockroom.email_sender import send_email


def main() -> int:
    print("--- STARTING EMAIL DEBUG TEST ---")

    if not LOW_STOCK_ALERT_RECIPIENTS:
        print("ERROR: LOW_STOCK_ALERT_RECIPIENTS is not set.")
        print("Set LOW_STOCK_ALERT_RECIPIENTS, SMTP_SERVER, SMTP_USER and SMTP_PASSWORD.")
        return 1

    subject = "[STOCKROOM DEBUG] Test email from the inventory system"
    body = (
        "This is an automatic test email to check the notification settings.\n\n"
        "If you received it, SMTP configuration and authentication are correct.\n\n"
        f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n"
    )

    success, error = send_email(LOW_STOCK_ALERT_RECIPIENTS, subject, body)
    if success:
        print("SUCCESS: test email sent. Check the recipients' inboxes.")
        return 0

    print("FAILED TO SEND EMAIL")
    print(f"ERROR DETAILS: {error}")
    print(__doc__)
    return 1


if __name__ == "__main__":
    sys.exit(main())
