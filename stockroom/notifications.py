"""
Low Stock Notification Trigger

Re-runs the Low Stock report after a stock mutation and emails the plain-text
table to the configured recipients when anything is at or below its reorder
point. Notification is best effort: callers catch NotificationError and carry on.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from stockroom.config import LOW_STOCK_ALERT_RECIPIENTS, LOW_STOCK_EMAIL_SUBJECT_TEMPLATE
from stockroom.email_sender import send_email
from stockroom.exceptions import NotificationError
from stockroom.models import utc_now
from stockroom.reports import ReportingEngine
from stockroom.logger import get_logger

logger = get_logger(__name__)

RULE = "-" * 67

EmailSender = Callable[[List[str], str, str], Tuple[bool, Optional[str]]]


def _cell(value: Any, width: int) -> str:
    text = "N/A" if value is None else str(value)
    return text[:width].ljust(width)


def render_low_stock_text(metrics: List[Dict[str, Any]]) -> str:
    """
    Render low stock rows as the fixed-width table used by the console report and the alert email.

    Args:
        metrics: Rows from ReportingEngine.low_stock_report()["metrics"]
    """
    if not metrics:
        return "REPORT: All stock levels are currently OK."

    lines = [
        f"{len(metrics)} ITEM(S) NEED IMMEDIATE ATTENTION",
        RULE,
        f"{_cell('SKU', 15)} | {_cell('Part Name', 25)} | {_cell('Qty', 5)} | {_cell('Reorder', 7)} | Location",
        RULE,
    ]
    for row in metrics:
        lines.append(
            f"{_cell(row.get('sku'), 15)} | {_cell(row.get('part_name'), 25)} | "
            f"{_cell(row.get('quantity'), 5)} | {_cell(row.get('reorder_point'), 7)} | "
            f"{row.get('location_id') or 'N/A'}"
        )
    lines.append(RULE)
    return "\n".join(lines)


class LowStockNotifier:
    def __init__(
        self,
        reporting: ReportingEngine,
        recipients: Optional[List[str]] = None,
        sender: Optional[EmailSender] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.reporting = reporting
        self.recipients = list(recipients) if recipients is not None else list(LOW_STOCK_ALERT_RECIPIENTS)
        self.sender = sender or send_email
        self.clock = clock or utc_now

    def compose(self, metrics: List[Dict[str, Any]]) -> Tuple[str, str]:
        """Return (subject, body) for an alert covering the given low stock rows."""
        subject = LOW_STOCK_EMAIL_SUBJECT_TEMPLATE.format(count=len(metrics))
        body = "\n".join([
            "Automated low stock alert.",
            "",
            "The following items are at or below their reorder point:",
            "",
            render_low_stock_text(metrics),
            "",
            f"Generated: {self.clock().strftime('%Y-%m-%d %H:%M UTC')}",
        ])
        return subject, body

    def notify(self) -> bool:
        """
        Send the low stock alert if any item needs reordering.

        Returns:
            True if an alert was sent, False if there was nothing to report

        Raises:
            NotificationError: the report could not be built, no recipients are
                configured, or the email could not be sent
        """
        report = self.reporting.low_stock_report()
        if not report.get("success"):
            raise NotificationError(f"Low stock report failed: {report.get('message')}")

        metrics = report.get("metrics", [])
        if not metrics:
            logger.info("Low stock check: all stock levels are OK, no alert sent")
            return False

        if not self.recipients:
            raise NotificationError("No low stock alert recipients configured (LOW_STOCK_ALERT_RECIPIENTS)")

        subject, body = self.compose(metrics)
        success, error = self.sender(self.recipients, subject, body)
        if not success:
            raise NotificationError(f"Low stock alert email failed: {error}")

        logger.info(f"Low stock alert sent for {len(metrics)} item(s)")
        return True
