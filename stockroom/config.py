"""
Configuration file for the stockroom inventory engine.

All configurable values must be defined here - no hardcoded values in logic files.
Update these values as needed without modifying the implementation code.

IMPORTANT: Sensitive values (store credentials, email recipients, SMTP login)
are read from environment variables.
Set these in your .env file or system environment before starting the service.
"""

import os
import logging
from typing import Optional

from dotenv import load_dotenv

load_dotenv()  # loads variables from .env into os.environ

# Set up logger for configuration warnings
_logger = logging.getLogger(__name__)


def _int_setting(name: str, default: int, minimum: Optional[int] = None) -> int:
    raw = os.getenv(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        _logger.warning(f"Invalid {name} value '{raw}'. Using default: {default}.")
        return default
    if minimum is not None and value < minimum:
        _logger.warning(f"{name} must be at least {minimum}, got {value}. Using default: {default}.")
        return default
    return value


def _float_setting(name: str, default: float) -> float:
    raw = os.getenv(name, str(default))
    try:
        return float(raw)
    except ValueError:
        _logger.warning(f"Invalid {name} value '{raw}'. Using default: {default}.")
        return default


# ============================================================================
# Record Store (Airtable) Configuration
# ============================================================================

# Expected format in .env:
#   AIRTABLE_API_KEY=pat_xxx
#   AIRTABLE_BASE_ID=appXXXXXXXXXXXXXX
AIRTABLE_API_KEY = os.getenv("AIRTABLE_API_KEY", "")
AIRTABLE_BASE_ID = os.getenv("AIRTABLE_BASE_ID", "")

# REST root, overridable for proxies and test doubles
AIRTABLE_API_URL = os.getenv("AIRTABLE_API_URL", "https://api.airtable.com/v0").rstrip("/")

if not AIRTABLE_API_KEY or not AIRTABLE_BASE_ID:
    _logger.warning(
        "AIRTABLE_API_KEY or AIRTABLE_BASE_ID is not set. "
        "Record store calls will fail until both are configured."
    )

# Table names
INVENTORY_TABLE_NAME = os.getenv("INVENTORY_TABLE_NAME", "Inventory")
TRANSACTION_LOG_TABLE_NAME = os.getenv("TRANSACTION_LOG_TABLE_NAME", "Transaction Log")
USERS_TABLE_NAME = os.getenv("USERS_TABLE_NAME", "Users")

# Set to an empty string to disable score-based vendor ranking
VENDOR_METRICS_TABLE_NAME = os.getenv("VENDOR_METRICS_TABLE_NAME", "Vendor Metrics")

# Timeout in seconds applied to every record store request
RECORD_STORE_TIMEOUT = _float_setting("RECORD_STORE_TIMEOUT", 10.0)

# Airtable accepts at most 10 records per create/update request
RECORD_STORE_BATCH_SIZE = 10

# ============================================================================
# Low Stock Alert Email Configuration
# ============================================================================

# Expected format in .env: LOW_STOCK_ALERT_RECIPIENTS=stores@company.com,buyer@company.com
# Values are split by comma, stripped of whitespace, and empty values are ignored
_alert_recipients_str = os.getenv("LOW_STOCK_ALERT_RECIPIENTS", "")

LOW_STOCK_ALERT_RECIPIENTS = [
    email.strip()
    for email in _alert_recipients_str.split(",")
    if email.strip()
]

# Log warning if no recipients configured (but don't log actual email addresses)
if not LOW_STOCK_ALERT_RECIPIENTS:
    _logger.warning(
        "LOW_STOCK_ALERT_RECIPIENTS environment variable is not set or is empty. "
        "Low stock alerts will be logged but not emailed."
    )
else:
    _logger.info(f"Loaded {len(LOW_STOCK_ALERT_RECIPIENTS)} low stock alert recipient(s)")

# {count} will be replaced with the number of items at or below reorder point
LOW_STOCK_EMAIL_SUBJECT_TEMPLATE = "Low Stock Alert: {count} item(s) at or below reorder point"

# ============================================================================
# SMTP Configuration
# ============================================================================

# SMTP settings are read from environment variables for security:
# - SMTP_SERVER: SMTP server address (e.g., 'smtp.gmail.com')
# - SMTP_PORT: SMTP port (default: 587 for TLS)
# - SMTP_USER: SMTP username/email
# - SMTP_PASSWORD: SMTP password or app-specific password

# Default SMTP port (used if SMTP_PORT environment variable is not set)
DEFAULT_SMTP_PORT = 587

# Connection and socket timeout for SMTP sessions
EMAIL_TIMEOUT_SECONDS = _float_setting("EMAIL_TIMEOUT_SECONDS", 15.0)

# Delay in seconds between sending emails to different recipients
# This helps avoid SMTP rate limits
EMAIL_DELAY_SECONDS = 1.0

# ============================================================================
# Transaction Rules
# ============================================================================

# Minimum length of a normalized SKU
SKU_MIN_LENGTH = _int_setting("SKU_MIN_LENGTH", 3, minimum=1)

# ============================================================================
# Report Configuration
# ============================================================================

# Number of log entries shown on the Transaction History dashboard
TRANSACTION_HISTORY_LIMIT = _int_setting("TRANSACTION_HISTORY_LIMIT", 50, minimum=1)

# Items older than this many days (since Date Received) count as aged stock
AGED_STOCK_THRESHOLD_DAYS = _int_setting("AGED_STOCK_THRESHOLD_DAYS", 90, minimum=0)

# Annual cost of goods sold used for inventory turns.
# Leave unset to derive COGS from ISSUE transactions in the trailing window.
_annual_cogs_str = os.getenv("ANNUAL_COGS", "").strip()
ANNUAL_COGS = None
if _annual_cogs_str:
    try:
        ANNUAL_COGS = float(_annual_cogs_str)
    except ValueError:
        _logger.warning(f"Invalid ANNUAL_COGS value '{_annual_cogs_str}'. Deriving COGS from issue history.")

# Trailing window (days) of ISSUE transactions used when ANNUAL_COGS is unset
TURNOVER_WINDOW_DAYS = _int_setting("TURNOVER_WINDOW_DAYS", 365, minimum=1)

# Upper bounds (inclusive, in days) of the aged stock buckets; the last bucket is open-ended
AGE_BUCKETS = [
    (30, "0-30 Days"),
    (90, "31-90 Days"),
    (180, "91-180 Days"),
]
AGE_BUCKET_OVERFLOW = "180+ Days"

# Location bucket used when an item has no Location ID
UNASSIGNED_LOCATION = "Unassigned"

# ============================================================================
# Date Format Configuration
# ============================================================================

# Date format stored in Date Received / Last Issue Date fields
DATE_FORMAT_STORE = "%Y-%m-%d"

# Timestamp format for transaction history rows
# Format: DD-MMM-YYYY HH:MM (e.g., "15-Jan-2024 14:05")
DATETIME_FORMAT_DISPLAY = "%d-%b-%Y %H:%M"

# ============================================================================
# File Paths and Directories
# ============================================================================

# Directory for log files
# Relative to project root
LOGS_DIR = os.getenv("LOGS_DIR", "logs")

# Log file name
LOG_FILENAME = os.getenv("LOG_FILENAME", "stockroom.log")

# Minimum level echoed to the console; the log file always records DEBUG and up
LOG_CONSOLE_LEVEL = os.getenv("LOG_CONSOLE_LEVEL", "INFO").strip().upper()
