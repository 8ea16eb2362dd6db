"""
Typed exceptions for the stockroom engine.

Every exception carries a machine-readable ``code`` and a ``user_message``
that is safe to show to staff. Operator detail goes in the exception text
and the logs, never in ``user_message``.

    StockroomError (base)
    |
    +-- ValidationError          VALIDATION_ERROR
    +-- NotFoundError            NOT_FOUND
    +-- InsufficientStockError   INSUFFICIENT_STOCK
    +-- StoreError               STORE_ERROR
    +-- NotificationError        NOTIFICATION_ERROR
"""

from typing import Optional


class StockroomError(Exception):
    """Base exception for all stockroom errors."""

    code: str = "STOCKROOM_ERROR"

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.user_message = user_message or message


class ValidationError(StockroomError):
    """Input has the wrong shape or range. Raised before any write."""

    code = "VALIDATION_ERROR"


class NotFoundError(StockroomError):
    """No inventory record exists for the SKU."""

    code = "NOT_FOUND"

    def __init__(self, sku: str):
        self.sku = sku
        super().__init__(f"SKU '{sku}' not found in inventory.")


class InsufficientStockError(StockroomError):
    """An issue would take the quantity below zero."""

    code = "INSUFFICIENT_STOCK"

    def __init__(self, sku: str, part_name: str, available: int, requested: int):
        self.sku = sku
        self.part_name = part_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock. Only {available} units of {part_name} available."
        )


class StoreError(StockroomError):
    """A record store call failed (network, auth, formula or timeout)."""

    code = "STORE_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message, user_message="The inventory store is unavailable. Please try again later.")


class NotificationError(StockroomError):
    """An alert email could not be sent. Never fatal to a mutation."""

    code = "NOTIFICATION_ERROR"
