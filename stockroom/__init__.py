"""
Stockroom Inventory Engine

Stock receipts and issues against a remote record store, an append-only
transaction log, six dashboard reports, low stock email alerts and the
role-based dashboard access policy. The web layer lives elsewhere and calls in.
"""

__version__ = "1.0.0"
