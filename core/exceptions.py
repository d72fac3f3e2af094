"""
Reconciliation Errors

Every failure raised by the record source or the lot matching engine derives
from ReconciliationError. All of them are fatal for the current run: lot
state after a detected inconsistency cannot be trusted, so nothing is skipped
or retried.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from decimal import Decimal
from typing import Optional


class ReconciliationError(Exception):
    """Base class for all reconciliation failures."""
    pass


class InvalidRecord(ReconciliationError, ValueError):
    """Raised when a single trade record is unusable (bad size, bad field)."""

    def __init__(self, message: str, trade_id: Optional[str] = None, row: Optional[int] = None):
        self.trade_id = trade_id
        self.row = row

        location = []
        if row is not None:
            location.append(f"row {row}")
        if trade_id is not None:
            location.append(f"trade {trade_id}")

        if location:
            message = f"{message} ({', '.join(location)})"
        super().__init__(message)


class InvalidSequence(ReconciliationError):
    """
    Raised when the record sequence cannot be reconciled as a whole.

    Covers sells that exceed every open buy lot, records for more than one
    product in a single call, and timestamps going backwards.
    """

    def __init__(
        self,
        message: str,
        product: Optional[str] = None,
        remaining: Optional[Decimal] = None
    ):
        self.product = product
        self.remaining = remaining
        super().__init__(message)


class CSVHeaderError(ReconciliationError, ValueError):
    """Raised when a fills file does not start with the expected header row."""
    pass
