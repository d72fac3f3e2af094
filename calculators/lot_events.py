"""
Lot Match Data Models

Defines the output structures of the lot matching engine:
- LotMatch: A buy lot (or fragment) and, once closed, the sell that closed it
- RemainderTotalMode: How the total of an unmatched split remainder is derived

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from parsers.trade_record import TradeRecord


class LotMatchingMethod(str, Enum):
    """Supported lot matching strategies."""
    LIFO = "LIFO"


class RemainderTotalMode(str, Enum):
    """
    Total of the unmatched remainder when a record is split.

    PRODUCT is size * price. LEGACY_SUM reproduces size + price, the figure
    older reports were produced with, for side-by-side comparisons.
    """
    PRODUCT = "product"
    LEGACY_SUM = "legacy_sum"

    @classmethod
    def parse(cls, value: str) -> 'RemainderTotalMode':
        if isinstance(value, RemainderTotalMode):
            return value
        clean = str(value).strip().lower().replace("-", "_")
        for mode in cls:
            if mode.value == clean:
                return mode
        allowed = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown remainder mode '{value}' (expected one of: {allowed})")

    def remainder_total(self, size: Decimal, price: Decimal) -> Decimal:
        """Total of a fee-less remainder fragment."""
        if self == RemainderTotalMode.LEGACY_SUM:
            return size + price
        return size * price


@dataclass(frozen=True)
class LotMatch:
    """
    A buy lot and the sell that closed it.

    An open position has no sell. Key Invariant: buy.size equals sell.size
    on every closed match, splitting guarantees it.
    """

    buy: TradeRecord
    sell: Optional[TradeRecord] = None

    @property
    def is_open(self) -> bool:
        return self.sell is None

    @property
    def is_closed(self) -> bool:
        return self.sell is not None

    @property
    def product(self) -> str:
        return self.buy.product

    @property
    def size(self) -> Decimal:
        return self.buy.size

    @property
    def cost_basis(self) -> Optional[Decimal]:
        """buy.total - sell.total for a closed match, None while open."""
        if self.sell is None:
            return None
        return self.buy.total - self.sell.total

    @property
    def holding_period_days(self) -> Optional[int]:
        if self.sell is None:
            return None
        return (self.sell.created_at - self.buy.created_at).days

    def close(self, sell: TradeRecord) -> 'LotMatch':
        """Return a closed copy of this lot."""
        if self.sell is not None:
            raise ValueError(f"Lot {self.buy.trade_id} is already closed")
        return LotMatch(buy=self.buy, sell=sell)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view used by JSON export and fingerprinting."""
        return {
            "product": self.product,
            "buy_trade_id": self.buy.trade_id,
            "open_date": self.buy.created_at.isoformat(),
            "open_price": str(self.buy.price),
            "quantity": str(self.buy.size),
            "fee": str(self.buy.fee),
            "buy_total": str(self.buy.total),
            "sell_trade_id": self.sell.trade_id if self.sell else None,
            "close_date": self.sell.created_at.isoformat() if self.sell else None,
            "close_price": str(self.sell.price) if self.sell else None,
            "sell_fee": str(self.sell.fee) if self.sell else None,
            "sell_total": str(self.sell.total) if self.sell else None,
            "cost_basis": str(self.cost_basis) if self.sell else None,
        }
