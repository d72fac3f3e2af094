"""
Trade Record Model

One fill of a single instrument as delivered by the exchange export. Records
are immutable: when the lot matching engine needs "this fill, but smaller" it
builds a new record with adjusted() instead of editing the original.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class TradeSide(str, Enum):
    """Direction of a fill."""

    BUY = "BUY"
    SELL = "SELL"

    @classmethod
    def normalize(cls, value: str) -> 'TradeSide':
        """
        Normalize a side from the export.

        Exchange exports only distinguish "BUY" from everything else, so any
        value that is not BUY (case-insensitive) is a SELL.
        """
        if isinstance(value, TradeSide):
            return value
        if str(value).strip().upper() == cls.BUY.value:
            return cls.BUY
        return cls.SELL


class TradeRecord(BaseModel):
    """
    A single buy or sell fill.

    total is informational: the export's own figure for untouched records,
    recomputed by the engine whenever a record is split.
    """

    model_config = ConfigDict(frozen=True)

    trade_id: str
    product: str
    side: TradeSide
    created_at: datetime
    size: Decimal
    price: Decimal
    fee: Decimal = Decimal(0)
    total: Decimal = Decimal(0)

    # Source metadata, carried through unchanged
    portfolio: Optional[str] = None
    size_unit: Optional[str] = None
    price_unit: Optional[str] = None

    @field_validator('side', mode='before')
    @classmethod
    def parse_side(cls, v):
        return TradeSide.normalize(v)

    @field_validator('size', 'price', 'fee', 'total', mode='before')
    @classmethod
    def parse_decimal(cls, v):
        if not isinstance(v, Decimal):
            # str() first so 0.1 stays 0.1 instead of its binary expansion
            try:
                v = Decimal(str(v).strip())
            except InvalidOperation:
                raise ValueError(f"Not a number: '{v}'")
        if not v.is_finite():
            raise ValueError(f"Not a finite number: '{v}'")
        return v

    @field_validator('created_at')
    @classmethod
    def naive_utc(cls, v):
        """Zoned timestamps are stored as naive UTC."""
        if v.tzinfo is not None:
            v = v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    @field_validator('price', 'fee')
    @classmethod
    def non_negative_financial(cls, v):
        """Ensure price and fee are non-negative."""
        if v < 0:
            raise ValueError(f'Financial value cannot be negative: {v}')
        return v

    @property
    def is_buy(self) -> bool:
        return self.side == TradeSide.BUY

    @property
    def is_sell(self) -> bool:
        return self.side == TradeSide.SELL

    def adjusted(self, **overrides) -> 'TradeRecord':
        """
        Return a new record equal to this one except for overrides.

        The result is validated like any freshly parsed record; self is left
        untouched.

        Example:
            >>> part = record.adjusted(size=Decimal("2"), fee=Decimal(0), total=Decimal("4"))
        """
        unknown = set(overrides) - set(type(self).model_fields)
        if unknown:
            raise TypeError(f"Unknown TradeRecord fields: {sorted(unknown)}")

        data = self.model_dump()
        data.update(overrides)
        return type(self).model_validate(data)

    def __str__(self) -> str:
        return (
            f"TradeRecord{{product='{self.product}', {self.side.value}, "
            f"created_at={self.created_at.isoformat()}, size={self.size}, "
            f"price={self.price}, fee={self.fee}, total={self.total}}}"
        )
