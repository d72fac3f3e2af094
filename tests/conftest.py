"""Shared fixtures: trade record factory and a sample fills export."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from parsers.trade_record import TradeRecord, TradeSide


BASE_TIME = datetime(2021, 5, 7, 16, 17, 11)

FILLS_HEADER = "portfolio,trade id,product,side,created at,size,size unit,price,fee,total,price/fee/total unit"


@pytest.fixture
def make_trade():
    """
    Factory for TradeRecords.

    Each call gets a timestamp one minute after the previous one unless
    `at` is given, so records come out in time order.
    """
    counter = {"n": 0}

    def _make(side, size, price="1", fee="0", total=None, product="BTC-USD",
              trade_id=None, at=None):
        counter["n"] += 1
        n = counter["n"]
        size = Decimal(str(size))
        price = Decimal(str(price))
        fee = Decimal(str(fee))
        if total is None:
            total = size * price + fee
        return TradeRecord(
            trade_id=trade_id or f"T{n}",
            product=product,
            side=TradeSide.normalize(side),
            created_at=at or BASE_TIME + timedelta(minutes=n),
            size=size,
            price=price,
            fee=fee,
            total=Decimal(str(total)),
        )

    return _make


@pytest.fixture
def fills_csv():
    """Fills export with two products, rows deliberately out of order."""
    rows = [
        "default, 7204216, ADA-USD, BUY, 2021-05-07T16:17:11.940Z, 589.19000000, ADA, 1.7039, 5.019604205, -1008.940445205, USD",
        "default, 7300001, BTC-USD, BUY, 2021-05-08T10:00:00.000Z, 0.50000000, BTC, 50000.00, 25.00, -25025.00, USD",
        "default, 7204300, ADA-USD, SELL, 2021-06-01T09:30:00.000Z, 200.00000000, ADA, 1.9000, 1.90, 378.10, USD",
        "default, 7204250, ADA-USD, BUY, 2021-05-20T12:00:00.000Z, 100.00000000, ADA, 2.0000, 1.00, -201.00, USD",
        "default, 7300002, BTC-USD, SELL, 2021-05-09T10:00:00.000Z, 0.50000000, BTC, 52000.00, 26.00, 25974.00, USD",
    ]
    return FILLS_HEADER + "\n" + "\n".join(rows) + "\n"
