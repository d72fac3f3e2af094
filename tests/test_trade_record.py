"""
Unit Tests for TradeRecord and LotMatch models

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from calculators.lot_events import LotMatch
from parsers.trade_record import TradeRecord, TradeSide


@pytest.fixture
def buy():
    return TradeRecord(
        trade_id="7204216",
        product="ADA-USD",
        side="BUY",
        created_at=datetime(2021, 5, 7, 16, 17, 11, 940000),
        size="589.19",
        price="1.7039",
        fee="5.019604205",
        total="-1008.940445205",
    )


class TestTradeSide:

    @pytest.mark.parametrize("value", ["BUY", "buy", " Buy "])
    def test_buy_variants(self, value):
        assert TradeSide.normalize(value) == TradeSide.BUY

    @pytest.mark.parametrize("value", ["SELL", "sell", "anything", ""])
    def test_everything_else_is_sell(self, value):
        assert TradeSide.normalize(value) == TradeSide.SELL


class TestTradeRecord:

    def test_strings_become_decimals(self, buy):
        assert buy.size == Decimal("589.19")
        assert buy.total == Decimal("-1008.940445205")
        assert buy.side == TradeSide.BUY
        assert buy.is_buy and not buy.is_sell

    def test_float_input_keeps_short_repr(self):
        record = TradeRecord(
            trade_id="1", product="X", side="SELL",
            created_at=datetime(2021, 1, 1), size=0.1, price=2.5,
        )
        assert record.size == Decimal("0.1")
        assert record.is_sell

    @pytest.mark.parametrize("field", ["price", "fee"])
    def test_negative_financial_rejected(self, buy, field):
        data = buy.model_dump()
        data[field] = Decimal("-1")
        with pytest.raises(ValidationError):
            TradeRecord(**data)

    def test_non_numeric_rejected(self, buy):
        data = buy.model_dump()
        data["size"] = "abc"
        with pytest.raises(ValidationError):
            TradeRecord(**data)

    def test_nan_rejected(self, buy):
        data = buy.model_dump()
        data["price"] = "NaN"
        with pytest.raises(ValidationError):
            TradeRecord(**data)

    def test_adjusted_returns_new_record(self, buy):
        part = buy.adjusted(size=Decimal("100"), fee=Decimal(0), total=Decimal("170.39"))

        assert part is not buy
        assert part.size == Decimal("100")
        assert part.fee == Decimal("0")
        assert part.total == Decimal("170.39")
        assert part.trade_id == buy.trade_id
        assert part.created_at == buy.created_at

        assert buy.size == Decimal("589.19")
        assert buy.fee == Decimal("5.019604205")

    def test_adjusted_validates(self, buy):
        with pytest.raises(ValidationError):
            buy.adjusted(fee=Decimal("-1"))

    def test_adjusted_unknown_field(self, buy):
        with pytest.raises(TypeError):
            buy.adjusted(quantity=Decimal("1"))

    def test_str(self, buy):
        text = str(buy)
        assert text.startswith("TradeRecord{product='ADA-USD', BUY")
        assert "size=589.19" in text


class TestLotMatch:

    def test_open_lot(self, buy):
        lot = LotMatch(buy=buy)

        assert lot.is_open and not lot.is_closed
        assert lot.cost_basis is None
        assert lot.holding_period_days is None
        assert lot.product == "ADA-USD"
        assert lot.size == Decimal("589.19")

    def test_close(self, buy):
        sell = buy.adjusted(
            trade_id="7204300",
            side=TradeSide.SELL,
            created_at=datetime(2021, 6, 1, 9, 30),
            total=Decimal("1100"),
        )

        lot = LotMatch(buy=buy).close(sell)

        assert lot.is_closed
        assert lot.cost_basis == Decimal("-1008.940445205") - Decimal("1100")
        assert lot.holding_period_days == 24

    def test_close_twice_rejected(self, buy):
        lot = LotMatch(buy=buy, sell=buy.adjusted(side=TradeSide.SELL))
        with pytest.raises(ValueError):
            lot.close(buy)

    def test_to_dict(self, buy):
        data = LotMatch(buy=buy).to_dict()

        assert data["product"] == "ADA-USD"
        assert data["quantity"] == "589.19"
        assert data["open_date"] == "2021-05-07T16:17:11.940000"
        assert data["sell_trade_id"] is None
        assert data["cost_basis"] is None
