"""Tests for gateway.translator — wire request construction."""

import pytest

from gateway.errors import InvalidRequestError
from gateway.models.mt5 import OrderType, Position, TradeAction, TradeRequest
from gateway.translator import (
    DEFAULT_CLOSE_COMMENT,
    DEFAULT_TRADE_COMMENT,
    DEVIATION_POINTS,
    MAGIC_NUMBER,
    build_close_request,
    build_trade_request,
    find_position,
)
from tests.conftest import make_position


def position(**kwargs) -> Position:
    return Position.model_validate(make_position(**kwargs))


class TestBuildTradeRequest:
    @pytest.mark.parametrize("side,expected", [("buy", OrderType.BUY), ("sell", OrderType.SELL)])
    def test_side_maps_to_order_type(self, side, expected):
        req = build_trade_request(TradeRequest(symbol="EURUSD", volume=0.1, side=side))
        assert req.type == expected
        assert req.action == TradeAction.DEAL
        assert req.deviation == 5 == DEVIATION_POINTS
        assert req.magic == MAGIC_NUMBER

    def test_passes_prices_through(self):
        req = build_trade_request(
            TradeRequest(symbol="XAUUSD", volume=1, side="sell", price=2010.0,
                         stop_loss=2020.0, take_profit=1990.0, comment="swing")
        )
        assert (req.price, req.sl, req.tp) == (2010.0, 2020.0, 1990.0)
        assert req.comment == "swing"

    def test_default_comment(self):
        req = build_trade_request(TradeRequest(symbol="EURUSD", volume=0.1, side="buy"))
        assert req.comment == DEFAULT_TRADE_COMMENT

    def test_wire_shape(self):
        req = build_trade_request(TradeRequest(symbol="EURUSD", volume=0.1, side="sell", stop_loss=1.09))
        assert req.to_wire() == {
            "action": 1,
            "symbol": "EURUSD",
            "volume": 0.1,
            "type": 1,
            "sl": 1.09,
            "deviation": 5,
            "magic": MAGIC_NUMBER,
            "comment": DEFAULT_TRADE_COMMENT,
        }


class TestBuildCloseRequest:
    def test_buy_position_closes_with_sell(self):
        req = build_close_request(position(ticket=7, type=0, volume=2.0))
        assert req.type == OrderType.SELL
        assert req.position_by == 7
        assert req.volume == 2.0
        assert req.comment == DEFAULT_CLOSE_COMMENT

    def test_sell_position_closes_with_buy(self):
        req = build_close_request(position(type=1))
        assert req.type == OrderType.BUY

    def test_partial_volume(self):
        req = build_close_request(position(volume=2.0), volume=0.5)
        assert req.volume == 0.5
        assert req.to_wire()["positionBy"] == 1001

    def test_partial_volume_equal_to_open_volume(self):
        assert build_close_request(position(volume=2.0), volume=2.0).volume == 2.0

    def test_partial_volume_above_open_volume(self):
        with pytest.raises(InvalidRequestError, match="exceeds the open volume"):
            build_close_request(position(volume=0.2), volume=0.5)


class TestFindPosition:
    def test_found_and_missing(self):
        positions = [position(ticket=1), position(ticket=2)]
        assert find_position(positions, 2).ticket == 2
        assert find_position(positions, 3) is None
