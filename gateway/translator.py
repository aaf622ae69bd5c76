"""Order Translator — simplified requests to MT5 wire requests."""

from gateway.errors import InvalidRequestError
from gateway.models.mt5 import (
    BrokerTradeRequest,
    OrderType,
    Position,
    PositionType,
    TradeAction,
    TradeRequest,
)

DEVIATION_POINTS = 5
MAGIC_NUMBER = 123456  # tags every order this gateway submits

DEFAULT_TRADE_COMMENT = "Gateway Trade"
DEFAULT_CLOSE_COMMENT = "Gateway Close"


def build_trade_request(request: TradeRequest) -> BrokerTradeRequest:
    return BrokerTradeRequest(
        action=TradeAction.DEAL,
        symbol=request.symbol,
        volume=request.volume,
        type=OrderType.BUY if request.side == "buy" else OrderType.SELL,
        price=request.price,
        sl=request.stop_loss,
        tp=request.take_profit,
        deviation=DEVIATION_POINTS,
        magic=MAGIC_NUMBER,
        comment=request.comment or DEFAULT_TRADE_COMMENT,
    )


def find_position(positions: list[Position], ticket: int) -> Position | None:
    for pos in positions:
        if pos.ticket == ticket:
            return pos
    return None


def build_close_request(position: Position, volume: float | None = None) -> BrokerTradeRequest:
    """Build the opposite-side deal that closes ``position``.

    ``volume`` closes part of the position; it may not exceed the open volume.
    """
    if volume is not None and volume > position.volume:
        raise InvalidRequestError(
            [
                f"volume: {volume} exceeds the open volume {position.volume} "
                f"of position {position.ticket}"
            ]
        )

    opposite = OrderType.SELL if position.type == PositionType.BUY else OrderType.BUY
    return BrokerTradeRequest(
        action=TradeAction.DEAL,
        symbol=position.symbol,
        volume=volume or position.volume,
        type=opposite,
        deviation=DEVIATION_POINTS,
        magic=MAGIC_NUMBER,
        comment=DEFAULT_CLOSE_COMMENT,
        position_by=position.ticket,
    )
