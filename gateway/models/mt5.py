from enum import IntEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """MT5 Web API payloads are camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class TradeAction(IntEnum):
    DEAL = 1
    PENDING = 5
    SLTP = 6
    MODIFY = 7
    REMOVE = 8
    CLOSE_BY = 10


class OrderType(IntEnum):
    BUY = 0
    SELL = 1
    BUY_LIMIT = 2
    SELL_LIMIT = 3
    BUY_STOP = 4
    SELL_STOP = 5
    BUY_STOP_LIMIT = 6
    SELL_STOP_LIMIT = 7
    CLOSE_BY = 8


class PositionType(IntEnum):
    BUY = 0
    SELL = 1


# --- Broker data ---

class ApiEnvelope(WireModel):
    success: bool = False
    data: Any = None
    error: str | None = None
    code: int | None = None
    message: str | None = None


class AccountInfo(WireModel):
    login: int
    currency: str = ""
    balance: float
    equity: float
    margin: float = 0.0
    free_margin: float = 0.0
    margin_level: float | None = None
    profit: float = 0.0
    credit: float = 0.0
    leverage: int | None = None
    name: str | None = None
    server: str | None = None
    company: str | None = None
    trade_allowed: bool | None = None


class Position(WireModel):
    ticket: int
    symbol: str
    type: PositionType
    volume: float
    price_open: float
    price_current: float = 0.0
    profit: float = 0.0
    sl: float | None = None
    tp: float | None = None
    swap: float = 0.0
    magic: int | None = None
    time: int | None = None
    comment: str = ""


class SymbolInfo(WireModel):
    name: str
    description: str = ""
    currency: str = ""
    digits: int = 5
    point: float = 0.00001
    bid: float = 0.0
    ask: float = 0.0
    volume_min: float = 0.01
    volume_max: float = 100.0
    volume_step: float = 0.01
    trade_contract_size: float | None = None


class Tick(WireModel):
    symbol: str
    time: int
    bid: float
    ask: float
    last: float = 0.0
    volume: float = 0.0
    time_msc: int | None = None


class BrokerTradeRequest(WireModel):
    action: TradeAction = TradeAction.DEAL
    symbol: str
    volume: float
    type: OrderType
    price: float | None = None
    stoplimit: float | None = None
    sl: float | None = None
    tp: float | None = None
    deviation: int
    magic: int
    comment: str
    position_by: int | None = None


class TradeResult(WireModel):
    retcode: int
    deal: int | None = None
    order: int | None = None
    volume: float | None = None
    price: float | None = None
    bid: float | None = None
    ask: float | None = None
    comment: str | None = None
    request_id: int | None = None


class ConnectionStatus(WireModel):
    connected: bool = False
    last_check: int = 0  # epoch milliseconds


# --- Caller payloads ---

class TradeRequest(WireModel):
    symbol: str
    volume: float
    side: Literal["buy", "sell"]
    price: float | None = None
    stop_loss: float | None = None
    take_profit: float | None = None
    comment: str | None = None


class ClosePositionRequest(WireModel):
    position_id: int
    volume: float | None = None
