"""MT5 Gateway — talks to the MT5 Web API over HTTP."""

import json
from typing import Any, Awaitable, Callable, Mapping, TypeVar

import httpx
from loguru import logger
from pydantic import ValidationError

from gateway.config import Settings
from gateway.errors import (
    BrokerError,
    BrokerUnavailableError,
    InvalidRequestError,
    PositionNotFoundError,
)
from gateway.health import ConnectionMonitor, now_ms
from gateway.models.mt5 import (
    AccountInfo,
    ApiEnvelope,
    BrokerTradeRequest,
    ClosePositionRequest,
    ConnectionStatus,
    Position,
    SymbolInfo,
    Tick,
    TradeRequest,
    TradeResult,
)
from gateway.retcodes import raise_for_retcode
from gateway.retry import with_retry
from gateway.translator import build_close_request, build_trade_request, find_position
from gateway.validation import parse_close_request, parse_trade_request

T = TypeVar("T")

USER_AGENT = "MT5-Gateway/1.0"


class MT5Gateway:
    """One instance per process, shared by every request handler.

    ``transport`` replaces the network layer (tests pass an
    ``httpx.MockTransport``); ``clock`` drives the connection cache.
    """

    def __init__(
        self,
        config: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        config.validate_required()
        self.config = config
        self.http = httpx.AsyncClient(
            base_url=config.mt5_api_url,
            timeout=config.mt5_timeout_ms / 1000,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {config.mt5_api_key}",
                "X-MT5-Server": config.mt5_server_id,
                "User-Agent": USER_AGENT,
            },
            event_hooks={"request": [_log_request], "response": [_log_response]},
        )
        self.monitor = ConnectionMonitor(
            self._ping,
            ttl_ms=config.mt5_connection_check_interval_ms,
            clock=clock,
        )

    async def aclose(self):
        await self.http.aclose()
        logger.info("MT5 gateway closed")

    async def __aenter__(self) -> "MT5Gateway":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    # --- Connection ---

    async def _ping(self) -> bool:
        response = await self.http.get("/ping", timeout=self.config.mt5_ping_timeout_ms / 1000)
        return response.status_code == 200

    async def check_connection(self) -> bool:
        return await self.monitor.check()

    def get_connection_status(self) -> ConnectionStatus:
        return self.monitor.status()

    # --- Transport ---

    async def _call(self, path: str, operation: str, require_data: bool = True, **params: Any) -> Any:
        """POST ``params`` plus the credential triple and unwrap the envelope."""
        try:
            content = json.dumps({**self.config.credentials, **params}, allow_nan=False)
        except ValueError as e:
            raise InvalidRequestError([f"request: {e}"]) from e

        try:
            response = await self.http.post(path, content=content)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise BrokerUnavailableError(operation, str(e) or type(e).__name__) from e

        try:
            envelope = ApiEnvelope.model_validate(response.json())
        except ValueError as e:
            raise BrokerError(operation, f"Malformed response: {e}") from e

        if not envelope.success or (require_data and envelope.data is None):
            raise BrokerError(operation, envelope.error or f"Failed to fetch {operation.lower()}")
        return envelope.data

    async def _retry(self, operation: Callable[[], Awaitable[T]], description: str) -> T:
        return await with_retry(
            operation,
            attempts=self.config.mt5_retry_attempts,
            delay_ms=self.config.mt5_retry_delay_ms,
            description=description,
            give_up_on=(InvalidRequestError,),
        )

    # --- Account & Positions ---

    async def _fetch_account(self) -> AccountInfo:
        data = await self._call("/account/info", "Account Info")
        account = _parse(AccountInfo, data, "Account Info")
        logger.info(
            f"Account info retrieved: login={account.login} "
            f"balance={account.balance} equity={account.equity}"
        )
        return account

    async def _fetch_positions(self) -> list[Position]:
        data = await self._call("/positions/get", "Positions", require_data=False)
        positions = [_parse(Position, p, "Positions") for p in data or []]
        logger.info(
            f"Positions retrieved: count={len(positions)} "
            f"total_profit={sum(p.profit for p in positions):.2f}"
        )
        return positions

    async def get_account(self) -> AccountInfo:
        logger.info("Fetching MT5 account information...")
        return await self._retry(self._fetch_account, "Account info request")

    async def get_all_positions(self) -> list[Position]:
        logger.info("Fetching MT5 open positions...")
        return await self._retry(self._fetch_positions, "Positions request")

    # --- Trading ---

    async def _send(self, request: BrokerTradeRequest, operation: str) -> TradeResult:
        data = await self._call("/trade/send", operation, request=request.to_wire())
        return _parse(TradeResult, data, operation)

    async def execute_trade(self, payload: TradeRequest | Mapping[str, Any]) -> TradeResult:
        """Validate, translate and submit a market order.

        Transport and envelope failures are retried; a non-success retcode
        is raised as TradeRejectedError without resubmitting.
        """
        request = parse_trade_request(payload)
        logger.info(f"Placing MT5 trade: {request.side} {request.volume} {request.symbol}")

        mt5_request = build_trade_request(request)
        result = await self._retry(lambda: self._send(mt5_request, "Trade"), "Trade request")
        raise_for_retcode(result, "Trade")

        logger.info(
            f"Trade executed: deal={result.deal} order={result.order} "
            f"volume={result.volume} price={result.price} symbol={request.symbol}"
        )
        return result

    async def execute_close(self, payload: ClosePositionRequest | Mapping[str, Any]) -> TradeResult:
        """Close all or part of an open position by ticket."""
        request = parse_close_request(payload)
        logger.info(f"Closing MT5 position {request.position_id} (volume={request.volume})")

        positions = await self.get_all_positions()
        position = find_position(positions, request.position_id)
        if position is None:
            raise PositionNotFoundError(request.position_id)

        mt5_request = build_close_request(position, request.volume)
        result = await self._retry(lambda: self._send(mt5_request, "Close"), "Close request")
        raise_for_retcode(result, "Close")

        logger.info(
            f"Position closed: ticket={position.ticket} deal={result.deal} "
            f"volume={result.volume} price={result.price}"
        )
        return result

    # --- Reference data ---

    async def get_symbol_info(self, symbol: str) -> SymbolInfo:
        async def fetch() -> SymbolInfo:
            data = await self._call("/symbol/info", "Symbol Info", symbol=symbol)
            return _parse(SymbolInfo, data, "Symbol Info")

        return await self._retry(fetch, f"Symbol info request ({symbol})")

    async def get_market_prices(self, symbols: list[str]) -> list[Tick]:
        async def fetch() -> list[Tick]:
            data = await self._call("/market/ticks", "Market Data", require_data=False, symbols=symbols)
            return [_parse(Tick, t, "Market Data") for t in data or []]

        return await self._retry(fetch, "Market prices request")


def _parse(model: type[T], data: Any, operation: str) -> T:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise BrokerError(operation, f"Unexpected payload: {e.error_count()} invalid field(s)") from e


async def _log_request(request: httpx.Request):
    logger.debug(f"MT5 API request: {request.method} {request.url.path}")


async def _log_response(response: httpx.Response):
    request = response.request
    level = "DEBUG" if response.is_success else "WARNING"
    logger.log(level, f"MT5 API response: {response.status_code} {request.method} {request.url.path}")
