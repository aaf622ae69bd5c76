"""Shared test fixtures: settings and a fake MT5 Web API."""

import asyncio
import json

import httpx
import pytest

from gateway.client import MT5Gateway
from gateway.config import Settings

BASE_URL = "https://mt5.test"


def make_settings(**overrides) -> Settings:
    values = dict(
        mt5_api_url=BASE_URL,
        mt5_api_key="test-key",
        mt5_server_id="Demo-Server",
        mt5_login="5001234",
        mt5_password="secret",
        mt5_retry_attempts=3,
        mt5_retry_delay_ms=0,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_position(
    ticket=1001,
    symbol="EURUSD",
    type=0,
    volume=1.5,
    price_open=1.0850,
    price_current=1.0870,
    profit=30.0,
    **kwargs,
) -> dict:
    return {
        "ticket": ticket,
        "symbol": symbol,
        "type": type,
        "volume": volume,
        "priceOpen": price_open,
        "priceCurrent": price_current,
        "profit": profit,
        "sl": 0.0,
        "tp": 0.0,
        **kwargs,
    }


class FakeBroker:
    """In-memory MT5 Web API served through httpx.MockTransport.

    ``failures[path]`` is how many upcoming calls to ``path`` raise a
    connection error; ``envelopes[path]`` overrides the response envelope.
    """

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []
        self.ping_status = 200
        self.account = {
            "login": 5001234,
            "currency": "USD",
            "balance": 10000.0,
            "equity": 10030.0,
            "margin": 150.0,
            "freeMargin": 9880.0,
            "marginLevel": 6686.7,
            "profit": 30.0,
            "leverage": 100,
        }
        self.positions = [
            make_position(ticket=1001, type=0, volume=1.5),
            make_position(ticket=1002, symbol="XAUUSD", type=1, volume=0.2, price_open=2010.5),
        ]
        self.trade_results: list[dict] = []
        self.failures: dict[str, int] = {}
        self.envelopes: dict[str, dict] = {}

    def paths(self) -> list[str]:
        return [path for path, _ in self.calls]

    def sent_requests(self) -> list[dict]:
        return [body["request"] for path, body in self.calls if path == "/trade/send"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        body = json.loads(request.content) if request.content else {}
        self.calls.append((path, body))

        if self.failures.get(path, 0) > 0:
            self.failures[path] -= 1
            raise httpx.ConnectError("Connection refused", request=request)

        if path == "/ping":
            return httpx.Response(self.ping_status)
        if path in self.envelopes:
            return httpx.Response(200, json=self.envelopes[path])
        if path == "/account/info":
            return httpx.Response(200, json={"success": True, "data": self.account})
        if path == "/positions/get":
            return httpx.Response(200, json={"success": True, "data": self.positions})
        if path == "/trade/send":
            req = body["request"]
            result = (
                self.trade_results.pop(0)
                if self.trade_results
                else {"retcode": 10009, "deal": 555, "order": 777, "volume": req["volume"], "price": 1.0860}
            )
            return httpx.Response(200, json={"success": True, "data": result})
        if path == "/symbol/info":
            return httpx.Response(200, json={
                "success": True,
                "data": {"name": body["symbol"], "digits": 5, "point": 0.00001, "bid": 1.0859, "ask": 1.0861},
            })
        if path == "/market/ticks":
            return httpx.Response(200, json={
                "success": True,
                "data": [
                    {"symbol": s, "time": 1700000000, "bid": 1.0859, "ask": 1.0861}
                    for s in body["symbols"]
                ],
            })
        return httpx.Response(404, json={"success": False, "error": "Not found"})


class FakeClock:
    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int):
        self.now += ms


def make_gateway(broker: FakeBroker, clock=None, **overrides) -> MT5Gateway:
    kwargs = {"clock": clock} if clock is not None else {}
    return MT5Gateway(
        make_settings(**overrides),
        transport=httpx.MockTransport(broker.handler),
        **kwargs,
    )


@pytest.fixture
def broker():
    return FakeBroker()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway(broker, clock):
    gw = make_gateway(broker, clock)
    yield gw
    asyncio.run(gw.aclose())
