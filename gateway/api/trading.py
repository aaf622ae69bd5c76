"""Account, positions, trade, close and health endpoints."""

import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from loguru import logger

from gateway.api.auth import TRADING_ROLES, User, require_role
from gateway.api.main import envelope
from gateway.client import MT5Gateway

router = APIRouter(prefix="/api", tags=["trading"])

_started = time.monotonic()


def get_gateway(request: Request) -> MT5Gateway:
    return request.app.state.gateway


async def connected_gateway(gateway: MT5Gateway = Depends(get_gateway)) -> MT5Gateway:
    if not await gateway.check_connection():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="MT5 server connection failed",
        )
    return gateway


@router.get("/account")
async def get_account(
    request: Request,
    user: User = Depends(require_role(*TRADING_ROLES)),
    gateway: MT5Gateway = Depends(connected_gateway),
):
    account = await gateway.get_account()
    logger.info(f"Account info sent to {user.username}: equity={account.equity}")
    return envelope(request, account.to_wire())


@router.get("/positions")
async def get_positions(
    request: Request,
    user: User = Depends(require_role(*TRADING_ROLES)),
    gateway: MT5Gateway = Depends(connected_gateway),
):
    positions = await gateway.get_all_positions()
    return envelope(request, [p.to_wire() for p in positions])


@router.post("/trade")
async def place_trade(
    request: Request,
    payload: dict[str, Any] = Body(...),
    user: User = Depends(require_role(*TRADING_ROLES)),
    gateway: MT5Gateway = Depends(connected_gateway),
):
    logger.info(f"Trade request from {user.username}: {payload.get('side')} {payload.get('volume')} {payload.get('symbol')}")
    result = await gateway.execute_trade(payload)
    return envelope(request, result.to_wire())


@router.post("/close")
async def close_position(
    request: Request,
    payload: dict[str, Any] = Body(...),
    user: User = Depends(require_role(*TRADING_ROLES)),
    gateway: MT5Gateway = Depends(connected_gateway),
):
    logger.info(f"Close request from {user.username}: position {payload.get('positionId')}")
    result = await gateway.execute_close(payload)
    return envelope(request, result.to_wire())


@router.get("/health")
async def health(request: Request, gateway: MT5Gateway = Depends(get_gateway)):
    connected = await gateway.check_connection()
    return envelope(
        request,
        {
            "mt5Connected": connected,
            "lastConnectionCheck": gateway.get_connection_status().last_check,
            "serverTime": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - _started, 3),
        },
    )
