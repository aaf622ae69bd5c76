"""FastAPI application factory and lifespan management."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from gateway.client import MT5Gateway
from gateway.config import Settings, settings
from gateway.errors import (
    BrokerError,
    BrokerUnavailableError,
    GatewayError,
    InvalidRequestError,
    PositionNotFoundError,
    TradeRejectedError,
)

# Most specific first; the first isinstance match wins.
ERROR_STATUS: list[tuple[type[GatewayError], int]] = [
    (InvalidRequestError, 400),
    (PositionNotFoundError, 404),
    (TradeRejectedError, 422),
    (BrokerUnavailableError, 503),
    (BrokerError, 502),
]


def envelope(request: Request, data: Any = None, error: str | None = None, code: int = 200) -> JSONResponse:
    body: dict[str, Any] = {"success": error is None}
    if error is None:
        body["data"] = data
    else:
        body["error"] = error
        body["code"] = code
    body["timestamp"] = datetime.now(timezone.utc).isoformat()
    body["path"] = request.url.path
    return JSONResponse(status_code=code, content=body)


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    code = next((c for cls, c in ERROR_STATUS if isinstance(exc, cls)), 500)
    logger.error(f"{request.method} {request.url.path} failed ({code}): {exc}")
    return envelope(request, error=str(exc), code=code)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return envelope(request, error=str(exc.detail), code=exc.status_code)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return envelope(request, error=f"Validation failed: {problems}", code=422)


def create_app(gateway: MT5Gateway | None = None, config: Settings | None = None) -> FastAPI:
    """Build the API. Pass ``gateway`` to reuse an existing client (tests do)."""
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "gateway", None) is None
        if owned:
            logger.info("Starting MT5 gateway...")
            app.state.gateway = MT5Gateway(config)
        yield
        if owned:
            logger.info("Shutting down MT5 gateway...")
            await app.state.gateway.aclose()

    app = FastAPI(
        title="MT5 Trading Gateway",
        description="REST surface over the MT5 Web API",
        version="1.0.0",
        lifespan=lifespan,
    )
    if gateway is not None:
        app.state.gateway = gateway

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    from gateway.api.trading import router as trading_router

    app.include_router(trading_router)

    return app
