"""Entry point — starts the MT5 Trading Gateway."""

import sys

import uvicorn
from loguru import logger

from gateway.config import settings
from gateway.errors import ConfigurationError


def configure_logging(log_file: str):
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level="INFO",
    )
    logger.add(
        log_file,
        rotation="10 MB",
        retention="7 days",
        level="DEBUG",
    )


def main():
    configure_logging(settings.log_file)

    try:
        settings.validate_required()
    except ConfigurationError as e:
        logger.critical(f"{e}. Refusing to start.")
        sys.exit(1)

    logger.info("=" * 60)
    logger.info("  MT5 Trading Gateway")
    logger.info("=" * 60)
    logger.info(f"API: http://{settings.api_host}:{settings.api_port}")
    logger.info(f"MT5: {settings.mt5_api_url} (server {settings.mt5_server_id})")

    from gateway.api.main import create_app

    app = create_app()
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
