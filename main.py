#!/usr/bin/env python3
"""
TON Deposit & Withdrawal Bridge

Main entry point: loads configuration, configures logging and serves the
API (and the static frontend, when present) with uvicorn.

Usage:
    python main.py                  # Serve on HOST:PORT from the environment
    python main.py --port 8080      # Override the listening port
    python main.py --log-level DEBUG
"""

import argparse
import logging
import sys

import uvicorn

from api.config import ConfigError, ServiceConfig
from api.server import create_app

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

logger = logging.getLogger("ton-bridge")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="TON deposit/withdrawal bridge")
    parser.add_argument("--host", help="Listen address (default: HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Listen port (default: PORT or 3000)")
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL or INFO)")
    args = parser.parse_args(argv)

    try:
        config = ServiceConfig.from_env()
    except ConfigError as e:
        configure_logging("INFO")
        logger.critical(f"❌ {e}")
        return 1

    configure_logging(args.log_level or config.log_level)

    host = args.host or config.host
    port = args.port or config.port

    app = create_app(config)
    logger.info(f"🚀 Server running on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
