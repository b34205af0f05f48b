"""
FastAPI Server for the TON deposit/withdrawal bridge.

Provides:
- POST /api/checkDeposit: verify a claimed deposit and credit the balance
- POST /api/requestWithdrawal: queue a withdrawal request
- POST /api/admin/processPayout: advance a batch of queued withdrawals
- GET /api/status: service health
- Static file serving for the frontend
"""

import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
import redis.asyncio as redis

from api.config import ServiceConfig
from db import RedisLedger, RedisWithdrawalStore
from ingestion import TonApiClient
from logic.deposits import DepositMatcher
from logic.withdrawals import (
    EnqueueOutcome,
    LoggingPayoutExecutor,
    UnauthorizedError,
    WithdrawalQueue,
)

logger = logging.getLogger("bridge-api")

ADMIN_PAYOUT_PATH = "/api/admin/processPayout"


class CheckDepositRequest(BaseModel):
    uid: Optional[Any] = None
    amount: Optional[Any] = None


class WithdrawalRequestBody(BaseModel):
    uid: Optional[Any] = None
    address: Optional[Any] = None
    amount: Optional[Any] = None


class PayoutRequest(BaseModel):
    secret: Optional[Any] = None


def create_app(
    config: ServiceConfig,
    redis_client=None,
    transaction_source=None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        config: Service configuration
        redis_client: Injected async Redis client (created from config.redis_url if None)
        transaction_source: Injected transaction source (TonApiClient if None)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifecycle events: connect Redis/tonapi and wire the services."""
        app.state.start_time = time.time()

        owns_redis = redis_client is None
        r = redis_client or redis.from_url(config.redis_url, decode_responses=True)
        if owns_redis:
            logger.info(f"📋 REDIS_URL: {config.masked_redis_url}")

        owns_source = transaction_source is None
        source = transaction_source or TonApiClient(
            account=config.owner_wallet,
            api_key=config.tonapi_key,
            base_url=config.tonapi_base_url,
        )
        app.state.redis = r
        app.state.ledger = RedisLedger(r)
        app.state.matcher = DepositMatcher(source, app.state.ledger)
        app.state.queue = WithdrawalQueue(
            RedisWithdrawalStore(r),
            admin_secret=config.admin_secret,
            payout_executor=LoggingPayoutExecutor(),
        )
        logger.info(f"✅ Bridge ready for wallet {config.owner_wallet[:8]}...")

        yield

        if owns_source:
            await source.close()
        if owns_redis:
            await r.aclose()
        logger.info("👋 Shutdown complete")

    app = FastAPI(lifespan=lifespan)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Unparseable bodies get the same answer as missing fields."""
        if request.url.path == ADMIN_PAYOUT_PATH:
            return JSONResponse(status_code=403, content={"ok": False})
        return JSONResponse(status_code=200, content={"ok": False, "error": "bad params"})

    # Routes
    @app.post("/api/checkDeposit")
    async def check_deposit(body: CheckDepositRequest, request: Request):
        """Match a claimed deposit against recent incoming transactions."""
        try:
            result = await request.app.state.matcher.check_deposit(body.uid, body.amount)
            return result.to_response()
        except Exception:
            logger.exception("checkDeposit failed")
            return {"ok": False, "error": "exception"}

    @app.post("/api/requestWithdrawal")
    async def request_withdrawal(body: WithdrawalRequestBody, request: Request):
        """Queue a withdrawal; the caller has already reserved the funds."""
        try:
            result = await request.app.state.queue.enqueue(body.uid, body.address, body.amount)
        except Exception:
            logger.exception("requestWithdrawal failed")
            return {"ok": False}

        if result.outcome == EnqueueOutcome.BAD_PARAMS:
            return {"ok": False, "error": "bad params"}
        return {"ok": result.accepted}

    @app.post(ADMIN_PAYOUT_PATH)
    async def process_payout(body: PayoutRequest, request: Request):
        """Advance up to 10 queued withdrawals to done (admin only)."""
        try:
            batch = await request.app.state.queue.advance_batch(body.secret)
        except UnauthorizedError:
            return JSONResponse(status_code=403, content={"ok": False})
        except Exception:
            logger.exception("processPayout failed")
            return {"ok": False}
        return {"ok": True, "processed": batch.processed}

    @app.get("/api/status")
    async def get_status(request: Request):
        """Get service status for monitoring."""
        status = {
            "ok": True,
            "uptime_seconds": int(time.time() - request.app.state.start_time),
            "services": {
                "redis": {"status": "unknown", "message": ""},
            },
        }

        try:
            await request.app.state.redis.ping()
            status["services"]["redis"] = {"status": "connected", "message": "OK"}
        except Exception as e:
            status["ok"] = False
            status["services"]["redis"] = {"status": "error", "message": str(e)[:50]}

        return status

    # Mount Static Files (Frontend)
    # Must be last to avoid catching API routes
    if os.path.isdir(config.static_dir):
        app.mount("/", StaticFiles(directory=config.static_dir, html=True), name="static")
    else:
        logger.debug(f"Static directory {config.static_dir!r} not found; serving API only")

    return app
