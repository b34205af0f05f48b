"""Payout hand-off for withdrawal requests marked done."""

import logging
from typing import Protocol

from .models import WithdrawalRequest

logger = logging.getLogger(__name__)


class PayoutExecutor(Protocol):
    """Receives each request after the queue marks it ``done``."""
    async def execute(self, request: WithdrawalRequest) -> None: ...


class LoggingPayoutExecutor:
    """Records the hand-off only; disbursement happens outside this service."""

    async def execute(self, request: WithdrawalRequest) -> None:
        logger.info(
            f"💸 Payout ready: {request.request_id} | {request.amount} TON "
            f"-> {request.address[:12]}... (uid={request.uid})"
        )
