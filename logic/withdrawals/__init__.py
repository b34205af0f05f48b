"""Withdrawal Queue - request intake and admin batch settlement."""

from .models import (
    WithdrawalRequest,
    WithdrawalStatus,
    EnqueueOutcome,
    EnqueueResult,
    BatchResult,
)
from .queue import WithdrawalQueue, UnauthorizedError
from .payout import PayoutExecutor, LoggingPayoutExecutor

__all__ = [
    "WithdrawalRequest",
    "WithdrawalStatus",
    "EnqueueOutcome",
    "EnqueueResult",
    "BatchResult",
    "WithdrawalQueue",
    "UnauthorizedError",
    "PayoutExecutor",
    "LoggingPayoutExecutor",
]
