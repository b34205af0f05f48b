"""Withdrawal Queue - user requests awaiting admin settlement."""

import hmac
import logging
import time
from typing import Any, Callable, List, Optional, Protocol, Sequence

from logic.money import parse_amount
from .models import (
    BatchResult,
    EnqueueOutcome,
    EnqueueResult,
    WithdrawalRequest,
    WithdrawalStatus,
)
from .payout import PayoutExecutor

logger = logging.getLogger(__name__)


class UnauthorizedError(Exception):
    """Admin secret did not match."""


class WithdrawalStore(Protocol):
    """Protocol for the request store (see RedisWithdrawalStore)."""
    async def create(self, request: WithdrawalRequest) -> str: ...
    async def list_queued(self, limit: int) -> List[WithdrawalRequest]: ...
    async def list_all(self, status: Optional[WithdrawalStatus] = None, limit: int = 50) -> List[WithdrawalRequest]: ...
    async def mark_done(self, request_ids: Sequence[str], processed_at: int) -> None: ...


class WithdrawalQueue:
    """
    FIFO-ish queue of withdrawal requests.

    Requests enter as ``queued``. ``advance_batch`` moves up to
    ``batch_size`` of the oldest queued requests to ``done`` in one store
    write. Funds are assumed to be reserved by the caller before enqueue.

    Usage:
        queue = WithdrawalQueue(store, admin_secret="s3cret")
        await queue.enqueue("u1", "UQ...", "2.5")
        processed = (await queue.advance_batch("s3cret")).processed
    """

    DEFAULT_BATCH_SIZE = 10

    def __init__(
        self,
        store: WithdrawalStore,
        admin_secret: str,
        payout_executor: Optional[PayoutExecutor] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            store: Request persistence
            admin_secret: Secret required by advance_batch
            payout_executor: Optional hand-off for requests marked done
            batch_size: Maximum requests advanced per call
            clock: Returns the current Unix time in seconds
        """
        if not admin_secret:
            raise ValueError("admin_secret must be set")
        self.store = store
        self._admin_secret = admin_secret
        self.payout_executor = payout_executor
        self.batch_size = batch_size
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def is_authorized(self, caller_secret: Any) -> bool:
        if not isinstance(caller_secret, str) or not caller_secret:
            return False
        return hmac.compare_digest(caller_secret.encode(), self._admin_secret.encode())

    async def enqueue(self, user_id: Any, address: Any, amount: Any) -> EnqueueResult:
        """
        Record a withdrawal request with status ``queued``.

        Returns:
            EnqueueResult; BAD_PARAMS when a field is missing or the amount
            is not a positive number, ERROR when the store write fails
        """
        parsed_amount = parse_amount(amount)
        if not user_id or not address or parsed_amount is None:
            return EnqueueResult(outcome=EnqueueOutcome.BAD_PARAMS)

        created_at = self._now_ms()
        request = WithdrawalRequest(
            request_id="",  # assigned by the store
            uid=str(user_id),
            address=str(address),
            amount=parsed_amount,
            created_at=created_at,
        )

        try:
            request.request_id = await self.store.create(request)
        except Exception:
            logger.exception(f"Failed to enqueue withdrawal for {request.uid}")
            return EnqueueResult(outcome=EnqueueOutcome.ERROR)

        logger.info(f"Withdrawal queued: {request.request_id} | {request.uid} | {parsed_amount} TON")
        return EnqueueResult(outcome=EnqueueOutcome.ACCEPTED, request_id=request.request_id)

    async def advance_batch(self, caller_secret: Any) -> BatchResult:
        """
        Mark up to ``batch_size`` oldest queued requests as ``done``.

        Args:
            caller_secret: Must equal the configured admin secret

        Returns:
            BatchResult with the number of requests advanced

        Raises:
            UnauthorizedError: on secret mismatch, before touching the store
        """
        if not self.is_authorized(caller_secret):
            logger.warning("Rejected payout batch: bad admin secret")
            raise UnauthorizedError("invalid admin secret")

        queued = await self.store.list_queued(self.batch_size)
        if not queued:
            return BatchResult(processed=0)

        processed_at = self._now_ms()
        request_ids = [r.request_id for r in queued]
        await self.store.mark_done(request_ids, processed_at)

        logger.info(f"Advanced {len(request_ids)} withdrawal(s) to done")

        for request in queued:
            request.status = WithdrawalStatus.DONE
            request.processed_at = processed_at
            await self._hand_off(request)

        return BatchResult(processed=len(request_ids), request_ids=request_ids)

    async def _hand_off(self, request: WithdrawalRequest) -> None:
        if self.payout_executor is None:
            return
        try:
            await self.payout_executor.execute(request)
        except Exception as e:
            logger.error(f"Payout hand-off failed for {request.request_id}: {e}")

    async def list_requests(
        self,
        status: Optional[WithdrawalStatus] = None,
        limit: int = 50,
    ) -> List[WithdrawalRequest]:
        """Read-only listing for admin tooling."""
        return await self.store.list_all(status=status, limit=limit)
