"""Redis-backed store for withdrawal requests."""

import logging
from typing import List, Optional, Sequence, Tuple

from logic.withdrawals.models import WithdrawalRequest, WithdrawalStatus, new_request_id
from .keys import RedisKeys, DEFAULT_KEYS

logger = logging.getLogger(__name__)


class RedisWithdrawalStore:
    """
    Withdrawal requests as ``withdrawQueue:{id}`` hashes.

    Two sorted sets scored by creation sequence index the requests: one holding
    every id, one holding only ids still queued. Status changes and index
    updates are written together in a MULTI/EXEC pipeline.
    """

    def __init__(self, redis_client, keys: RedisKeys = DEFAULT_KEYS):
        self.redis = redis_client
        self.keys = keys

    async def create(self, request: WithdrawalRequest) -> str:
        """
        Persist a new queued request and return its id.

        The id and index score come from ``INCR`` on the sequence key, so
        requests created in the same millisecond still keep arrival order.
        """
        seq = await self.redis.incr(self.keys.SEQ_KEY)
        request.request_id = new_request_id(request.created_at, seq)
        score = {request.request_id: seq}

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.hset(self.keys.withdrawal(request.request_id), mapping=request.to_mapping())
            pipe.zadd(self.keys.ALL_INDEX, score)
            if request.is_queued:
                pipe.zadd(self.keys.QUEUED_INDEX, score)
            await pipe.execute()
        return request.request_id

    async def get(self, request_id: str) -> Optional[WithdrawalRequest]:
        data = await self.redis.hgetall(self.keys.withdrawal(request_id))
        if not data:
            return None
        return WithdrawalRequest.from_mapping(request_id, data)

    async def _load_many(
        self, request_ids: Sequence[str]
    ) -> Tuple[List[WithdrawalRequest], List[str]]:
        """Load hashes for ``request_ids``; also returns ids with no hash."""
        if not request_ids:
            return [], []

        async with self.redis.pipeline(transaction=False) as pipe:
            for request_id in request_ids:
                pipe.hgetall(self.keys.withdrawal(request_id))
            rows = await pipe.execute()

        requests = []
        missing = []
        for request_id, data in zip(request_ids, rows):
            if not data:
                logger.warning(f"Withdrawal {request_id} indexed but missing")
                missing.append(request_id)
                continue
            requests.append(WithdrawalRequest.from_mapping(request_id, data))
        return requests, missing

    async def list_queued(self, limit: int) -> List[WithdrawalRequest]:
        """
        Oldest queued requests first, at most ``limit``.

        Index entries whose hash is gone, or whose hash is already ``done``,
        are dropped from the queued index so they cannot hold a batch slot.
        """
        if limit <= 0:
            return []
        request_ids = await self.redis.zrange(self.keys.QUEUED_INDEX, 0, limit - 1)
        requests, missing = await self._load_many(request_ids)

        stale = missing + [r.request_id for r in requests if not r.is_queued]
        if stale:
            await self.redis.zrem(self.keys.QUEUED_INDEX, *stale)
            logger.info(f"Removed {len(stale)} stale id(s) from the queued index")

        return [r for r in requests if r.is_queued]

    async def list_all(
        self,
        status: Optional[WithdrawalStatus] = None,
        limit: int = 50,
    ) -> List[WithdrawalRequest]:
        """Requests in creation order, optionally filtered by status."""
        if status == WithdrawalStatus.QUEUED:
            return await self.list_queued(limit)

        request_ids = await self.redis.zrange(self.keys.ALL_INDEX, 0, -1)
        requests, _ = await self._load_many(request_ids)
        if status is not None:
            requests = [r for r in requests if r.status == status]
        return requests[:limit]

    async def mark_done(self, request_ids: Sequence[str], processed_at: int) -> None:
        """Flip requests to ``done`` in a single transactional pipeline."""
        if not request_ids:
            return

        async with self.redis.pipeline(transaction=True) as pipe:
            for request_id in request_ids:
                pipe.hset(
                    self.keys.withdrawal(request_id),
                    mapping={
                        "status": WithdrawalStatus.DONE.value,
                        "processedAt": str(processed_at),
                    },
                )
            pipe.zrem(self.keys.QUEUED_INDEX, *request_ids)
            await pipe.execute()
