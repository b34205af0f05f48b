"""Redis-backed user ledger (TON balances and first-deposit marker)."""

import asyncio
import logging
import weakref
from decimal import Decimal
from typing import Optional, Protocol

from logic.money import round_ton
from .keys import RedisKeys, DEFAULT_KEYS

logger = logging.getLogger(__name__)


class RedisClientProtocol(Protocol):
    """Subset of redis.asyncio.Redis used by the ledger."""
    async def hget(self, name: str, key: str) -> Optional[str]: ...
    async def hset(self, name: str, key: str = None, value: str = None, mapping: dict = None) -> int: ...
    async def hsetnx(self, name: str, key: str, value: str) -> int: ...


class RedisLedger:
    """
    Per-user balances stored in the ``users:{uid}`` hash.

    Credits for one user are serialized by an in-process lock so the
    read-modify-write of the balance cannot lose updates between concurrent
    requests handled by this process. ``firstDepositAt`` is written with
    HSETNX and therefore can only ever be set once.

    Usage:
        ledger = RedisLedger(redis_client)
        new_balance = await ledger.credit("u1", Decimal("4.5"))
        await ledger.mark_first_deposit("u1", now_ms)
    """

    def __init__(self, redis_client: RedisClientProtocol, keys: RedisKeys = DEFAULT_KEYS):
        """
        Args:
            redis_client: Async Redis client (decode_responses=True)
            keys: Key naming
        """
        self.redis = redis_client
        self.keys = keys
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, uid: str) -> asyncio.Lock:
        lock = self._locks.get(uid)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[uid] = lock
        return lock

    async def get_balance(self, uid: str) -> Decimal:
        """Current TON balance; an absent record is zero."""
        raw = await self.redis.hget(self.keys.user(uid), self.keys.BALANCE_FIELD)
        return Decimal(raw) if raw else Decimal("0")

    async def set_balance(self, uid: str, balance: Decimal) -> None:
        await self.redis.hset(self.keys.user(uid), self.keys.BALANCE_FIELD, str(round_ton(balance)))

    async def credit(self, uid: str, amount: Decimal) -> Decimal:
        """
        Add ``amount`` to the user's balance.

        Args:
            uid: User id
            amount: Non-negative credit in TON

        Returns:
            The new balance, rounded to 6 decimal places
        """
        if amount < 0:
            raise ValueError("Credit amount must be >= 0")

        async with self._lock_for(uid):
            current = await self.get_balance(uid)
            new_balance = round_ton(current + amount)
            await self.set_balance(uid, new_balance)

        logger.debug(f"Credited {amount} TON to {uid}: {current} -> {new_balance}")
        return new_balance

    async def get_first_deposit_at(self, uid: str) -> Optional[int]:
        raw = await self.redis.hget(self.keys.user(uid), self.keys.FIRST_DEPOSIT_FIELD)
        return int(raw) if raw else None

    async def mark_first_deposit(self, uid: str, at_ms: int) -> bool:
        """
        Set ``firstDepositAt`` unless already present.

        Returns:
            True if this call set the value
        """
        created = await self.redis.hsetnx(self.keys.user(uid), self.keys.FIRST_DEPOSIT_FIELD, str(at_ms))
        return bool(created)
