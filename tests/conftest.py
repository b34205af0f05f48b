"""Shared test doubles."""

import asyncio
from typing import Dict, List, Optional

import pytest

from ingestion.events import IncomingTransaction


class FakePipeline:
    """Buffers commands and applies them in order on execute()."""

    def __init__(self, redis: "FakeRedis", transaction: bool):
        self._redis = redis
        self.transaction = transaction
        self._ops = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self._ops = []

    def __getattr__(self, name):
        method = getattr(self._redis, name)

        def buffered(*args, **kwargs):
            self._ops.append((method, args, kwargs))
            return self

        return buffered

    async def execute(self):
        self._redis.pipelines_executed += 1
        results = [await method(*args, **kwargs) for method, args, kwargs in self._ops]
        self._ops = []
        return results


class FakeRedis:
    """In-memory stand-in for the redis.asyncio hash, counter and sorted-set commands we use."""

    def __init__(self):
        self.hashes: Dict[str, Dict[str, str]] = {}
        self.zsets: Dict[str, Dict[str, float]] = {}
        self.counters: Dict[str, int] = {}
        self.writes = 0
        self.pipelines_executed = 0

    async def _yield(self):
        # Let other tasks run between round-trips, like a real network call
        await asyncio.sleep(0)

    async def ping(self):
        return True

    async def hget(self, name: str, key: str) -> Optional[str]:
        await self._yield()
        return self.hashes.get(name, {}).get(key)

    async def incr(self, name: str) -> int:
        await self._yield()
        self.writes += 1
        self.counters[name] = self.counters.get(name, 0) + 1
        return self.counters[name]

    async def hgetall(self, name: str) -> Dict[str, str]:
        await self._yield()
        return dict(self.hashes.get(name, {}))

    async def hset(self, name: str, key: str = None, value=None, mapping: dict = None) -> int:
        await self._yield()
        self.writes += 1
        h = self.hashes.setdefault(name, {})
        items = dict(mapping or {})
        if key is not None:
            items[key] = value
        added = sum(1 for k in items if k not in h)
        h.update({k: str(v) for k, v in items.items()})
        return added

    async def hsetnx(self, name: str, key: str, value) -> int:
        await self._yield()
        h = self.hashes.setdefault(name, {})
        if key in h:
            return 0
        self.writes += 1
        h[key] = str(value)
        return 1

    async def zadd(self, name: str, mapping: dict) -> int:
        self.writes += 1
        z = self.zsets.setdefault(name, {})
        added = sum(1 for m in mapping if m not in z)
        z.update({m: float(s) for m, s in mapping.items()})
        return added

    async def zrem(self, name: str, *members) -> int:
        self.writes += 1
        z = self.zsets.get(name, {})
        removed = 0
        for m in members:
            if z.pop(m, None) is not None:
                removed += 1
        return removed

    async def zrange(self, name: str, start: int, end: int) -> List[str]:
        await self._yield()
        ordered = [m for m, _ in sorted(self.zsets.get(name, {}).items(), key=lambda kv: (kv[1], kv[0]))]
        if end == -1:
            return ordered[start:]
        return ordered[start:end + 1]

    async def zcard(self, name: str) -> int:
        return len(self.zsets.get(name, {}))

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self, transaction)


class FakeSource:
    """Transaction source returning a fixed list (or None when 'down')."""

    def __init__(self, transactions: Optional[List[IncomingTransaction]] = None):
        self.transactions = transactions
        self.calls = 0

    async def get_transactions(self, limit: int = 50):
        self.calls += 1
        if self.transactions is None:
            return None
        return list(self.transactions)[:limit]

    async def close(self):
        pass


@pytest.fixture
def fake_redis():
    return FakeRedis()
