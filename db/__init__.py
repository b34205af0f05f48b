"""Persistence - Redis ledger and withdrawal store."""

from .keys import RedisKeys, DEFAULT_KEYS
from .ledger import RedisLedger
from .withdrawals import RedisWithdrawalStore

__all__ = [
    "RedisKeys",
    "DEFAULT_KEYS",
    "RedisLedger",
    "RedisWithdrawalStore",
]
