"""Redis key names for the ledger and withdrawal queue."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RedisKeys:
    """Key/field names mirroring the users/ and withdrawQueue/ trees."""

    # Per-user hash: users:{uid}
    USER_PREFIX: str = "users:"
    BALANCE_FIELD: str = "balances:ton"
    FIRST_DEPOSIT_FIELD: str = "firstDepositAt"

    # Per-request hash: withdrawQueue:{id}
    WITHDRAWAL_PREFIX: str = "withdrawQueue:"

    # Counter handing out creation sequence numbers
    SEQ_KEY: str = "withdrawQueue:seq"

    # Sorted sets of request ids scored by creation sequence
    QUEUED_INDEX: str = "withdrawQueue:queued"
    ALL_INDEX: str = "withdrawQueue:all"

    def user(self, uid: str) -> str:
        return f"{self.USER_PREFIX}{uid}"

    def withdrawal(self, request_id: str) -> str:
        return f"{self.WITHDRAWAL_PREFIX}{request_id}"


DEFAULT_KEYS = RedisKeys()
