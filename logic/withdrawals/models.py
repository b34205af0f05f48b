"""Data models for the withdrawal queue."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Dict
import uuid

from logic.money import to_number


class WithdrawalStatus(str, Enum):
    """Lifecycle of a withdrawal request. Only QUEUED -> DONE is allowed."""
    QUEUED = "queued"
    DONE = "done"


class EnqueueOutcome(str, Enum):
    ACCEPTED = "accepted"
    BAD_PARAMS = "bad_params"
    ERROR = "error"


def new_request_id(created_at_ms: int, seq: int) -> str:
    """Unique id that sorts in creation order; ``seq`` breaks same-millisecond ties."""
    return f"{created_at_ms:013d}-{seq:010d}-{uuid.uuid4().hex[:8]}"


@dataclass
class WithdrawalRequest:
    """A user's request to withdraw TON to an external address."""

    request_id: str
    uid: str
    address: str
    amount: Decimal
    created_at: int  # epoch millis
    status: WithdrawalStatus = WithdrawalStatus.QUEUED
    processed_at: Optional[int] = None

    @property
    def is_queued(self) -> bool:
        return self.status == WithdrawalStatus.QUEUED

    def to_mapping(self) -> Dict[str, str]:
        """Flatten to a Redis hash mapping."""
        mapping = {
            "uid": self.uid,
            "address": self.address,
            "amount": str(self.amount),
            "status": self.status.value,
            "createdAt": str(self.created_at),
        }
        if self.processed_at is not None:
            mapping["processedAt"] = str(self.processed_at)
        return mapping

    @classmethod
    def from_mapping(cls, request_id: str, data: Dict[str, str]) -> "WithdrawalRequest":
        """Rebuild from a Redis hash."""
        processed_at = data.get("processedAt")
        return cls(
            request_id=request_id,
            uid=data["uid"],
            address=data["address"],
            amount=Decimal(data["amount"]),
            created_at=int(data["createdAt"]),
            status=WithdrawalStatus(data.get("status", WithdrawalStatus.QUEUED.value)),
            processed_at=int(processed_at) if processed_at else None,
        )

    def to_dict(self) -> dict:
        """JSON-friendly view for the admin CLI and logs."""
        return {
            "id": self.request_id,
            "uid": self.uid,
            "address": self.address,
            "amount": to_number(self.amount),
            "status": self.status.value,
            "createdAt": self.created_at,
            "processedAt": self.processed_at,
        }


@dataclass
class EnqueueResult:
    """Result of a withdrawal request submission."""

    outcome: EnqueueOutcome
    request_id: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.outcome == EnqueueOutcome.ACCEPTED


@dataclass
class BatchResult:
    """Result of advancing one batch of the queue."""

    processed: int = 0
    request_ids: list = field(default_factory=list)
