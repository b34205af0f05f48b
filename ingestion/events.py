"""Transaction records for the Ingestion Layer."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

# 1 TON = 1e9 nanoton
NANOTON_SCALE = Decimal("1000000000")


@dataclass(frozen=True)
class IncomingTransaction:
    """An incoming transfer to the receiving wallet, as reported by tonapi."""

    value_nano: int
    utime: Optional[int] = None
    tx_hash: Optional[str] = None
    sender: Optional[str] = None

    @property
    def value(self) -> Decimal:
        """Transfer value in TON."""
        return Decimal(self.value_nano) / NANOTON_SCALE

    def occurred_at(self, now: int) -> int:
        """Unix time of the transaction, falling back to ``now`` when unknown."""
        return self.utime if self.utime else now

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "IncomingTransaction":
        """
        Build from a tonapi ``Transaction`` object.

        Missing ``in_msg`` or ``value`` counts as a zero-value transfer.
        """
        in_msg = raw.get("in_msg") or {}
        try:
            value_nano = int(Decimal(str(in_msg.get("value") or 0)))
        except (InvalidOperation, ValueError):
            value_nano = 0

        utime = raw.get("utime")
        source = in_msg.get("source") or {}

        return cls(
            value_nano=value_nano,
            utime=int(utime) if utime else None,
            tx_hash=raw.get("hash"),
            sender=source.get("address") if isinstance(source, dict) else None,
        )
