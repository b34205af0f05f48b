"""Result types for the Deposit Matcher."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from ingestion.events import IncomingTransaction
from logic.money import to_number


class DepositOutcome(str, Enum):
    """Outcome of a deposit check.

    NOT_FOUND and UPSTREAM_UNAVAILABLE are kept apart for logging but
    answer the caller identically.
    """
    CREDITED = "credited"
    NOT_FOUND = "not_found"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    BAD_PARAMS = "bad_params"
    ERROR = "error"


@dataclass
class DepositCheckResult:
    """Result of ``DepositMatcher.check_deposit``."""

    outcome: DepositOutcome
    credited: Optional[Decimal] = None
    balance: Optional[Decimal] = None
    transaction: Optional[IncomingTransaction] = None
    first_deposit: bool = False

    @property
    def is_credited(self) -> bool:
        return self.outcome == DepositOutcome.CREDITED

    def to_response(self) -> dict:
        """Wire format of /api/checkDeposit."""
        if self.outcome == DepositOutcome.CREDITED:
            return {"ok": True, "credited": to_number(self.credited)}
        if self.outcome == DepositOutcome.BAD_PARAMS:
            return {"ok": False, "error": "bad params"}
        if self.outcome == DepositOutcome.ERROR:
            return {"ok": False, "error": "exception"}
        return {"ok": False}
