"""Claimed-deposit matcher.

Matches a user's claim ("I sent N TON") against the receiving wallet's recent
incoming transactions using a time window and an absolute amount tolerance,
then credits the user's ledger balance minus the service fee.
"""

from decimal import Decimal
from typing import Any, Callable, List, Optional, Protocol
import logging
import time

from ingestion.events import IncomingTransaction
from logic.money import parse_amount, round_ton
from .config import DepositMatcherConfig, DEFAULT_CONFIG
from .models import DepositCheckResult, DepositOutcome

logger = logging.getLogger(__name__)


class TransactionSource(Protocol):
    """Protocol for the recent-transactions provider (see TonApiClient)."""
    async def get_transactions(self, limit: int = 50) -> Optional[List[IncomingTransaction]]: ...


class Ledger(Protocol):
    """Protocol for the balance store (see RedisLedger)."""
    async def credit(self, uid: str, amount: Decimal) -> Decimal: ...
    async def mark_first_deposit(self, uid: str, at_ms: int) -> bool: ...


def compute_credit(
    claimed_amount: Decimal,
    config: DepositMatcherConfig = DEFAULT_CONFIG,
) -> Decimal:
    """Amount credited for a matched claim (fee already deducted)."""
    return round_ton(claimed_amount * config.CREDIT_RATIO)


def is_match(
    tx: IncomingTransaction,
    claimed_amount: Decimal,
    now: int,
    config: DepositMatcherConfig = DEFAULT_CONFIG,
) -> bool:
    """True when ``tx`` is recent enough and close enough to the claim."""
    age = now - tx.occurred_at(now)
    if age < 0 or age >= config.MAX_TX_AGE_SECONDS:
        return False
    return abs(tx.value - claimed_amount) < config.AMOUNT_TOLERANCE


def find_match(
    transactions: List[IncomingTransaction],
    claimed_amount: Decimal,
    now: int,
    config: DepositMatcherConfig = DEFAULT_CONFIG,
) -> Optional[IncomingTransaction]:
    """First transaction in source order matching the claim, if any."""
    for tx in transactions:
        if is_match(tx, claimed_amount, now, config):
            return tx
    return None


class DepositMatcher:
    """
    Best-effort matcher for claimed TON deposits.

    The first transaction (in source order) that is younger than the window
    and within the tolerance of the claim wins. Matched transactions are not
    marked as consumed, so the same transfer can satisfy several claims.

    Example:
        matcher = DepositMatcher(tonapi_client, ledger)
        result = await matcher.check_deposit("u1", "5")
        if result.is_credited:
            print(f"Credited {result.credited} TON")
    """

    def __init__(
        self,
        source: TransactionSource,
        ledger: Ledger,
        config: DepositMatcherConfig = DEFAULT_CONFIG,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            source: Provider of recent incoming transactions
            ledger: Balance store
            config: Matching parameters
            clock: Returns the current Unix time in seconds
        """
        self.source = source
        self.ledger = ledger
        self.config = config
        self._clock = clock

    def compute_credit(self, claimed_amount: Decimal) -> Decimal:
        return compute_credit(claimed_amount, self.config)

    def is_match(self, tx: IncomingTransaction, claimed_amount: Decimal, now: int) -> bool:
        return is_match(tx, claimed_amount, now, self.config)

    def find_match(
        self,
        transactions: List[IncomingTransaction],
        claimed_amount: Decimal,
        now: int,
    ) -> Optional[IncomingTransaction]:
        return find_match(transactions, claimed_amount, now, self.config)

    async def check_deposit(self, user_id: Any, claimed_amount: Any) -> DepositCheckResult:
        """
        Verify a claimed deposit and credit the user on a match.

        Args:
            user_id: Claiming user
            claimed_amount: Amount the user says they sent, in TON

        Returns:
            DepositCheckResult; never raises
        """
        amount = parse_amount(claimed_amount)
        if not user_id or amount is None:
            return DepositCheckResult(outcome=DepositOutcome.BAD_PARAMS)
        uid = str(user_id)

        try:
            transactions = await self.source.get_transactions(limit=self.config.FETCH_LIMIT)
        except Exception as e:
            logger.warning(f"Transaction fetch raised: {e}")
            transactions = None

        if transactions is None:
            logger.info(f"Deposit check for {uid}: transaction source unavailable")
            return DepositCheckResult(outcome=DepositOutcome.UPSTREAM_UNAVAILABLE)

        now = int(self._clock())
        match = self.find_match(transactions, amount, now)
        if match is None:
            logger.debug(f"No transaction matches {amount} TON for {uid} among {len(transactions)}")
            return DepositCheckResult(outcome=DepositOutcome.NOT_FOUND)

        credited = self.compute_credit(amount)
        try:
            balance = await self.ledger.credit(uid, credited)
            first = await self.ledger.mark_first_deposit(uid, int(self._clock() * 1000))
        except Exception:
            logger.exception(f"Failed to credit deposit for {uid}")
            return DepositCheckResult(outcome=DepositOutcome.ERROR, transaction=match)

        logger.info(
            f"Deposit matched for {uid}: claimed {amount} TON, "
            f"tx {(match.tx_hash or '?')[:16]} ({match.value} TON), credited {credited}"
        )

        return DepositCheckResult(
            outcome=DepositOutcome.CREDITED,
            credited=credited,
            balance=balance,
            transaction=match,
            first_deposit=first,
        )
