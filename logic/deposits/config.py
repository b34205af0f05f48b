"""Configuration for the Deposit Matcher."""

from decimal import Decimal
from dataclasses import dataclass


@dataclass(frozen=True)
class DepositMatcherConfig:
    """Matching window, tolerance and fee for claimed deposits."""

    # Only transactions younger than this are considered (seconds, strict)
    MAX_TX_AGE_SECONDS: int = 1800  # 30 minutes

    # Claimed vs on-chain amount must differ by strictly less than this (TON)
    AMOUNT_TOLERANCE: Decimal = Decimal("0.01")

    # Share of the deposit credited to the user (10% fee retained)
    CREDIT_RATIO: Decimal = Decimal("0.9")

    # How many recent transactions to scan
    FETCH_LIMIT: int = 50


DEFAULT_CONFIG = DepositMatcherConfig()
