"""Deposit Matcher - claimed deposit verification and crediting."""

from .models import DepositOutcome, DepositCheckResult
from .matcher import DepositMatcher, compute_credit, find_match, is_match
from .config import DepositMatcherConfig

__all__ = [
    "DepositOutcome",
    "DepositCheckResult",
    "DepositMatcher",
    "DepositMatcherConfig",
    "compute_credit",
    "find_match",
    "is_match",
]
