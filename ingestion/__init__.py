"""Ingestion Layer - Incoming TON transactions for the receiving wallet."""

from .events import IncomingTransaction, NANOTON_SCALE
from .tonapi_client import TonApiClient

__all__ = [
    "IncomingTransaction",
    "NANOTON_SCALE",
    "TonApiClient",
]
