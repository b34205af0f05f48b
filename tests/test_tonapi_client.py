"""Tests for the tonapi transaction source."""

import asyncio
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from ingestion import IncomingTransaction, TonApiClient

WALLET = "UQownerWallet000000000000000000000000000000000000"


def mock_session(status=200, payload=None, text="", exc=None):
    """aiohttp-like session whose get() yields a canned response."""
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=payload)
    response.text = AsyncMock(return_value=text)

    ctx = MagicMock()
    if exc is not None:
        ctx.__aenter__ = AsyncMock(side_effect=exc)
    else:
        ctx.__aenter__ = AsyncMock(return_value=response)
    ctx.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.get = MagicMock(return_value=ctx)
    session.close = AsyncMock()
    return session


# ============================================================================
# Unit Tests - IncomingTransaction
# ============================================================================

class TestIncomingTransaction:

    def test_from_api(self):
        raw = {
            "hash": "abc123",
            "utime": 1_700_000_000,
            "in_msg": {"value": 5_000_000_000, "source": {"address": "0:sender"}},
        }

        tx = IncomingTransaction.from_api(raw)

        assert tx.value_nano == 5_000_000_000
        assert tx.value == Decimal("5")
        assert tx.utime == 1_700_000_000
        assert tx.tx_hash == "abc123"
        assert tx.sender == "0:sender"

    def test_missing_in_msg_is_zero_value(self):
        tx = IncomingTransaction.from_api({"hash": "x", "utime": 10})

        assert tx.value == Decimal("0")

    def test_missing_utime_falls_back_to_now(self):
        tx = IncomingTransaction.from_api({"in_msg": {"value": "1000"}})

        assert tx.utime is None
        assert tx.occurred_at(now=42) == 42


# ============================================================================
# Unit Tests - TonApiClient
# ============================================================================

class TestTonApiClient:

    @pytest.mark.asyncio
    async def test_parses_transactions_in_order(self):
        payload = {"transactions": [
            {"hash": "a", "utime": 1, "in_msg": {"value": 1}},
            {"hash": "b", "utime": 2, "in_msg": {"value": 2}},
        ]}
        session = mock_session(payload=payload)
        client = TonApiClient(WALLET, session=session)

        txs = await client.get_transactions(limit=50)

        assert [t.tx_hash for t in txs] == ["a", "b"]
        url = session.get.call_args.args[0]
        assert url == f"https://tonapi.io/v2/blockchain/accounts/{WALLET}/transactions"
        assert session.get.call_args.kwargs["params"] == {"limit": "50"}

    @pytest.mark.asyncio
    async def test_bearer_header_only_with_key(self):
        keyed = mock_session(payload={"transactions": []})
        anonymous = mock_session(payload={"transactions": []})

        await TonApiClient(WALLET, api_key="k", session=keyed).get_transactions()
        await TonApiClient(WALLET, session=anonymous).get_transactions()

        assert keyed.get.call_args.kwargs["headers"]["Authorization"] == "Bearer k"
        assert "Authorization" not in anonymous.get.call_args.kwargs["headers"]

    @pytest.mark.asyncio
    async def test_ten_second_timeout(self):
        session = mock_session(payload={"transactions": []})

        await TonApiClient(WALLET, session=session).get_transactions()

        assert session.get.call_args.kwargs["timeout"].total == 10.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kwargs", [
        {"status": 500, "text": "internal"},
        {"status": 429, "text": "rate limited"},
        {"payload": {"error": "nope"}},
        {"payload": ["not", "a", "dict"]},
        {"exc": asyncio.TimeoutError()},
        {"exc": ConnectionError("refused")},
    ])
    async def test_failures_return_none(self, kwargs):
        client = TonApiClient(WALLET, session=mock_session(**kwargs))

        assert await client.get_transactions() is None

    @pytest.mark.asyncio
    async def test_injected_session_not_closed(self):
        session = mock_session(payload={"transactions": []})

        async with TonApiClient(WALLET, session=session) as client:
            await client.get_transactions()

        session.close.assert_not_called()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
