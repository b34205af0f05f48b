"""tonapi Client - Fetch recent transactions of the receiving wallet."""

import asyncio
import logging
from typing import Optional, List, Dict, Any
import aiohttp

from .events import IncomingTransaction

logger = logging.getLogger(__name__)


class TonApiClient:
    """
    Client for the tonapi.io v2 REST API.

    Only the account transaction listing is used. An API key is optional;
    without one the public (rate limited) endpoint is called.

    API Docs: https://docs.tonconsole.com/tonapi/rest-api
    """

    BASE_URL = "https://tonapi.io"
    DEFAULT_LIMIT = 50
    DEFAULT_TIMEOUT_SECONDS = 10.0

    def __init__(
        self,
        account: str,
        api_key: str = "",
        base_url: str = None,
        session: aiohttp.ClientSession = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Initialize tonapi client.

        Args:
            account: Receiving wallet address whose transactions are listed
            api_key: tonapi key; empty means unauthenticated calls
            base_url: Override for the API host
            session: Optional aiohttp session (created on enter if not provided)
            timeout_seconds: Total timeout for a single fetch
        """
        self.account = account
        self._api_key = api_key
        self._base_url = (base_url or self.BASE_URL).rstrip("/")
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API requests."""
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    @property
    def transactions_url(self) -> str:
        return f"{self._base_url}/v2/blockchain/accounts/{self.account}/transactions"

    async def __aenter__(self):
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None

    async def get_transactions(
        self,
        limit: int = DEFAULT_LIMIT,
    ) -> Optional[List[IncomingTransaction]]:
        """
        Fetch the most recent transactions of the receiving account.

        Args:
            limit: Maximum number of transactions to request

        Returns:
            Transactions in the order returned by the API, or None when the
            API could not be reached or answered with something unusable
        """
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

        try:
            params = {"limit": str(limit)}

            async with self._session.get(
                self.transactions_url,
                params=params,
                headers=self._get_headers(),
                timeout=self._timeout,
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    logger.warning(f"tonapi transactions failed ({response.status}): {error_text[:200]}")
                    return None

                data = await response.json()

            raw_txs = data.get("transactions") if isinstance(data, dict) else None
            if not isinstance(raw_txs, list):
                logger.warning("tonapi response has no transactions list")
                return None

            return [IncomingTransaction.from_api(t) for t in raw_txs if isinstance(t, dict)]

        except asyncio.TimeoutError:
            logger.warning(f"tonapi request timed out for {self.account[:8]}...")
            return None
        except Exception as e:
            logger.warning(f"tonapi transactions error: {e}")
            return None
