"""Birdeye token overview provider (Solana).

Birdeye's public API requires an API key, so the provider reports itself
unavailable without one and is left out of the fallback chain.
"""

from typing import Any

import httpx

from ..core.exceptions import UpstreamPermanentError
from ..core.models import ProviderQuote
from ..core.types import DataSource
from .base import BaseProvider, RequestSpec


class BirdeyeProvider(BaseProvider):
    """Fetches token overview data from Birdeye."""

    SOURCE = DataSource.BIRDEYE
    BASE_URL = "https://public-api.birdeye.so"
    DEFAULT_CHAIN = "solana"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = BASE_URL,
        api_key: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(client, base_url, **kwargs)
        self.api_key = api_key

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _build_request(self, address: str) -> RequestSpec:
        headers = {
            "Accept": "application/json",
            "User-Agent": "TokenScannerAPI/1.0",
            "x-chain": "solana",
        }
        if self.api_key:
            headers["X-API-KEY"] = self.api_key
        return f"{self.base_url}/defi/token_overview", {"address": address}, headers

    def _parse(self, address: str, payload: Any) -> ProviderQuote:
        if not payload:
            return self._unknown()
        if not isinstance(payload, dict):
            raise UpstreamPermanentError(self.name, "Unexpected response shape")

        data = payload.get("data")
        if not data:
            return self._unknown()
        if not isinstance(data, dict):
            raise UpstreamPermanentError(self.name, "'data' is not an object")

        return ProviderQuote(
            source=self.SOURCE,
            symbol=data.get("symbol"),
            market_cap_usd=data.get("mc") or data.get("marketCap"),
            liquidity_usd=data.get("liquidity"),
            chain=self.DEFAULT_CHAIN,
        )
