"""Jupiter asset search provider (Solana)."""

from typing import Any

import httpx

from ..core.exceptions import UpstreamPermanentError
from ..core.models import ProviderQuote
from ..core.types import DataSource
from .base import BaseProvider, RequestSpec, pick_most_liquid


class JupiterProvider(BaseProvider):
    """Looks up Solana tokens through Jupiter's asset search."""

    SOURCE = DataSource.JUPITER
    BASE_URL = "https://datapi.jup.ag/v1/assets"
    DEFAULT_CHAIN = "solana"

    HEADERS = {
        "Accept": "application/json",
        "User-Agent": "TokenScannerAPI/1.0",
    }

    def __init__(self, client: httpx.AsyncClient, base_url: str = BASE_URL, **kwargs: Any):
        super().__init__(client, base_url, **kwargs)

    def _build_request(self, address: str) -> RequestSpec:
        return f"{self.base_url}/search", {"query": address}, dict(self.HEADERS)

    def _parse(self, address: str, payload: Any) -> ProviderQuote:
        if not payload:
            return self._unknown()
        if not isinstance(payload, list):
            raise UpstreamPermanentError(self.name, "Expected a list of assets")

        # Search can match on name/symbol too; prefer the exact mint
        exact = [a for a in payload if isinstance(a, dict) and a.get("id") == address]
        asset = exact[0] if exact else pick_most_liquid(payload, lambda a: a.get("liquidity"))
        if asset is None:
            return self._unknown()

        return ProviderQuote(
            source=self.SOURCE,
            symbol=asset.get("symbol"),
            market_cap_usd=asset.get("mcap"),
            liquidity_usd=asset.get("liquidity"),
            chain=self.DEFAULT_CHAIN,
        )
