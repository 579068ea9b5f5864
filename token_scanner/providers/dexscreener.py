"""DexScreener aggregator provider (all chains).

DexScreener returns every trading pair for a token; the most liquid pair is
taken as the token's market. Requests are rate-limited (300/min published)
and sent with rotating browser headers.
"""

from typing import Any

import httpx

from ..core.exceptions import UpstreamPermanentError
from ..core.models import ProviderQuote
from ..core.types import UNKNOWN_CHAIN, DataSource
from .base import BaseProvider, RequestSpec, pick_most_liquid
from .headers import HeaderRotator
from .rate_limiter import RateLimiter


def _pair_liquidity(pair: dict[str, Any]) -> Any:
    liquidity = pair.get("liquidity")
    if isinstance(liquidity, dict):
        return liquidity.get("usd")
    return None


class DexScreenerProvider(BaseProvider):
    """Fetches token pairs from DexScreener."""

    SOURCE = DataSource.DEXSCREENER
    BASE_URL = "https://api.dexscreener.com/latest/dex"
    DEFAULT_CHAIN = UNKNOWN_CHAIN

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = BASE_URL,
        rate_limiter: RateLimiter | None = None,
        header_rotator: HeaderRotator | None = None,
        **kwargs: Any,
    ):
        super().__init__(client, base_url, rate_limiter=rate_limiter, **kwargs)
        self.header_rotator = header_rotator or HeaderRotator()

    async def _before_request(self) -> None:
        await self.header_rotator.jitter()

    def _build_request(self, address: str) -> RequestSpec:
        return f"{self.base_url}/tokens/{address}", None, self.header_rotator.headers()

    def _parse(self, address: str, payload: Any) -> ProviderQuote:
        if not payload:
            return self._unknown()
        if not isinstance(payload, dict):
            raise UpstreamPermanentError(self.name, "Unexpected response shape")

        pairs = payload.get("pairs") or []
        if not isinstance(pairs, list):
            raise UpstreamPermanentError(self.name, "'pairs' is not a list")

        pair = pick_most_liquid(pairs, _pair_liquidity)
        if pair is None:
            return self._unknown()

        base_token = pair.get("baseToken") or {}
        # fdv is populated more often than marketCap on DexScreener
        market_cap = pair.get("fdv") or pair.get("marketCap")
        return ProviderQuote(
            source=self.SOURCE,
            symbol=base_token.get("symbol") if isinstance(base_token, dict) else None,
            market_cap_usd=market_cap,
            liquidity_usd=_pair_liquidity(pair),
            chain=pair.get("chainId") or UNKNOWN_CHAIN,
        )
