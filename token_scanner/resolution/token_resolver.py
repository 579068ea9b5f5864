"""Token resolution - turns one contract address into a TokenRecord.

Providers are tried in a fixed order that depends on the address shape:

- base58 (Solana-like): Jupiter, then Birdeye (when configured), then DexScreener
- EVM and anything else: DexScreener

The first quote with a real symbol wins. If every provider comes back with
the sentinel, or blows up, the address gets the default record.
"""

import logging

import httpx

from ..core.config import ScannerConfig
from ..core.models import TokenRecord
from ..core.normalize import classify_address
from ..core.types import AddressKind
from ..providers.base import BaseProvider
from ..providers.birdeye import BirdeyeProvider
from ..providers.dexscreener import DexScreenerProvider
from ..providers.jupiter import JupiterProvider
from ..providers.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class TokenResolver:
    """Resolves addresses through an ordered list of providers per address kind."""

    def __init__(
        self,
        solana_providers: list[BaseProvider],
        general_providers: list[BaseProvider],
    ):
        """
        Initialize the resolver.

        Args:
            solana_providers: Tried first, in order, for base58 addresses
            general_providers: Tried for every address after the Solana ones
        """
        self.solana_providers = [p for p in solana_providers if p.is_available()]
        self.general_providers = [p for p in general_providers if p.is_available()]

    def providers_for(self, address: str) -> list[BaseProvider]:
        """Fallback chain for an address."""
        if classify_address(address) is AddressKind.BASE58:
            return self.solana_providers + self.general_providers
        return list(self.general_providers)

    async def resolve(self, address: str) -> TokenRecord:
        """
        Resolve one address. Never raises.

        Args:
            address: Token contract address

        Returns:
            TokenRecord from the first provider with data, else the default
        """
        for provider in self.providers_for(address):
            try:
                quote = await provider.fetch(address)
            except Exception as e:
                logger.debug(f"{provider.name} failed for {address}: {e}")
                continue

            if not quote.is_unknown:
                return TokenRecord.from_quote(address, quote)
            logger.debug(f"{provider.name} has no data for {address}")

        return TokenRecord.default(address)

    @property
    def providers(self) -> list[BaseProvider]:
        """Every distinct provider this resolver may call."""
        seen: list[BaseProvider] = []
        for provider in self.solana_providers + self.general_providers:
            if provider not in seen:
                seen.append(provider)
        return seen


def build_resolver(
    config: ScannerConfig,
    client: httpx.AsyncClient,
    rate_limiter: RateLimiter,
) -> TokenResolver:
    """Wire the default provider chain from configuration."""
    common = {
        "timeout_ms": config.request_timeout_ms,
        "retry_attempts": config.retry_attempts,
        "retry_delay_ms": config.retry_delay_ms,
    }
    solana_providers: list[BaseProvider] = [
        JupiterProvider(client, config.jupiter_base_url, **common),
    ]
    if config.has_birdeye():
        solana_providers.append(
            BirdeyeProvider(
                client,
                config.birdeye_base_url,
                api_key=config.birdeye_api_key,
                **common,
            )
        )
    else:
        logger.info("No BIRDEYE_API_KEY set; Birdeye left out of the Solana chain")

    dexscreener = DexScreenerProvider(
        client,
        config.dexscreener_base_url,
        rate_limiter=rate_limiter,
        **common,
    )
    return TokenResolver(
        solana_providers=solana_providers,
        general_providers=[dexscreener],
    )
