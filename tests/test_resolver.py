"""Tests for multi-provider token resolution."""

import httpx
import pytest

from token_scanner.core.config import ScannerConfig
from token_scanner.core.exceptions import UpstreamTransientError
from token_scanner.core.models import ProviderQuote, TokenRecord
from token_scanner.core.normalize import classify_address
from token_scanner.core.types import AddressKind, DataSource
from token_scanner.providers.rate_limiter import RateLimiter
from token_scanner.resolution.token_resolver import TokenResolver, build_resolver

from conftest import BONK, UNKNOWN_EVM, WETH, FakeProvider


def quote(symbol: str, chain: str | None = "solana", **kwargs) -> ProviderQuote:
    return ProviderQuote(
        source=DataSource.UNKNOWN,
        symbol=symbol,
        market_cap_usd=kwargs.get("mcap", 1000),
        liquidity_usd=kwargs.get("liquidity", 100),
        chain=chain,
    )


class TestAddressClassification:
    """Tests for address shape detection."""

    def test_classify(self):
        assert classify_address(WETH) is AddressKind.EVM
        assert classify_address(UNKNOWN_EVM) is AddressKind.EVM
        assert classify_address(BONK) is AddressKind.BASE58
        assert classify_address("short") is AddressKind.OTHER


class TestTokenResolver:
    """Tests for ordered fallback."""

    @pytest.mark.asyncio
    async def test_solana_address_tries_solana_provider_first(self):
        jupiter = FakeProvider("jupiter", {BONK: quote("Bonk")})
        dex = FakeProvider("dexscreener", {BONK: quote("BONK-DEX")})
        resolver = TokenResolver([jupiter], [dex])

        record = await resolver.resolve(BONK)

        assert record.symbol == "Bonk"
        assert record.chain == "solana"
        assert dex.calls == []

    @pytest.mark.asyncio
    async def test_solana_falls_through_to_aggregator(self):
        jupiter = FakeProvider("jupiter")
        birdeye = FakeProvider("birdeye")
        dex = FakeProvider("dexscreener", {BONK: quote("Bonk", chain="solana")})
        resolver = TokenResolver([jupiter, birdeye], [dex])

        record = await resolver.resolve(BONK)

        assert record.symbol == "Bonk"
        assert jupiter.calls == [BONK]
        assert birdeye.calls == [BONK]
        assert dex.calls == [BONK]

    @pytest.mark.asyncio
    async def test_evm_address_skips_solana_providers(self):
        jupiter = FakeProvider("jupiter")
        dex = FakeProvider("dexscreener", {WETH: quote("WETH", chain="ethereum")})
        resolver = TokenResolver([jupiter], [dex])

        record = await resolver.resolve(WETH)

        assert record.symbol == "WETH"
        assert record.chain == "ethereum"
        assert jupiter.calls == []

    @pytest.mark.asyncio
    async def test_all_unknown_gives_default_record(self):
        resolver = TokenResolver([FakeProvider("jupiter")], [FakeProvider("dexscreener")])

        record = await resolver.resolve(BONK)

        assert record == TokenRecord.default(BONK)
        assert record.symbol == "UNKNOWN"
        assert record.market_cap_usd == 0
        assert record.liquidity_usd == 0
        assert record.chain == "unknown"

    @pytest.mark.asyncio
    async def test_provider_exception_is_treated_as_unknown(self):
        jupiter = FakeProvider(
            "jupiter",
            {BONK: UpstreamTransientError("jupiter", "boom")},
        )
        dex = FakeProvider("dexscreener", {BONK: RuntimeError("unexpected")})
        resolver = TokenResolver([jupiter], [dex])

        record = await resolver.resolve(BONK)

        assert record.is_default

    @pytest.mark.asyncio
    async def test_missing_chain_becomes_unknown(self):
        dex = FakeProvider("dexscreener", {WETH: quote("WETH", chain=None)})
        record = await TokenResolver([], [dex]).resolve(WETH)

        assert record.symbol == "WETH"
        assert record.chain == "unknown"

    @pytest.mark.asyncio
    async def test_same_data_gives_same_record(self):
        dex = FakeProvider("dexscreener", {WETH: quote("WETH", chain="ethereum")})
        resolver = TokenResolver([], [dex])

        first = await resolver.resolve(WETH)
        second = await resolver.resolve(WETH)

        assert first == second
        assert len(dex.calls) == 2

    def test_unavailable_providers_are_skipped(self):
        birdeye = FakeProvider("birdeye", available=False)
        jupiter = FakeProvider("jupiter")
        dex = FakeProvider("dexscreener")
        resolver = TokenResolver([jupiter, birdeye], [dex])

        assert [p.name for p in resolver.providers_for(BONK)] == ["jupiter", "dexscreener"]
        assert [p.name for p in resolver.providers_for(WETH)] == ["dexscreener"]


class TestBuildResolver:
    """Tests for wiring providers from configuration."""

    def test_default_chain_without_birdeye_key(self):
        resolver = build_resolver(ScannerConfig(), httpx.AsyncClient(), RateLimiter())

        assert [p.name for p in resolver.providers_for(BONK)] == ["jupiter", "dexscreener"]
        assert "birdeye" not in [p.name for p in resolver.providers]

    def test_birdeye_joins_chain_with_key(self):
        config = ScannerConfig(birdeye_api_key="key", request_timeout_ms=1500)
        resolver = build_resolver(config, httpx.AsyncClient(), RateLimiter())

        providers = resolver.providers_for(BONK)
        assert [p.name for p in providers] == ["jupiter", "birdeye", "dexscreener"]
        assert all(p.timeout_ms == 1500 for p in providers)

    def test_only_dexscreener_is_rate_limited(self):
        limiter = RateLimiter()
        build_resolver(ScannerConfig(), httpx.AsyncClient(), limiter)

        assert set(limiter.status_all()) == {"dexscreener"}

    @pytest.mark.asyncio
    async def test_end_to_end_over_http(self, make_client, dexscreener_weth_response):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith(WETH):
                return httpx.Response(200, json=dexscreener_weth_response)
            return httpx.Response(500)

        config = ScannerConfig(retry_delay_ms=0)
        async with make_client(handler) as client:
            resolver = build_resolver(config, client, RateLimiter())
            for provider in resolver.providers:
                if provider.name == "dexscreener":
                    provider.header_rotator.jitter_ms = (0, 0)

            weth = await resolver.resolve(WETH)
            unknown = await resolver.resolve(UNKNOWN_EVM)

        assert weth.symbol == "WETH"
        assert weth.chain == "ethereum"
        assert weth.market_cap_usd > 0
        assert weth.liquidity_usd > 0
        assert unknown == TokenRecord.default(UNKNOWN_EVM)
