"""Pytest configuration and fixtures for token scanner tests."""

import asyncio
from typing import Any, Callable

import httpx
import pytest

from token_scanner.core.models import ProviderQuote, TokenRecord
from token_scanner.core.types import DataSource

WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
UNKNOWN_EVM = "0xUNKNOWNTOKEN0000"
BONK = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"


class FakeProvider:
    """Provider stand-in returning canned quotes per address."""

    def __init__(
        self,
        name: str,
        quotes: dict[str, ProviderQuote | Exception] | None = None,
        available: bool = True,
    ):
        self.name = name
        self.quotes = quotes or {}
        self.available = available
        self.calls: list[str] = []

    def is_available(self) -> bool:
        return self.available

    async def fetch(self, address: str) -> ProviderQuote:
        self.calls.append(address)
        outcome = self.quotes.get(address)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            return ProviderQuote.unknown(DataSource.UNKNOWN)
        return outcome


class StubResolver:
    """Resolver stand-in that records concurrency."""

    def __init__(
        self,
        records: dict[str, TokenRecord | Exception] | None = None,
        delay: float = 0.001,
    ):
        self.records = records or {}
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def resolve(self, address: str) -> TokenRecord:
        self.calls.append(address)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            outcome = self.records.get(address)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome or TokenRecord.default(address)
        finally:
            self.in_flight -= 1


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def make_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Factory for AsyncClients backed by a request handler."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def route_async_clients(monkeypatch) -> Callable[[Callable[[httpx.Request], httpx.Response]], None]:
    """Send every AsyncClient built by the code under test to a handler."""
    real_client = httpx.AsyncClient

    def install(handler: Callable[[httpx.Request], httpx.Response]) -> None:
        def patched(*args: Any, **kwargs: Any) -> httpx.AsyncClient:
            kwargs["transport"] = httpx.MockTransport(handler)
            return real_client(*args, **kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", patched)

    return install


@pytest.fixture
def weth_record() -> TokenRecord:
    return TokenRecord(
        address=WETH,
        symbol="WETH",
        market_cap_usd=9_500_000_000,
        liquidity_usd=120_000_000,
        chain="ethereum",
    )


@pytest.fixture
def dexscreener_weth_response() -> dict[str, Any]:
    """DexScreener /tokens response with several WETH pairs."""
    return {
        "schemaVersion": "1.0.0",
        "pairs": [
            {
                "chainId": "arbitrum",
                "dexId": "uniswap",
                "baseToken": {"address": WETH, "name": "Wrapped Ether", "symbol": "WETH"},
                "liquidity": {"usd": 5_000_000.5},
                "fdv": 1_000_000,
            },
            {
                "chainId": "ethereum",
                "dexId": "uniswap",
                "baseToken": {"address": WETH, "name": "Wrapped Ether", "symbol": "WETH"},
                "liquidity": {"usd": "120000000"},
                "fdv": "9500000000",
                "marketCap": 9_400_000_000,
            },
            {
                "chainId": "base",
                "dexId": "aerodrome",
                "baseToken": {"address": WETH, "name": "Wrapped Ether", "symbol": "WETH"},
                "fdv": 2_000_000,
            },
        ],
    }


@pytest.fixture
def jupiter_bonk_response() -> list[dict[str, Any]]:
    """Jupiter /search response for BONK."""
    return [
        {
            "id": "FakeBonkCopy1111111111111111111111111111111",
            "symbol": "BONK2",
            "mcap": 10,
            "liquidity": 999_999_999,
        },
        {
            "id": BONK,
            "name": "Bonk",
            "symbol": "Bonk",
            "mcap": 1_523_000_000.25,
            "liquidity": 8_400_000,
        },
    ]


@pytest.fixture
def birdeye_bonk_response() -> dict[str, Any]:
    """Birdeye token_overview response for BONK."""
    return {
        "success": True,
        "data": {
            "address": BONK,
            "symbol": "Bonk",
            "mc": 1_500_000_000,
            "liquidity": 8_000_000,
        },
    }
