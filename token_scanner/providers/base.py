"""Base classes for market-data providers."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import UpstreamPermanentError, UpstreamTransientError
from ..core.models import ProviderQuote
from ..core.normalize import parse_usd
from ..core.types import DataSource
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

RequestSpec = tuple[str, dict[str, str] | None, dict[str, str]]


def pick_most_liquid(
    entries: Iterable[dict[str, Any]],
    liquidity: Callable[[dict[str, Any]], Any],
) -> dict[str, Any] | None:
    """Return the entry with the highest liquidity; first one wins ties."""
    best = None
    best_liquidity = -1.0
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        value = parse_usd(liquidity(entry))
        if value > best_liquidity:
            best, best_liquidity = entry, value
    return best


class BaseProvider(ABC):
    """Abstract base class for all market-data providers.

    ``fetch`` never raises: transient failures (timeout, 429, 5xx) are
    retried up to ``retry_attempts`` times, anything else collapses straight
    to the provider's sentinel quote.
    """

    # Subclasses must define their data source
    SOURCE: DataSource = DataSource.UNKNOWN
    # Chain reported on the sentinel quote
    DEFAULT_CHAIN: str | None = None

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        timeout_ms: int = 3000,
        retry_attempts: int = 1,
        retry_delay_ms: int = 200,
        rate_limiter: RateLimiter | None = None,
        rate_limit_key: str | None = None,
    ):
        """
        Initialize provider.

        Args:
            client: Shared async HTTP client
            base_url: Provider API root
            timeout_ms: Per-request timeout
            retry_attempts: Retries allowed for transient failures
            retry_delay_ms: Pause between retries
            rate_limiter: Optional limiter gating every request
            rate_limit_key: Key used with the limiter (defaults to the source)
        """
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.timeout_ms = timeout_ms
        self.retry_attempts = retry_attempts
        self.retry_delay_ms = retry_delay_ms
        self.rate_limiter = rate_limiter
        self.rate_limit_key = rate_limit_key or self.SOURCE.value
        self._requests = 0
        self._failures = 0
        self._retries = 0
        if rate_limiter is not None:
            rate_limiter.register(self.rate_limit_key)

    @property
    def name(self) -> str:
        return self.SOURCE.value

    def is_available(self) -> bool:
        """Check if the provider is configured for use."""
        return True

    async def fetch(self, address: str) -> ProviderQuote:
        """Fetch and normalize market data for one address."""
        retries = self.retry_attempts
        while True:
            try:
                payload = await self._request(address)
                return self._parse(address, payload)
            except UpstreamTransientError as e:
                self._failures += 1
                if retries > 0:
                    retries -= 1
                    self._retries += 1
                    logger.debug(f"{e.message} for {address}, retrying")
                    await asyncio.sleep(self.retry_delay_ms / 1000)
                    continue
                logger.debug(f"{e.message} for {address}, retries exhausted")
                return self._unknown()
            except UpstreamPermanentError as e:
                self._failures += 1
                logger.debug(f"{e.message} for {address}")
                return self._unknown()
            except PydanticValidationError as e:
                self._failures += 1
                logger.debug(f"{self.name} returned an unusable quote for {address}: {e}")
                return self._unknown()

    async def _request(self, address: str) -> Any:
        """Make one rate-limited request; returns parsed JSON or None on 404."""
        if self.rate_limiter is not None:
            await self.rate_limiter.wait_then_record(self.rate_limit_key)
        await self._before_request()

        url, params, headers = self._build_request(address)
        self._requests += 1
        try:
            response = await self.client.get(
                url,
                params=params,
                headers=headers,
                timeout=self.timeout_ms / 1000,
            )
        except httpx.TimeoutException as e:
            raise UpstreamTransientError(self.name, f"Timeout: {e!r}", endpoint=url)
        except httpx.RequestError as e:
            raise UpstreamPermanentError(self.name, f"Request failed: {e!r}", endpoint=url)

        status = response.status_code
        if status == 404:
            return None
        if status == 429 or status >= 500:
            raise UpstreamTransientError(
                self.name, f"HTTP {status}", endpoint=url, status_code=status
            )
        if status >= 400:
            raise UpstreamPermanentError(
                self.name, f"HTTP {status}", endpoint=url, status_code=status
            )

        try:
            return response.json()
        except ValueError:
            raise UpstreamPermanentError(
                self.name, "Malformed JSON response", endpoint=url, status_code=status
            )

    async def _before_request(self) -> None:
        """Hook run right before the HTTP call."""

    @abstractmethod
    def _build_request(self, address: str) -> RequestSpec:
        """Return ``(url, params, headers)`` for an address lookup."""

    @abstractmethod
    def _parse(self, address: str, payload: Any) -> ProviderQuote:
        """Normalize a provider payload into a quote (sentinel if empty)."""

    def _unknown(self) -> ProviderQuote:
        return ProviderQuote.unknown(self.SOURCE, self.DEFAULT_CHAIN)

    def stats(self) -> dict[str, int]:
        """Request counters for observability."""
        return {
            "requests": self._requests,
            "failures": self._failures,
            "retries": self._retries,
        }
