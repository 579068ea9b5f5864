"""Client-side load balancing of scan batches across worker endpoints.

Each worker runs its own BatchScanner behind ``POST /scan`` and enforces its
own upstream rate limits, so throughput grows with the size of the fleet.
A large address list is split into fixed-size chunks, every chunk is routed
to one endpoint, and the results are stitched back together in chunk order.

A chunk whose endpoint fails is retried once on a different endpoint. If
that also fails, its addresses are reported in ``failed_addresses`` rather
than silently dropped.
"""

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import EndpointDispatchError, NoEndpointsError
from ..core.models import BalancedScanResult, ChunkOutcome, TokenRecord
from ..core.normalize import dedupe
from ..core.types import BalancingStrategy
from ..extraction import chunk_addresses

logger = logging.getLogger(__name__)

URL_TOKEN_RE = re.compile(r"https?://\S+")

# Each worker stays under DexScreener's 300 requests/minute
REQUESTS_PER_ENDPOINT_PER_MINUTE = 300


@dataclass
class Endpoint:
    """A remote worker and the number of chunks routed to it."""

    url: str
    request_count: int = 0


def parse_endpoint_lines(lines: list[str]) -> list[str]:
    """Pull the first URL token out of each non-empty line."""
    urls = []
    for line in lines:
        if not line.strip():
            continue
        match = URL_TOKEN_RE.search(line)
        if match:
            urls.append(match.group(0).rstrip("/"))
    return urls


class EndpointLoadBalancer:
    """Distributes address chunks over a fleet of scanner workers."""

    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient,
        endpoints: list[str] | None = None,
        strategy: BalancingStrategy = BalancingStrategy.ROUND_ROBIN,
        timeout_ms: int = 60_000,
        retry_on_alternate: bool = True,
    ):
        """
        Initialize the load balancer.

        Args:
            api_key: Key sent to workers in ``X-API-Key``
            client: Shared async HTTP client
            endpoints: Worker base URLs
            strategy: Default endpoint selection strategy
            timeout_ms: Timeout for one chunk request
            retry_on_alternate: Retry a failed chunk once on another endpoint
        """
        self.api_key = api_key
        self.client = client
        self.strategy = BalancingStrategy(strategy)
        self.timeout_ms = timeout_ms
        self.retry_on_alternate = retry_on_alternate
        self._endpoints: list[Endpoint] = []
        self._cursor = 0
        for url in endpoints or []:
            self.add_endpoint(url)

    def load_endpoints(self, path: Path | str) -> int:
        """
        Register endpoints from a line-delimited file.

        Returns:
            Number of endpoints added
        """
        lines = Path(path).read_text(encoding="utf-8").splitlines()
        urls = parse_endpoint_lines(lines)
        for url in urls:
            self.add_endpoint(url)
        logger.info(f"Loaded {len(urls)} API endpoints from {path}")
        return len(urls)

    def add_endpoint(self, url: str) -> None:
        url = url.rstrip("/")
        if any(e.url == url for e in self._endpoints):
            logger.debug(f"Endpoint already registered: {url}")
            return
        self._endpoints.append(Endpoint(url=url))

    @property
    def endpoints(self) -> list[str]:
        return [e.url for e in self._endpoints]

    @property
    def request_counts(self) -> dict[str, int]:
        return {e.url: e.request_count for e in self._endpoints}

    def next_endpoint(self, exclude: set[str] | None = None) -> Endpoint:
        """Round-robin over registered endpoints, skipping ``exclude``."""
        if not self._endpoints:
            raise NoEndpointsError()
        exclude = exclude or set()
        for _ in range(len(self._endpoints)):
            endpoint = self._endpoints[self._cursor]
            self._cursor = (self._cursor + 1) % len(self._endpoints)
            if endpoint.url not in exclude:
                return endpoint
        raise NoEndpointsError()

    def least_used_endpoint(self, exclude: set[str] | None = None) -> Endpoint:
        """Endpoint with the fewest chunks so far; earliest registered wins ties."""
        exclude = exclude or set()
        candidates = [e for e in self._endpoints if e.url not in exclude]
        if not candidates:
            raise NoEndpointsError()
        # min() keeps the first of equal elements
        return min(candidates, key=lambda e: e.request_count)

    def _acquire(
        self,
        strategy: BalancingStrategy,
        exclude: set[str] | None = None,
    ) -> Endpoint:
        if strategy is BalancingStrategy.LEAST_USED:
            endpoint = self.least_used_endpoint(exclude)
        else:
            endpoint = self.next_endpoint(exclude)
        endpoint.request_count += 1
        return endpoint

    async def _post_chunk(self, endpoint: Endpoint, chunk: list[str]) -> list[TokenRecord]:
        url = f"{endpoint.url}/scan"
        try:
            response = await self.client.post(
                url,
                json={"tokens": chunk},
                headers={"X-API-Key": self.api_key},
                timeout=self.timeout_ms / 1000,
            )
        except httpx.HTTPError as e:
            raise EndpointDispatchError(endpoint.url, repr(e))

        if not response.is_success:
            raise EndpointDispatchError(
                endpoint.url,
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body: Any = response.json()
        except ValueError:
            raise EndpointDispatchError(endpoint.url, "Malformed JSON response")

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list) or not body.get("success", False):
            raise EndpointDispatchError(endpoint.url, "Response carries no scan data")

        try:
            records = [TokenRecord.model_validate(item) for item in data]
        except PydanticValidationError as e:
            raise EndpointDispatchError(endpoint.url, f"Invalid record: {e}")

        if len(records) != len(chunk):
            raise EndpointDispatchError(
                endpoint.url,
                f"Expected {len(chunk)} records, got {len(records)}",
            )
        if [record.address for record in records] != chunk:
            raise EndpointDispatchError(
                endpoint.url,
                "Records do not match the requested addresses",
            )
        return records

    async def _dispatch(
        self,
        index: int,
        chunk: list[str],
        endpoint: Endpoint,
        strategy: BalancingStrategy,
    ) -> ChunkOutcome:
        attempts = 1
        try:
            records = await self._post_chunk(endpoint, chunk)
            return ChunkOutcome(
                index=index,
                addresses=chunk,
                endpoint=endpoint.url,
                success=True,
                attempts=attempts,
                records=records,
            )
        except EndpointDispatchError as e:
            error = e
            logger.error(f"Chunk {index}: {e.message}")

        if self.retry_on_alternate and len(self._endpoints) > 1:
            alternate = self._acquire(strategy, exclude={endpoint.url})
            attempts += 1
            logger.info(f"Chunk {index}: retrying on {alternate.url}")
            try:
                records = await self._post_chunk(alternate, chunk)
                return ChunkOutcome(
                    index=index,
                    addresses=chunk,
                    endpoint=alternate.url,
                    success=True,
                    attempts=attempts,
                    records=records,
                )
            except EndpointDispatchError as e:
                error = e
                logger.error(f"Chunk {index}: {e.message}")

        return ChunkOutcome(
            index=index,
            addresses=chunk,
            endpoint=error.endpoint,
            success=False,
            attempts=attempts,
            error=error.message,
        )

    async def scan(
        self,
        addresses: list[str],
        chunk_size: int = 100,
        strategy: BalancingStrategy | str | None = None,
    ) -> BalancedScanResult:
        """
        Scan addresses across the fleet.

        Args:
            addresses: Addresses to scan; duplicates are dropped in order
            chunk_size: Addresses per worker request
            strategy: Override the default selection strategy

        Returns:
            BalancedScanResult with records in input order and the
            addresses of any chunk that could not be scanned

        Raises:
            NoEndpointsError: If no endpoints are registered
        """
        strategy = BalancingStrategy(strategy) if strategy else self.strategy
        unique = dedupe(addresses)
        chunks = chunk_addresses(unique, chunk_size)
        if not chunks:
            return BalancedScanResult(records=[])
        if not self._endpoints:
            raise NoEndpointsError()

        logger.info(
            f"Split {len(unique)} tokens into {len(chunks)} chunks of {chunk_size}, "
            f"distributing across {len(self._endpoints)} endpoints ({strategy.value})"
        )
        start = time.perf_counter()

        # Pick every endpoint up front so counters move before any request
        assignments = [self._acquire(strategy) for _ in chunks]
        outcomes = await asyncio.gather(
            *(
                self._dispatch(index, chunk, endpoint, strategy)
                for index, (chunk, endpoint) in enumerate(zip(chunks, assignments))
            )
        )
        outcomes = sorted(outcomes, key=lambda o: o.index)

        records: list[TokenRecord] = []
        failed: list[str] = []
        for outcome in outcomes:
            if outcome.success:
                records.extend(outcome.records)
            else:
                failed.extend(outcome.addresses)

        duration_ms = (time.perf_counter() - start) * 1000
        seconds = max(duration_ms / 1000, 1e-9)
        logger.info(
            f"Completed {len(records)}/{len(unique)} tokens in {seconds:.2f}s "
            f"({len(records) / seconds:.0f} tokens/second)"
        )
        if failed:
            logger.warning(f"{len(failed)} addresses could not be scanned")
        for url, count in self.request_counts.items():
            logger.debug(f"  {url}: {count} requests")

        return BalancedScanResult(
            records=records,
            failed_addresses=failed,
            chunks=outcomes,
            duration_ms=duration_ms,
        )

    def stats(self) -> dict[str, Any]:
        """Distribution of chunks across the fleet."""
        counts = self.request_counts
        return {
            "totalEndpoints": len(self._endpoints),
            "totalRequests": sum(counts.values()),
            "requestsPerEndpoint": counts,
            "capacity": len(self._endpoints) * REQUESTS_PER_ENDPOINT_PER_MINUTE,
        }
