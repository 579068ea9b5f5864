"""Concurrency-bounded batch scanning of token addresses."""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Protocol

from ..core.exceptions import ValidationError
from ..core.models import ScanMeta, ScanResult, TokenRecord, ValidationResult
from ..core.normalize import dedupe

logger = logging.getLogger(__name__)


class Resolver(Protocol):
    async def resolve(self, address: str) -> TokenRecord: ...


class BatchScanner:
    """Resolves many addresses at once without hammering upstreams."""

    def __init__(
        self,
        resolver: Resolver,
        concurrency_limit: int = 300,
        max_tokens: int = 3000,
        progress_interval: int = 50,
    ):
        """
        Initialize the scanner.

        Args:
            resolver: Anything with an async ``resolve(address)``
            concurrency_limit: Maximum in-flight resolutions
            max_tokens: Largest accepted request
            progress_interval: Log progress every N completions
        """
        if concurrency_limit <= 0:
            raise ValueError("concurrency_limit must be positive")
        self.resolver = resolver
        self.concurrency_limit = concurrency_limit
        self.max_tokens = max_tokens
        self.progress_interval = progress_interval

    def validate(self, tokens: Any) -> ValidationResult:
        """Check a scan request before any work starts."""
        if not isinstance(tokens, (list, tuple)) or not all(
            isinstance(t, str) for t in tokens
        ):
            return ValidationResult(
                valid=False,
                error='Invalid request: "tokens" must be an array of token addresses',
            )

        if len(tokens) == 0:
            return ValidationResult(
                valid=False,
                error='Invalid request: "tokens" array cannot be empty',
            )

        if len(tokens) > self.max_tokens:
            return ValidationResult(
                valid=False,
                error=f"Invalid request: Maximum {self.max_tokens} tokens allowed per request",
            )

        return ValidationResult(valid=True)

    async def scan(self, tokens: list[str]) -> ScanResult:
        """
        Scan a batch of addresses.

        Duplicates are resolved once; the output follows first-occurrence
        order of the input regardless of completion order.

        Raises:
            ValidationError: If the request is invalid (nothing is scanned)
        """
        validation = self.validate(tokens)
        if not validation.valid:
            raise ValidationError(validation.error or "Invalid request")

        addresses = dedupe(tokens)
        total = len(addresses)
        started_at = datetime.now(timezone.utc)
        start = time.perf_counter()

        logger.info(
            f"Starting scan for {total} tokens with concurrency limit of "
            f"{self.concurrency_limit}"
        )

        semaphore = asyncio.Semaphore(self.concurrency_limit)
        completed = 0

        async def run(address: str) -> TokenRecord:
            nonlocal completed
            async with semaphore:
                record = await self._resolve_isolated(address)
            completed += 1
            if self.progress_interval and completed % self.progress_interval == 0:
                logger.info(f"Processed {completed}/{total} tokens")
            return record

        records = await asyncio.gather(*(run(a) for a in addresses))

        duration_ms = (time.perf_counter() - start) * 1000
        active = sum(1 for r in records if not r.is_default)
        logger.info(f"Completed {total} tokens in {duration_ms:.0f}ms ({active} active)")

        return ScanResult(
            records=list(records),
            started_at=started_at,
            duration_ms=duration_ms,
            meta=ScanMeta(
                duration_ms=duration_ms,
                total=total,
                active=active,
                unbonded=total - active,
            ),
        )

    async def _resolve_isolated(self, address: str) -> TokenRecord:
        # One address must never take the batch down with it
        try:
            return await self.resolver.resolve(address)
        except Exception as e:
            logger.error(f"Failed to fetch data for {address}: {e}")
            return TokenRecord.default(address)
