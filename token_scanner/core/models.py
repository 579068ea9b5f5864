"""Pydantic data models for the token scanner.

Records are immutable (frozen) after creation. Field names are snake_case in
Python and camelCase on the wire (``marketCapUSD``, ``durationMs``...), so
serialize with ``model_dump(by_alias=True)`` when talking HTTP.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, computed_field, field_validator

from .normalize import normalize_chain, normalize_symbol, parse_usd
from .types import (
    UNKNOWN_CHAIN,
    UNKNOWN_SYMBOL,
    DataSource,
    Milliseconds,
    TokenStatus,
    USDAmount,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProviderQuote(BaseModel):
    """One provider's normalized view of a token.

    A quote whose symbol is ``UNKNOWN`` is the sentinel: the provider had
    nothing usable for the address.
    """

    source: DataSource = DataSource.UNKNOWN
    symbol: str = UNKNOWN_SYMBOL
    market_cap_usd: USDAmount = Field(default=0.0, alias="marketCapUSD")
    liquidity_usd: USDAmount = Field(default=0.0, alias="liquidityUSD")
    chain: str | None = None

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("market_cap_usd", "liquidity_usd", mode="before")
    @classmethod
    def _coerce_usd(cls, v: Any) -> float:
        return parse_usd(v)

    @field_validator("symbol", mode="before")
    @classmethod
    def _coerce_symbol(cls, v: Any) -> str:
        return normalize_symbol(v)

    @field_validator("chain", mode="before")
    @classmethod
    def _coerce_chain(cls, v: Any) -> str | None:
        if v is None:
            return None
        return normalize_chain(v)

    @property
    def is_unknown(self) -> bool:
        return self.symbol == UNKNOWN_SYMBOL

    @classmethod
    def unknown(cls, source: DataSource, chain: str | None = None) -> "ProviderQuote":
        """Sentinel quote for a provider."""
        return cls(source=source, chain=chain)


class TokenRecord(BaseModel):
    """Resolved market data for one address.

    Either fully populated from a single provider or the complete default
    record; never partially filled.
    """

    address: str
    symbol: str = UNKNOWN_SYMBOL
    market_cap_usd: USDAmount = Field(default=0.0, alias="marketCapUSD")
    liquidity_usd: USDAmount = Field(default=0.0, alias="liquidityUSD")
    chain: str = UNKNOWN_CHAIN

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("market_cap_usd", "liquidity_usd", mode="before")
    @classmethod
    def _coerce_usd(cls, v: Any) -> float:
        return parse_usd(v)

    @field_validator("symbol", mode="before")
    @classmethod
    def _coerce_symbol(cls, v: Any) -> str:
        return normalize_symbol(v)

    @field_validator("chain", mode="before")
    @classmethod
    def _coerce_chain(cls, v: Any) -> str:
        return normalize_chain(v)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> TokenStatus:
        """``active`` when a provider resolved the token, else ``unbonded``."""
        if self.is_default:
            return TokenStatus.UNBONDED
        return TokenStatus.ACTIVE

    @property
    def is_default(self) -> bool:
        return self.symbol == UNKNOWN_SYMBOL

    @classmethod
    def default(cls, address: str) -> "TokenRecord":
        """The fully-defaulted record for an unresolvable address."""
        return cls(address=address)

    @classmethod
    def from_quote(cls, address: str, quote: ProviderQuote) -> "TokenRecord":
        return cls(
            address=address,
            symbol=quote.symbol,
            market_cap_usd=quote.market_cap_usd,
            liquidity_usd=quote.liquidity_usd,
            chain=quote.chain or UNKNOWN_CHAIN,
        )

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase keys for HTTP responses."""
        return self.model_dump(by_alias=True, mode="json")


class ScanMeta(BaseModel):
    """Summary metadata for a completed scan."""

    duration_ms: Milliseconds = Field(alias="durationMs")
    total: int
    active: int
    unbonded: int

    model_config = {"frozen": True, "populate_by_name": True}


class ScanResult(BaseModel):
    """Output of a single BatchScanner invocation."""

    records: list[TokenRecord]
    started_at: datetime = Field(default_factory=_utcnow, alias="startedAt")
    duration_ms: Milliseconds = Field(default=0.0, alias="durationMs")
    meta: ScanMeta

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def active(self) -> list[TokenRecord]:
        return [r for r in self.records if not r.is_default]

    @property
    def unbonded(self) -> list[TokenRecord]:
        return [r for r in self.records if r.is_default]


class ValidationResult(BaseModel):
    """Outcome of validating a scan request."""

    valid: bool
    error: str | None = None

    model_config = {"frozen": True}


class RateCheck(BaseModel):
    """Result of a rate-limiter capacity check."""

    allowed: bool
    wait_ms: Milliseconds = Field(default=0.0, alias="waitMs")

    model_config = {"frozen": True, "populate_by_name": True}


class RateLimitStatus(BaseModel):
    """Snapshot of one provider's rate window."""

    current: int
    limit: int
    remaining: int
    window_ms: Milliseconds = Field(alias="windowMs")

    model_config = {"frozen": True, "populate_by_name": True}


class ChunkOutcome(BaseModel):
    """What happened to one chunk dispatched by the load balancer."""

    index: int
    addresses: list[str]
    endpoint: str | None = None
    success: bool = False
    attempts: int = 0
    error: str | None = None
    records: list[TokenRecord] = Field(default_factory=list)

    model_config = {"frozen": True}


class BalancedScanResult(BaseModel):
    """Reassembled output of a fleet-wide scan."""

    records: list[TokenRecord]
    failed_addresses: list[str] = Field(default_factory=list, alias="failedAddresses")
    chunks: list[ChunkOutcome] = Field(default_factory=list)
    duration_ms: Milliseconds = Field(default=0.0, alias="durationMs")

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def complete(self) -> bool:
        """True when every chunk came back."""
        return not self.failed_addresses

    @property
    def active_count(self) -> int:
        return sum(1 for r in self.records if not r.is_default)

    @property
    def unbonded_count(self) -> int:
        return sum(1 for r in self.records if r.is_default)
