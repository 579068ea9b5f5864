"""Core module - data models, types, and exceptions."""

from .models import (
    BalancedScanResult,
    ChunkOutcome,
    ProviderQuote,
    RateCheck,
    RateLimitStatus,
    ScanMeta,
    ScanResult,
    TokenRecord,
    ValidationResult,
)
from .types import (
    UNKNOWN_CHAIN,
    UNKNOWN_SYMBOL,
    AddressKind,
    BalancingStrategy,
    DataSource,
    TokenStatus,
)
from .exceptions import (
    ConfigurationError,
    EndpointDispatchError,
    NoEndpointsError,
    ScannerError,
    UpstreamError,
    UpstreamPermanentError,
    UpstreamTransientError,
    ValidationError,
)

__all__ = [
    # Models
    "BalancedScanResult",
    "ChunkOutcome",
    "ProviderQuote",
    "RateCheck",
    "RateLimitStatus",
    "ScanMeta",
    "ScanResult",
    "TokenRecord",
    "ValidationResult",
    # Types
    "UNKNOWN_CHAIN",
    "UNKNOWN_SYMBOL",
    "AddressKind",
    "BalancingStrategy",
    "DataSource",
    "TokenStatus",
    # Exceptions
    "ConfigurationError",
    "EndpointDispatchError",
    "NoEndpointsError",
    "ScannerError",
    "UpstreamError",
    "UpstreamPermanentError",
    "UpstreamTransientError",
    "ValidationError",
]
