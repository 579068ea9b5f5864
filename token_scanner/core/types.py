"""Type definitions and enums for the token scanner."""

from enum import Enum

# Sentinel values for a token no provider could resolve
UNKNOWN_SYMBOL = "UNKNOWN"
UNKNOWN_CHAIN = "unknown"


class DataSource(str, Enum):
    """Upstream market-data providers."""

    DEXSCREENER = "dexscreener"
    JUPITER = "jupiter"
    BIRDEYE = "birdeye"
    UNKNOWN = "unknown"


class AddressKind(str, Enum):
    """Shape of a token contract address."""

    EVM = "evm"          # 0x-prefixed hex
    BASE58 = "base58"    # Solana-like, no 0x prefix, >= 32 chars
    OTHER = "other"


class TokenStatus(str, Enum):
    """Scan classification of a resolved token."""

    ACTIVE = "active"        # Real data from a provider
    UNBONDED = "unbonded"    # Default / unknown record


class BalancingStrategy(str, Enum):
    """Endpoint selection strategies for the load balancer."""

    ROUND_ROBIN = "round-robin"
    LEAST_USED = "least-used"


# Type aliases for common patterns
USDAmount = float    # USD value
Milliseconds = float
