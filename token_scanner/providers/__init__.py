"""Market-data providers for the token scanner.

This module contains:
- DexScreener (all chains, rate-limited aggregator)
- Jupiter (Solana asset search)
- Birdeye (Solana token overview, needs an API key)
- The sliding-window rate limiter shared by providers
"""

from .base import BaseProvider
from .birdeye import BirdeyeProvider
from .dexscreener import DexScreenerProvider
from .headers import HeaderRotator
from .jupiter import JupiterProvider
from .rate_limiter import RateLimiter

__all__ = [
    "BaseProvider",
    "BirdeyeProvider",
    "DexScreenerProvider",
    "HeaderRotator",
    "JupiterProvider",
    "RateLimiter",
]
