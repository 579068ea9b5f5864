"""Token Market-Data Scanner.

Resolves symbol, market cap, liquidity and chain for large batches of token
contract addresses using multiple upstream providers with ordered fallback,
bounded concurrency and per-provider rate limiting, and can fan out batches
across a fleet of worker endpoints.
"""

__version__ = "0.1.0"
