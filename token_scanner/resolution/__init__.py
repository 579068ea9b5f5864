"""Token resolution module - resolves addresses to market data."""

from .token_resolver import TokenResolver, build_resolver

__all__ = ["TokenResolver", "build_resolver"]
