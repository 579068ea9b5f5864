"""Normalization and validation helpers shared by providers and models."""

import math
from typing import Any, Iterable

from .types import UNKNOWN_CHAIN, UNKNOWN_SYMBOL, AddressKind

# Solana addresses are 32-byte keys, 32-44 base58 chars
BASE58_MIN_LENGTH = 32


def parse_usd(value: Any) -> float:
    """Parse an upstream USD figure.

    Accepts numbers and numeric strings. Anything unparsable, negative,
    NaN or infinite collapses to 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(parsed) or math.isinf(parsed) or parsed < 0:
        return 0.0
    return parsed


def normalize_symbol(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        return UNKNOWN_SYMBOL
    return value.strip()


def normalize_chain(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        return UNKNOWN_CHAIN
    return value.strip()


def classify_address(address: str) -> AddressKind:
    """Classify an address by shape.

    Anything starting with ``0x`` is treated as EVM, even when it is not a
    well-formed 20-byte hex string; such addresses only ever go to the
    general aggregator.
    """
    if address.startswith("0x"):
        return AddressKind.EVM
    if len(address) >= BASE58_MIN_LENGTH:
        return AddressKind.BASE58
    return AddressKind.OTHER


def dedupe(addresses: Iterable[str]) -> list[str]:
    """Drop duplicates, keeping first-occurrence order."""
    return list(dict.fromkeys(addresses))
