"""Pull token contract addresses out of raw text dumps (SQL, JSON, logs)."""

import re

from .core.normalize import BASE58_MIN_LENGTH, dedupe

CONTRACT_FIELD_RE = re.compile(r'"contract"\s*:\s*"([a-zA-Z0-9]+)"')


def extract_contract_addresses(text: str, min_length: int = BASE58_MIN_LENGTH) -> list[str]:
    """
    Find ``"contract":"<address>"`` entries in a dump.

    Args:
        text: Raw dump content
        min_length: Shorter matches are ignored

    Returns:
        Unique addresses in order of first appearance
    """
    found = (m.group(1) for m in CONTRACT_FIELD_RE.finditer(text))
    return dedupe(a for a in found if len(a) >= min_length)


def chunk_addresses(addresses: list[str], size: int) -> list[list[str]]:
    if size <= 0:
        raise ValueError("size must be positive")
    return [addresses[i:i + size] for i in range(0, len(addresses), size)]
