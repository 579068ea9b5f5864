"""Output formatters for scan results.

Provides two output formats:
- JSON: Machine-readable, camelCase keys as served by the worker API
- Table: Human-readable CLI output
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from rich.table import Table

from ..core.models import BalancedScanResult, ScanResult, TokenRecord

Result = ScanResult | BalancedScanResult


def _summary(result: Result) -> dict[str, Any]:
    if isinstance(result, ScanResult):
        return result.meta.model_dump(by_alias=True)
    return {
        "durationMs": result.duration_ms,
        "total": len(result.records) + len(result.failed_addresses),
        "active": result.active_count,
        "unbonded": result.unbonded_count,
        "failed": len(result.failed_addresses),
    }


class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format(self, result: Result) -> Any:
        """Format the result for display."""
        pass


class JSONFormatter(OutputFormatter):
    """Formats results as JSON."""

    def __init__(self, indent: int = 2):
        self.indent = indent

    def to_dict(self, result: Result) -> dict[str, Any]:
        data: dict[str, Any] = {
            "meta": _summary(result),
            "data": [record.to_wire() for record in result.records],
        }
        if isinstance(result, BalancedScanResult):
            data["failedAddresses"] = list(result.failed_addresses)
        return data

    def format(self, result: Result) -> str:
        return json.dumps(self.to_dict(result), indent=self.indent)

    def format_to_file(self, result: Result, filepath: Path | str) -> None:
        """Write formatted result to a file."""
        Path(filepath).write_text(self.format(result), encoding="utf-8")


class TableFormatter(OutputFormatter):
    """Formats results as a rich table, most liquid tokens first."""

    def __init__(self, limit: int | None = 50, active_only: bool = False):
        """
        Args:
            limit: Maximum rows to show (None for all)
            active_only: Hide tokens no provider could resolve
        """
        self.limit = limit
        self.active_only = active_only

    def _rows(self, records: list[TokenRecord]) -> list[TokenRecord]:
        rows = [r for r in records if not (self.active_only and r.is_default)]
        rows.sort(key=lambda r: r.liquidity_usd, reverse=True)
        return rows[: self.limit] if self.limit else rows

    def format(self, result: Result) -> Table:
        summary = _summary(result)
        table = Table(
            title=(
                f"Scanned {summary['total']} tokens in {summary['durationMs'] / 1000:.2f}s "
                f"- {summary['active']} active, {summary['unbonded']} unbonded"
            ),
        )
        table.add_column("Symbol", style="bold")
        table.add_column("Chain")
        table.add_column("Liquidity (USD)", justify="right")
        table.add_column("Market Cap (USD)", justify="right")
        table.add_column("Address", overflow="fold")

        for record in self._rows(list(result.records)):
            style = "dim" if record.is_default else None
            table.add_row(
                record.symbol,
                record.chain,
                f"${record.liquidity_usd:,.0f}",
                f"${record.market_cap_usd:,.0f}",
                record.address,
                style=style,
            )
        return table
