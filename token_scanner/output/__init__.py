"""Output formatting module."""

from .formatters import JSONFormatter, OutputFormatter, TableFormatter

__all__ = ["JSONFormatter", "OutputFormatter", "TableFormatter"]
