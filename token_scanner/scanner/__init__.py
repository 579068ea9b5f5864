"""Batch scanning module."""

from .batch_scanner import BatchScanner

__all__ = ["BatchScanner"]
