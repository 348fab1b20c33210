"""Enumerable whitelist contract."""

from . import contract

__all__ = ["contract"]
