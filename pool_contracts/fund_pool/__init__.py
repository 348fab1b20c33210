"""Reputation-gated fund pool contract."""

from . import contract

__all__ = ["contract"]
