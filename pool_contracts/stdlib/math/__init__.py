# -*- coding: utf-8 -*-
"""
pool_contracts.stdlib.math
==========================

Integer-only math helpers for pool contracts.

Contracts must avoid Python floats. Everything here is integer arithmetic
with explicit floor rounding; invalid inputs revert through `abi.revert`
with a ``MATH:*`` code.

Examples
--------
    from pool_contracts.stdlib.math import apply_bps, ratio_permille

    apply_bps(1000, 1000)      # 100   (10% of 1000, floor)
    ratio_permille(8, 10)      # 800
"""

from __future__ import annotations

from typing import Final

from pool_vm.stdlib import abi

U256_MAX: Final[int] = (1 << 256) - 1

BPS_DEN: Final[int] = 10_000  # basis points denominator
PERMILLE_DEN: Final[int] = 1_000


def _revert(tag: bytes) -> None:
    abi.revert(tag)


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def require_int(*xs: int) -> None:
    """Revert unless every value is a plain int (bools rejected)."""
    for n in xs:
        if not isinstance(n, int) or isinstance(n, bool):
            _revert(b"MATH:NOT_INT")


def require_nonneg(*xs: int) -> None:
    """Revert if any provided integer is negative."""
    require_int(*xs)
    for n in xs:
        if n < 0:
            _revert(b"MATH:NEGATIVE")


def require_u256(*xs: int) -> None:
    """Revert if any value is outside [0, U256_MAX]."""
    require_int(*xs)
    for n in xs:
        if n < 0 or n > U256_MAX:
            _revert(b"MATH:U256_OOB")


def require_divisor(d: int) -> None:
    if d == 0:
        _revert(b"MATH:DIV_BY_ZERO")


# ---------------------------------------------------------------------------
# Products, ratios, percentages
# ---------------------------------------------------------------------------


def mul_div_down(a: int, b: int, d: int) -> int:
    """floor((a * b) / d) with div-by-zero check."""
    require_divisor(d)
    return (a * b) // d


def check_bps(bps: int) -> None:
    if bps < 0 or bps > BPS_DEN:
        _revert(b"MATH:BPS_OOB")


def apply_bps(amount: int, bps: int) -> int:
    """Return floor(amount * bps / 10_000)."""
    require_u256(amount)
    check_bps(bps)
    return mul_div_down(amount, bps, BPS_DEN)


def ratio_permille(numer: int, denom: int) -> int:
    """Return floor(numer * 1_000 / denom); `denom` must be positive."""
    if denom <= 0:
        _revert(b"MATH:BAD_DENOM")
    return mul_div_down(numer, PERMILLE_DEN, denom)


__all__ = [
    "U256_MAX",
    "BPS_DEN",
    "PERMILLE_DEN",
    "require_int",
    "require_nonneg",
    "require_u256",
    "require_divisor",
    "mul_div_down",
    "check_bps",
    "apply_bps",
    "ratio_permille",
]
