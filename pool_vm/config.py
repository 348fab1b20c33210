"""
pool_vm.config — runtime caps, address format and attestation-provider settings.

This module centralizes configuration for the pool runtime. It is safe to
import very early and reads nothing but the process environment.

Configuration precedence:
  1) Environment variables (REPPOOL_*)
  2) Hardcoded safe defaults below

Key env vars (case-insensitive where boolean):
  - REPPOOL_STRICT                  (bool)   default: true
  - REPPOOL_ADDRESS_LEN             (int)    default: 20
  - REPPOOL_MAX_BALANCE_BITS        (int)    default: 256
  - REPPOOL_MAX_STORAGE_KEY_BYTES   (int)    default: 96
  - REPPOOL_MAX_STORAGE_VAL_BYTES   (int)    default: 4_096
  - REPPOOL_MAX_LOGS_PER_CALL       (int)    default: 1_024
  - REPPOOL_MAX_CALL_DEPTH          (int)    default: 16
  - REPPOOL_MAX_SYSCALL_BYTES       (int)    default: 16_384
  - REPPOOL_ATTEST_URL              (str)    default: unset (local provider)
  - REPPOOL_ATTEST_TIMEOUT          (float)  default: 10.0 seconds

Usage:
    from pool_vm.config import load_config
    CFG = load_config()
    if CFG.strict_mode: ...

Tests that change the environment must call ``load_config.cache_clear()``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Optional

# ----------------------------- helpers ---------------------------------------


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    return val in ("1", "true", "t", "yes", "y", "on")


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_float(name: str, default: float, *, min_v: float, max_v: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = float(raw)
    except ValueError:
        return default
    return min(max(v, min_v), max_v)


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class PoolConfig:
    # Feature flags
    strict_mode: bool

    # Identity / ledger format
    address_len: int
    max_balance_bits: int

    # Numeric caps (enforced by the runtime APIs and the engine)
    max_storage_key_bytes: int
    max_storage_value_bytes: int
    max_logs_per_call: int
    max_call_depth: int
    max_syscall_payload_bytes: int

    # Attestation provider
    attest_url: Optional[str]
    attest_timeout_s: float

    @property
    def zero_address(self) -> bytes:
        return b"\x00" * self.address_len

    def as_dict(self) -> Dict[str, Any]:
        return {
            "strict_mode": self.strict_mode,
            "address_len": self.address_len,
            "max_balance_bits": self.max_balance_bits,
            "max_storage_key_bytes": self.max_storage_key_bytes,
            "max_storage_value_bytes": self.max_storage_value_bytes,
            "max_logs_per_call": self.max_logs_per_call,
            "max_call_depth": self.max_call_depth,
            "max_syscall_payload_bytes": self.max_syscall_payload_bytes,
            "attest_url": self.attest_url,
            "attest_timeout_s": self.attest_timeout_s,
        }


@lru_cache(maxsize=1)
def load_config() -> PoolConfig:
    """
    Build and cache a PoolConfig from environment + safe defaults.
    """
    return PoolConfig(
        strict_mode=_env_bool("REPPOOL_STRICT", True),
        address_len=_env_int("REPPOOL_ADDRESS_LEN", 20, min_v=8, max_v=64),
        max_balance_bits=_env_int("REPPOOL_MAX_BALANCE_BITS", 256, min_v=64, max_v=512),
        max_storage_key_bytes=_env_int("REPPOOL_MAX_STORAGE_KEY_BYTES", 96, min_v=16, max_v=256),
        max_storage_value_bytes=_env_int("REPPOOL_MAX_STORAGE_VAL_BYTES", 4_096, min_v=32, max_v=1_048_576),
        max_logs_per_call=_env_int("REPPOOL_MAX_LOGS_PER_CALL", 1_024, min_v=1, max_v=10_000),
        max_call_depth=_env_int("REPPOOL_MAX_CALL_DEPTH", 16, min_v=2, max_v=1_024),
        max_syscall_payload_bytes=_env_int("REPPOOL_MAX_SYSCALL_BYTES", 16_384, min_v=256, max_v=1_048_576),
        attest_url=_env_str("REPPOOL_ATTEST_URL"),
        attest_timeout_s=_env_float("REPPOOL_ATTEST_TIMEOUT", 10.0, min_v=0.1, max_v=300.0),
    )


__all__ = ["PoolConfig", "load_config"]
