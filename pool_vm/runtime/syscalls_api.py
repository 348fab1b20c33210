"""
pool_vm.runtime.syscalls_api — the attestation syscall used by contracts.

Contracts call ``syscalls.attest(service, target, payload)`` to notify the
external attestation service about a vote. The call is bytes-first and
validated here; the actual delivery is done by a pluggable provider.

In **local mode** (the default) the provider is a `LocalAttestationProvider`
that records every call in memory and acknowledges it. A host may install a
network-backed provider (see `pool_capabilities.host.attest`) by calling
`set_provider(...)`.

A provider reports the outcome as a bool. Exceptions raised by the provider
are converted to ``VmError(code="syscall.attest_failed")`` so contract code
only has to deal with one error type.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import List, Protocol, runtime_checkable

from pool_vm import metrics
from pool_vm.config import load_config

from .error import VmError

log = logging.getLogger(__name__)

# ------------------------------ Helpers & Types ------------------------------ #


def _ensure_bytes(x: object, name: str) -> bytes:
    if isinstance(x, (bytes, bytearray, memoryview)):
        return bytes(x)
    raise VmError(f"{name} must be bytes-like, got {type(x).__name__}", code="syscall.bad_input")


def _check_size(buf: bytes, name: str) -> None:
    cap = load_config().max_syscall_payload_bytes
    if len(buf) > cap:
        raise VmError(f"{name} too large ({len(buf)} bytes > {cap})", code="syscall.bad_input")


# ------------------------------ Provider Facade ------------------------------ #


@runtime_checkable
class AttestationProvider(Protocol):
    """Host attestation provider interface."""

    def attest(self, service: bytes, target: bytes, payload: bytes) -> bool: ...


@dataclass(frozen=True)
class AttestationCall:
    service: bytes
    target: bytes
    payload: bytes


class LocalAttestationProvider:
    """
    Deterministic in-memory stand-in. Records each call; acknowledges it unless
    `fail` is set, in which case every call is refused.
    """

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self._calls: List[AttestationCall] = []
        self._lock = threading.Lock()

    def attest(self, service: bytes, target: bytes, payload: bytes) -> bool:
        with self._lock:
            self._calls.append(AttestationCall(service, target, payload))
        return not self.fail

    @property
    def calls(self) -> List[AttestationCall]:
        with self._lock:
            return list(self._calls)


# Active provider (mutable via set_provider). Defaults to local recorder.
_provider: AttestationProvider = LocalAttestationProvider()


def set_provider(provider: AttestationProvider) -> None:
    """
    Install a host-backed provider that satisfies `AttestationProvider`.
    Safe to call multiple times (last-wins).
    """
    global _provider
    if not callable(getattr(provider, "attest", None)):
        raise VmError("provider missing method: attest", code="syscall.bad_provider")
    _provider = provider


def get_provider() -> AttestationProvider:
    return _provider


def reset_provider() -> None:
    set_provider(LocalAttestationProvider())


# ------------------------------- Public API --------------------------------- #


def attest(service: bytes, target: bytes, payload: bytes) -> bool:
    """
    Deliver an attestation `payload` about `target` to `service`.

    Returns the provider's verdict. Raises VmError if inputs are malformed or
    the provider itself blew up.
    """
    svc = _ensure_bytes(service, "service")
    tgt = _ensure_bytes(target, "target")
    body = _ensure_bytes(payload, "payload")
    _check_size(body, "payload")
    try:
        ok = _provider.attest(svc, tgt, body)
    except VmError:
        raise
    except Exception as exc:
        metrics.observe_attestation("error")
        log.warning("attestation provider error for target 0x%s: %s", tgt.hex(), exc)
        raise VmError(
            "attestation provider error",
            code="syscall.attest_failed",
            context={"target": "0x" + tgt.hex(), "cause": repr(exc)},
        ) from exc
    metrics.observe_attestation("ok" if ok else "refused")
    return bool(ok)


__all__ = [
    "AttestationProvider",
    "AttestationCall",
    "LocalAttestationProvider",
    "set_provider",
    "get_provider",
    "reset_provider",
    "attest",
]
