"""
pool_vm.runtime.codec
=====================

Canonical CBOR helpers for payloads that leave the runtime (attestations).

- Deterministic map ordering (RFC 8949 "core deterministic encoding")
- Shortest integer encodings; bytes stay bytes

Public API
----------
dumps(obj) -> bytes
loads(data) -> Any
encode_attestation(target, is_like, timestamp) -> bytes
decode_attestation(data) -> Attestation

Notes
-----
* Keys in mappings MUST be of type (str | int | bytes). Floats or other
  non-canonical keys are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union

import cbor2

from .error import VmError

BytesLike = Union[bytes, bytearray, memoryview]


class CBORError(VmError):
    """Canonical CBOR violation or encode/decode failure."""

    code = "codec.cbor"


def _validate_mapping_keys(obj: Any) -> None:
    """Walk the structure and ensure all mapping keys are canonical types."""
    stack: list[Any] = [obj]
    while stack:
        cur = stack.pop()
        if isinstance(cur, Mapping):
            for k, v in cur.items():
                if not isinstance(k, (str, int, bytes)):
                    raise CBORError(
                        f"Non-canonical mapping key type {type(k).__name__}; only str|int|bytes are allowed"
                    )
                stack.append(v)
        elif isinstance(cur, (list, tuple)):
            stack.extend(cur)


def dumps(obj: Any) -> bytes:
    """Encode `obj` to canonical CBOR bytes."""
    _validate_mapping_keys(obj)
    try:
        return cbor2.dumps(obj, canonical=True)
    except (cbor2.CBOREncodeError, TypeError, ValueError) as e:
        raise CBORError(f"CBOR encode failed: {e}") from e


def loads(data: BytesLike) -> Any:
    """Decode CBOR bytes into Python objects."""
    try:
        return cbor2.loads(bytes(data))
    except (cbor2.CBORDecodeError, TypeError, ValueError) as e:
        raise CBORError(f"CBOR decode failed: {e}") from e


# ------------------------------ Attestations ------------------------------ #


@dataclass(frozen=True)
class Attestation:
    target: bytes
    is_like: bool
    timestamp: int


def encode_attestation(target: bytes, is_like: bool, timestamp: int) -> bytes:
    """Payload sent to the attestation service for one vote."""
    return dumps({"target": bytes(target), "is_like": bool(is_like), "timestamp": int(timestamp)})


def decode_attestation(data: BytesLike) -> Attestation:
    obj = loads(data)
    if not isinstance(obj, dict) or set(obj) != {"target", "is_like", "timestamp"}:
        raise CBORError("attestation payload must be a map with target/is_like/timestamp")
    target, is_like, ts = obj["target"], obj["is_like"], obj["timestamp"]
    if not isinstance(target, bytes) or not isinstance(is_like, bool) or not isinstance(ts, int):
        raise CBORError("attestation payload has wrong field types")
    return Attestation(target=target, is_like=is_like, timestamp=ts)


__all__ = [
    "CBORError",
    "Attestation",
    "dumps",
    "loads",
    "encode_attestation",
    "decode_attestation",
]
