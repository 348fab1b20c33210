from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pool_vm.config import load_config

from . import context as _ctx
from .error import VmError

# Basic bounds for names, keys and byte args.
MAX_EVENT_NAME_BYTES = 64
MAX_KEY_LEN = 64
MAX_BYTES_LEN = 4096
MAX_INT_BITS = 256

# Keys must be identifier-like: letters/underscore, then letters/digits/underscore.
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

ArgValue = Any  # constrained at runtime


@dataclass
class Event:
    """In-VM representation of an emitted event."""

    address: bytes
    name: bytes
    args: Dict[str, ArgValue]


@dataclass
class CanonicalEvent:
    """
    Canonical event representation for receipts and tooling:

        address: "0x" + hex of the emitting contract
        name:    event name decoded as ascii
        args:    sequence of {"k", "t", "v"} dicts
                 t="b" => bytes encoded as 0x-prefixed hex
                 t="i" => integer
                 t="z" => boolean
    """

    address: str
    name: str
    args: Sequence[Mapping[str, Any]]


class _EventSink:
    def __init__(self) -> None:
        self._events: List[Event] = []
        self._per_call: Dict[int, int] = {}

    # --- Validation helpers -------------------------------------------------

    def _check_name(self, name: Any) -> bytes:
        if not isinstance(name, (bytes, bytearray)):
            raise VmError("event name must be bytes", code="event_invalid", context={"where": "name_type"})
        b = bytes(name)
        if len(b) == 0:
            raise VmError("event name must be non-empty", code="event_invalid", context={"where": "name_empty"})
        if len(b) > MAX_EVENT_NAME_BYTES:
            raise VmError(
                "event name too long",
                code="event_invalid",
                context={"where": "name_length", "len": len(b)},
            )
        return b

    def _check_key(self, key: Any) -> str:
        if not isinstance(key, str):
            raise VmError("event key must be str", code="event_invalid", context={"where": "key_type"})
        if len(key) == 0 or len(key) > MAX_KEY_LEN:
            raise VmError(
                "event key length out of range",
                code="event_invalid",
                context={"where": "key_length", "len": len(key)},
            )
        if not _KEY_RE.match(key):
            raise VmError(
                "event key has invalid characters",
                code="event_invalid",
                context={"where": "key_grammar", "key": key},
            )
        return key

    def _check_value(self, value: Any) -> ArgValue:
        if isinstance(value, (bytes, bytearray)):
            b = bytes(value)
            if len(b) > MAX_BYTES_LEN:
                raise VmError(
                    "event bytes arg too long",
                    code="event_invalid",
                    context={"where": "value_bytes_length", "len": len(b)},
                )
            return b

        if isinstance(value, bool):
            # bool is a subclass of int, so check it before int.
            return value

        if isinstance(value, int):
            if value.bit_length() > MAX_INT_BITS:
                raise VmError(
                    "event int arg out of range",
                    code="event_invalid",
                    context={"where": "value_int_bits", "bits": value.bit_length()},
                )
            return int(value)

        raise VmError(
            "unsupported event arg type",
            code="event_invalid",
            context={"where": "value_type", "py_type": type(value).__name__},
        )

    # --- Core sink operations -----------------------------------------------

    def clear(self) -> None:
        self._events.clear()
        self._per_call.clear()

    def emit(self, name: bytes, args: Mapping[Any, Any]) -> None:
        bname = self._check_name(name)
        if not isinstance(args, Mapping):
            raise VmError("event args must be a mapping", code="event_invalid", context={"where": "args_type"})

        checked: Dict[str, ArgValue] = {}
        for raw_k, raw_v in args.items():
            checked[self._check_key(raw_k)] = self._check_value(raw_v)

        frame = _ctx.require_frame()
        cap = load_config().max_logs_per_call
        count = self._per_call.get(frame.depth, 0)
        if count >= cap:
            raise VmError("too many events in one call", code="event_invalid", context={"cap": cap})
        self._per_call[frame.depth] = count + 1

        self._events.append(Event(address=frame.address, name=bname, args=checked))

    def begin_call(self, depth: int) -> None:
        self._per_call[depth] = 0

    def checkpoint(self) -> int:
        return len(self._events)

    def truncate(self, mark: int) -> None:
        del self._events[mark:]

    def events(self) -> List[Event]:
        return list(self._events)


_SINK = _EventSink()


def emit(name: bytes, args: Mapping[Any, Any]) -> None:
    """
    Emit an event from the current contract.

        events.emit(b"Deposit", {"from": sender, "amount": 10})

    Keys must be identifier-like strings; values bytes, int or bool.
    """
    _SINK.emit(name, args)


def get_events(name: Optional[bytes] = None) -> List[Event]:
    """All events recorded so far, optionally filtered by name."""
    evs = _SINK.events()
    if name is None:
        return evs
    return [e for e in evs if e.name == name]


def clear_events() -> None:
    _SINK.clear()


def begin_call(depth: int) -> None:
    _SINK.begin_call(depth)


def checkpoint() -> int:
    return _SINK.checkpoint()


def truncate(mark: int) -> None:
    _SINK.truncate(mark)


def _encode_value(v: ArgValue) -> Dict[str, Any]:
    if isinstance(v, bytes):
        return {"t": "b", "v": "0x" + v.hex()}
    if isinstance(v, bool):
        return {"t": "z", "v": v}
    return {"t": "i", "v": v}


def to_canonical(ev: Event) -> CanonicalEvent:
    args = [dict(k=k, **_encode_value(ev.args[k])) for k in sorted(ev.args)]
    return CanonicalEvent(address="0x" + ev.address.hex(), name=ev.name.decode("ascii", "replace"), args=args)


__all__ = [
    "Event",
    "CanonicalEvent",
    "emit",
    "get_events",
    "clear_events",
    "begin_call",
    "checkpoint",
    "truncate",
    "to_canonical",
]
