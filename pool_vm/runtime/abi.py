from __future__ import annotations

from typing import Any, NoReturn, Optional, Type, Union

from pool_vm.config import load_config

from . import context as _ctx
from .error import Revert, VmError

ErrorSpec = Union[bytes, str, Type[VmError], VmError]


def _to_message(msg: Any) -> str:
    if isinstance(msg, (bytes, bytearray)):
        return msg.decode("utf-8", errors="replace")
    return str(msg)


def revert(error: ErrorSpec = b"revert", message: Optional[str] = None, **context: Any) -> NoReturn:
    """
    Abort the current call.

    `error` is either a short tag (``b"escrow: not funded"``), an exception
    class (``CooldownActive``) or an exception instance. Keyword arguments end
    up in the error's ``context``.
    """
    if isinstance(error, VmError):
        raise error
    if isinstance(error, type) and issubclass(error, VmError):
        if message is None:
            raise error(context=context)
        raise error(message, context=context)
    tag = _to_message(error)
    raise Revert(message or tag, code=tag, context=context)


def require(condition: bool, error: ErrorSpec = b"abi.require failed", message: Optional[str] = None, **context: Any) -> None:
    """
    Assertion helper for contracts.

        abi.require(amount > 0, AmountTooSmall, balance=bal)
        abi.require(isinstance(n, int), b"counter: bad type")
    """
    if condition:
        return
    revert(error, message, **context)


def caller() -> bytes:
    """Authenticated sender of the current call."""
    return _ctx.current_tx().sender


def timestamp() -> int:
    """Block timestamp (seconds) of the current call."""
    return _ctx.current_block().timestamp


def self_address() -> bytes:
    """Address of the contract currently executing."""
    return _ctx.current_contract_address()


def address_len() -> int:
    return load_config().address_len


def zero_address() -> bytes:
    return load_config().zero_address


def is_address(value: Any) -> bool:
    """True for bytes of the configured address length that are not all zero."""
    if not isinstance(value, (bytes, bytearray)):
        return False
    return len(value) == address_len() and any(value)


__all__ = [
    "require",
    "revert",
    "caller",
    "timestamp",
    "self_address",
    "address_len",
    "zero_address",
    "is_address",
]
