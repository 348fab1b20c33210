# -*- coding: utf-8 -*-
"""
pool_contracts.stdlib.access
============================

Deterministic membership registry for pool contracts.

Membership is kept as an **index-assigning arena**: every member owns a
1-based slot, the slot maps back to the identity, and a counter tracks the
number of live slots. That single structure answers both "is X a member?"
(one lookup) and "who are the members, in order?" (walk the slots), so
contracts never keep a second membership list that could drift.

Removal is swap-and-truncate: the last slot moves into the hole, so
enumeration order is insertion order until the first removal.

Only the sanctioned stdlib modules (`storage`, `events`, `abi`) are used.

Storage layout
--------------
- Owner:          key ``b"access:owner"``                  -> address bytes
- Member count:   key ``b"access:count"``                  -> uint
- Slot of member: key ``b"access:idx:" + identity``        -> uint (1-based)
- Member at slot: key ``b"access:slot:" + u64be(slot)``    -> identity bytes

Events
------
- "MembershipAdded"   args: {"identity": bytes}
- "MembershipRemoved" args: {"identity": bytes}
- "BatchAdded"        args: {"count": int}

Quick usage (inside a contract)
-------------------------------
    from pool_contracts.stdlib import access

    def add(identity: bytes) -> None:
        access.add(abi.caller(), identity)
"""
from __future__ import annotations

from typing import Iterable, List

from pool_vm.stdlib import abi, events, storage

from pool_contracts.errors import AlreadyMember, InvalidIdentity, NotWhitelisted

# Shared with .ownable; must be defined before that import below.
OWNER_KEY: bytes = b"access:owner"

_COUNT_KEY: bytes = b"access:count"
_IDX_PREFIX: bytes = b"access:idx:"
_SLOT_PREFIX: bytes = b"access:slot:"

from .ownable import require_owner  # noqa: E402

__all__ = [
    "OWNER_KEY",
    "is_valid_identity",
    "is_member",
    "member_count",
    "members",
    "member_at",
    "add",
    "add_batch",
    "remove",
]


# --- Keys ---------------------------------------------------------------------


def _idx_key(identity: bytes) -> bytes:
    return _IDX_PREFIX + bytes(identity)


def _slot_key(slot: int) -> bytes:
    return _SLOT_PREFIX + slot.to_bytes(8, "big")


# --- Reads --------------------------------------------------------------------


def is_valid_identity(identity: object) -> bool:
    """Bytes of the configured address length and not the zero identity."""
    return abi.is_address(identity)


def is_member(identity: object) -> bool:
    """Pure lookup; malformed identities are never members."""
    if not is_valid_identity(identity):
        return False
    return storage.get_int(_idx_key(identity)) != 0  # type: ignore[arg-type]


def member_count() -> int:
    return storage.get_int(_COUNT_KEY)


def member_at(slot: int) -> bytes:
    """Identity stored at the 1-based `slot`."""
    abi.require(isinstance(slot, int) and 1 <= slot <= member_count(), b"ACCESS:BAD_SLOT", slot=slot)
    v = storage.get(_slot_key(slot))
    return v or b""


def members() -> List[bytes]:
    """All members in slot order."""
    return [storage.get(_slot_key(i)) or b"" for i in range(1, member_count() + 1)]


# --- Mutations ----------------------------------------------------------------


def _insert(identity: bytes) -> None:
    slot = member_count() + 1
    storage.set(_slot_key(slot), identity)
    storage.set_int(_idx_key(identity), slot)
    storage.set_int(_COUNT_KEY, slot)
    events.emit(b"MembershipAdded", {"identity": identity})


def add(caller: bytes, identity: bytes) -> None:
    """
    Owner-only: whitelist `identity`.

    Reverts with InvalidIdentity for the zero or a malformed identity and with
    AlreadyMember if it is present.
    """
    require_owner(caller)
    abi.require(is_valid_identity(identity), InvalidIdentity)
    identity = bytes(identity)
    abi.require(not is_member(identity), AlreadyMember, identity=identity.hex())
    _insert(identity)


def add_batch(caller: bytes, identities: Iterable[bytes]) -> List[bytes]:
    """
    Owner-only: whitelist every valid, new identity in `identities`.

    Zero/malformed identities and duplicates (already members, or repeated
    within the batch) are skipped. Returns the identities actually added, in
    order, and emits one "BatchAdded" with their count.
    """
    require_owner(caller)
    abi.require(isinstance(identities, (list, tuple)), InvalidIdentity, "batch must be a list of identities")

    added: List[bytes] = []
    for identity in identities:
        if not is_valid_identity(identity):
            continue
        identity = bytes(identity)
        if is_member(identity):
            continue
        _insert(identity)
        added.append(identity)

    events.emit(b"BatchAdded", {"count": len(added)})
    return added


def remove(caller: bytes, identity: bytes) -> None:
    """
    Owner-only: drop `identity` from the registry (swap-and-truncate).

    Reverts with NotWhitelisted if it is not a member.
    """
    require_owner(caller)
    abi.require(is_member(identity), NotWhitelisted)
    identity = bytes(identity)

    slot = storage.get_int(_idx_key(identity))
    last = member_count()
    if slot != last:
        moved = storage.get(_slot_key(last)) or b""
        storage.set(_slot_key(slot), moved)
        storage.set_int(_idx_key(moved), slot)
    storage.delete(_slot_key(last))
    storage.delete(_idx_key(identity))
    storage.set_int(_COUNT_KEY, last - 1)
    events.emit(b"MembershipRemoved", {"identity": identity})
