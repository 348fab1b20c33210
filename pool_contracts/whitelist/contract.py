"""
Whitelist Registry

Stand-alone, enumerable whitelist built on the same access registry the fund
pool uses. It keeps its own storage (its own contract address) and is not
consulted by the pool; tooling uses it to publish an ordered member list.

Methods:
  - init(owner)
  - add(identity) / add_batch(identities) -> count   [owner]
  - remove(identity)                                  [owner]
  - is_whitelisted(identity) -> bool
  - members() -> [identity, ...]
  - count() -> int

Events:
  - MembershipAdded(identity), BatchAdded(count), MembershipRemoved(identity)
  - OwnershipTransferred(previous, new)
"""

from typing import List

from pool_vm.stdlib import abi

from pool_contracts.stdlib import access, control
from pool_contracts.stdlib.access import ownable

INIT_FLAG = b"whitelist"


def init(owner: bytes) -> None:
    control.initialize_once(INIT_FLAG)
    ownable.init_owner(owner)


def add(identity: bytes) -> None:
    access.add(abi.caller(), identity)


def add_batch(identities: List[bytes]) -> int:
    return len(access.add_batch(abi.caller(), identities))


def remove(identity: bytes) -> None:
    access.remove(abi.caller(), identity)


def is_whitelisted(identity: bytes) -> bool:
    return access.is_member(identity)


def members() -> List[bytes]:
    return access.members()


def count() -> int:
    return access.member_count()


__all__ = ["init", "add", "add_batch", "remove", "is_whitelisted", "members", "count"]
