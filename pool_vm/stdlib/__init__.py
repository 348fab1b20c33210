"""
pool_vm.stdlib
==============

Contract-facing standard library surface.

Contracts do:

    from pool_vm.stdlib import abi, events, storage, treasury, syscalls, codec

Exports
-------
- abi      : require(...), revert(...), caller(), timestamp(), self_address()
- storage  : get/set/delete/exists/get_int/set_int scoped to the running contract
- events   : emit(name: bytes, args: dict) -> None
- treasury : balance(), balance_of(addr), transfer(to, amount)
- syscalls : attest(service, target, payload) -> bool
- codec    : canonical CBOR dumps/loads and encode_attestation(...)
"""

from __future__ import annotations

from pool_vm.runtime import abi as abi
from pool_vm.runtime import codec as codec
from pool_vm.runtime import events_api as events
from pool_vm.runtime import storage_api as storage
from pool_vm.runtime import syscalls_api as syscalls
from pool_vm.runtime import treasury_api as treasury

__all__ = ("abi", "codec", "events", "storage", "syscalls", "treasury")
