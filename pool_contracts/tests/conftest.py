# -*- coding: utf-8 -*-
"""
pool_contracts.tests.conftest
=============================

Fixtures for the pool contracts.

- ``engine``  a fresh `Engine` at a realistic block timestamp
- ``pool``    the fund pool deployed at ``POOL`` and initialized by ``OWNER``
- ``wl``      the stand-alone whitelist deployed at ``WHITELIST``

Usage (inside a test file):
    def test_flow(pool):
        pool.call("add", ALICE, sender=OWNER)
        pool.fund(1_000)
        assert pool.call("withdraw", sender=ALICE) == 100
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

import pytest

from pool_contracts.fund_pool import contract as fund_pool
from pool_contracts.whitelist import contract as whitelist
from pool_vm.runtime import Engine, events, treasury

from ._helpers import OWNER, POOL, SERVICE, START_TIME, WHITELIST


@dataclass
class ContractClient:
    engine: Engine
    address: bytes

    def call(self, fn: str, *args: Any, sender: bytes, **kwargs: Any) -> Any:
        return self.engine.call(self.address, fn, *args, sender=sender, **kwargs)

    def fund(self, amount: int) -> None:
        """Host-side credit straight to the contract balance."""
        treasury.credit(self.address, amount)

    @property
    def balance(self) -> int:
        return treasury.balance_of(self.address)

    def events(self, name: bytes) -> List[events.Event]:
        return [e for e in events.get_events(name) if e.address == self.address]


@pytest.fixture
def engine() -> Engine:
    return Engine(timestamp=START_TIME)


@pytest.fixture
def pool(engine: Engine) -> ContractClient:
    engine.deploy(POOL, fund_pool)
    client = ContractClient(engine, POOL)
    client.call("init", OWNER, SERVICE, sender=OWNER)
    return client


@pytest.fixture
def wl(engine: Engine) -> ContractClient:
    engine.deploy(WHITELIST, whitelist)
    client = ContractClient(engine, WHITELIST)
    client.call("init", OWNER, sender=OWNER)
    return client
