from __future__ import annotations

import types
from typing import Any, Dict, List

import pytest

from pool_vm.config import load_config
from pool_vm.errors import Revert, VmError
from pool_vm.runtime import Engine
from pool_vm.stdlib import abi, events, storage, treasury

from ._helpers import ALICE, BOB, CONTRACT, OTHER_CONTRACT


def _counter_module() -> types.ModuleType:
    """Tiny contract: a counter that can also pay out and fail on demand."""
    mod = types.ModuleType("counter_contract")

    def inc(by: int = 1) -> int:
        n = storage.get_int(b"n") + by
        storage.set_int(b"n", n)
        events.emit(b"Inc", {"n": n, "by_": abi.caller()})
        return n

    def inc_then_fail() -> None:
        inc()
        treasury.transfer(BOB, 1)
        abi.revert(b"COUNTER:NOPE")

    def pay(to: bytes, amount: int) -> None:
        treasury.transfer(to, amount)

    def get() -> int:
        return storage.get_int(b"n")

    def now() -> int:
        return abi.timestamp()

    def _private() -> None:  # pragma: no cover
        raise AssertionError("must not be callable")

    mod.inc = inc
    mod.inc_then_fail = inc_then_fail
    mod.pay = pay
    mod.get = get
    mod.now = now
    mod._private = _private
    mod.helper = lambda: None
    mod.__all__ = ["inc", "inc_then_fail", "pay", "get", "now", "_private"]
    return mod


@pytest.fixture
def engine() -> Engine:
    eng = Engine(timestamp=1_700_000_000)
    eng.deploy(CONTRACT, _counter_module())
    return eng


def test_call_commits(engine):
    assert engine.call(CONTRACT, "inc", sender=ALICE) == 1
    assert engine.call(CONTRACT, "inc", 4, sender=BOB) == 5
    assert engine.call(CONTRACT, "get", sender=ALICE) == 5
    assert [e.args["n"] for e in events.get_events(b"Inc")] == [1, 5]


def test_failed_call_rolls_back_everything(engine):
    treasury.credit(CONTRACT, 10)
    engine.call(CONTRACT, "inc", sender=ALICE)

    with pytest.raises(Revert) as ei:
        engine.call(CONTRACT, "inc_then_fail", sender=ALICE)
    assert ei.value.code == "COUNTER:NOPE"

    assert engine.call(CONTRACT, "get", sender=ALICE) == 1
    assert len(events.get_events(b"Inc")) == 1
    assert treasury.balance_of(CONTRACT) == 10
    assert treasury.balance_of(BOB) == 0


def test_unexpected_exception_also_rolls_back(engine):
    mod = engine.contract_at(CONTRACT)

    def crash() -> None:
        storage.set(b"junk", b"1")
        raise ZeroDivisionError("bug")

    mod.crash = crash
    mod.__all__.append("crash")
    with pytest.raises(ZeroDivisionError):
        engine.call(CONTRACT, "crash", sender=ALICE)
    assert storage.read(CONTRACT, b"junk") is None


def test_timestamp_and_clock(engine):
    assert engine.call(CONTRACT, "now", sender=ALICE) == 1_700_000_000
    engine.advance_time(60)
    assert engine.call(CONTRACT, "now", sender=ALICE) == 1_700_000_060
    assert engine.call(CONTRACT, "now", sender=ALICE, timestamp=5) == 5
    assert engine.timestamp == 1_700_000_060


@pytest.mark.parametrize("fn", ["_private", "helper", "missing"])
def test_only_exported_functions_are_callable(engine, fn):
    with pytest.raises(VmError) as ei:
        engine.call(CONTRACT, fn, sender=ALICE)
    assert ei.value.code == "engine.unknown_function"


def test_address_checks(engine):
    with pytest.raises(VmError) as ei:
        engine.call(OTHER_CONTRACT, "get", sender=ALICE)
    assert ei.value.code == "engine.no_contract"
    with pytest.raises(VmError) as ei:
        engine.call(CONTRACT, "get", sender=b"short")
    assert ei.value.code == "engine.bad_address"
    with pytest.raises(VmError) as ei:
        engine.deploy(CONTRACT, _counter_module())
    assert ei.value.code == "engine.address_taken"


def test_nested_call_from_receive_hook(engine):
    """A hook calling back in runs as a nested frame with the parent's block."""
    seen: List[Dict[str, Any]] = []

    def hook(sender: bytes, amount: int) -> None:
        seen.append({"sender": sender, "now": engine.call(CONTRACT, "now", sender=BOB)})
        engine.call(CONTRACT, "inc", sender=BOB)

    treasury.credit(CONTRACT, 10)
    treasury.set_receive_hook(BOB, hook)
    engine.call(CONTRACT, "pay", BOB, 3, sender=ALICE, timestamp=123)

    assert seen == [{"sender": CONTRACT, "now": 123}]
    assert engine.call(CONTRACT, "get", sender=ALICE) == 1
    assert treasury.balance_of(BOB) == 3


def test_nested_failure_is_contained_when_caught(engine):
    def hook(sender: bytes, amount: int) -> None:
        with pytest.raises(Revert):
            engine.call(CONTRACT, "inc_then_fail", sender=BOB)

    treasury.credit(CONTRACT, 10)
    treasury.set_receive_hook(ALICE, hook)
    engine.call(CONTRACT, "pay", ALICE, 4, sender=ALICE)

    assert engine.call(CONTRACT, "get", sender=ALICE) == 0
    assert treasury.balance_of(ALICE) == 4
    assert treasury.balance_of(CONTRACT) == 6


def test_call_depth_limit(monkeypatch, engine):
    monkeypatch.setenv("REPPOOL_MAX_CALL_DEPTH", "2")
    load_config.cache_clear()

    def hook(sender: bytes, amount: int) -> None:
        engine.call(CONTRACT, "pay", ALICE, 1, sender=BOB)

    treasury.credit(CONTRACT, 10)
    treasury.set_receive_hook(ALICE, hook)
    # depth 0 pays ALICE -> hook -> depth 1 pays ALICE -> hook -> depth 2 refused
    with pytest.raises(VmError) as ei:
        engine.call(CONTRACT, "pay", ALICE, 1, sender=BOB)
    assert ei.value.code == "treasury.transfer_failed"
    assert treasury.balance_of(CONTRACT) == 10
