from __future__ import annotations

import pytest

from pool_contracts.errors import (
    AlreadyInitialized,
    AttestationFailed,
    InvalidAddress,
    NotWhitelisted,
    SelfRating,
    Unauthorized,
)
from pool_contracts.fund_pool import contract as fund_pool
from pool_vm.errors import Revert
from pool_vm.runtime import codec, syscalls

from ._helpers import ALICE, BOB, CAROL, MALLORY, OWNER, POOL, RATERS, SERVICE, START_TIME, ZERO


@pytest.fixture
def members(pool):
    pool.call("add_batch", [ALICE, BOB, CAROL] + RATERS, sender=OWNER)
    return pool


def test_like_updates_ledger_and_notifies_service(members):
    pool = members
    provider = syscalls.get_provider()

    new_limit = pool.call("submit_attestation", ALICE, True, sender=BOB)

    assert new_limit == 2000
    assert pool.call("get_reputation_stats", ALICE, sender=MALLORY) == (1, 0, 2000)
    assert [e.args for e in pool.events(b"ReputationUpdated")] == [{"identity": ALICE, "is_like": True}]

    (call,) = provider.calls
    assert call.service == SERVICE
    assert call.target == ALICE
    assert codec.decode_attestation(call.payload) == codec.Attestation(target=ALICE, is_like=True, timestamp=START_TIME)


def test_dislike_lowers_limit(members):
    pool = members
    pool.call("submit_attestation", ALICE, False, sender=BOB)
    assert pool.call("get_reputation_stats", ALICE, sender=MALLORY) == (0, 1, 500)


def test_votes_accumulate_from_same_rater(members):
    pool = members
    for is_like in (True, False, True, False, True, False, True, False, True, False):
        pool.call("submit_attestation", ALICE, is_like, sender=BOB)
    assert pool.call("get_reputation_stats", ALICE, sender=MALLORY) == (5, 5, 1250)


def test_self_rating_rejected(members):
    with pytest.raises(SelfRating) as ei:
        members.call("submit_attestation", ALICE, True, sender=ALICE)
    assert ei.value.code == "POOL:SELF_RATING"
    assert syscalls.get_provider().calls == []


def test_rater_must_be_member(members):
    with pytest.raises(NotWhitelisted):
        members.call("submit_attestation", ALICE, True, sender=MALLORY)
    assert syscalls.get_provider().calls == []


def test_target_must_be_member(members):
    with pytest.raises(NotWhitelisted):
        members.call("submit_attestation", MALLORY, True, sender=ALICE)
    assert members.call("get_reputation_stats", MALLORY, sender=ALICE) == (0, 0, 0)
    assert syscalls.get_provider().calls == []


def test_vote_must_be_bool(members):
    with pytest.raises(Revert) as ei:
        members.call("submit_attestation", ALICE, 1, sender=BOB)
    assert ei.value.code == "REP:BAD_VOTE"


def test_refused_attestation_leaves_ledger_untouched(members):
    syscalls.set_provider(syscalls.LocalAttestationProvider(fail=True))
    with pytest.raises(AttestationFailed) as ei:
        members.call("submit_attestation", ALICE, True, sender=BOB)
    assert ei.value.code == "POOL:ATTESTATION_FAILED"
    assert members.call("get_reputation_stats", ALICE, sender=MALLORY) == (0, 0, 1000)
    assert members.events(b"ReputationUpdated") == []


def test_provider_error_maps_to_attestation_failed(members):
    class Down:
        def attest(self, service, target, payload):
            raise TimeoutError("service unreachable")

    syscalls.set_provider(Down())
    with pytest.raises(AttestationFailed) as ei:
        members.call("submit_attestation", ALICE, False, sender=BOB)
    assert ei.value.context["cause"] == "syscall.attest_failed"
    assert members.call("get_reputation_stats", ALICE, sender=MALLORY) == (0, 0, 1000)


@pytest.mark.e2e
def test_eight_likes_two_dislikes_doubles_the_share(members):
    pool = members
    pool.fund(1_000)
    for rater in RATERS[:8]:
        pool.call("submit_attestation", ALICE, True, sender=rater)
    for rater in RATERS[8:]:
        pool.call("submit_attestation", ALICE, False, sender=rater)

    assert pool.call("get_reputation_stats", ALICE, sender=MALLORY) == (8, 2, 2000)
    assert pool.call("preview_withdrawal", ALICE, sender=ALICE) == 200
    assert pool.call("withdraw", sender=ALICE) == 200
    assert pool.balance == 800


# --- configuration & ownership -----------------------------------------------------


def test_set_attestation_service(pool):
    new_service = RATERS[0]
    pool.call("set_attestation_service", new_service, sender=OWNER)
    assert pool.call("attestation_service", sender=MALLORY) == new_service
    assert [e.args for e in pool.events(b"AttestationServiceChanged")] == [{"endpoint": new_service}]

    pool.call("add_batch", [ALICE, BOB], sender=OWNER)
    pool.call("submit_attestation", ALICE, True, sender=BOB)
    assert syscalls.get_provider().calls[-1].service == new_service


def test_set_attestation_service_checks(pool):
    with pytest.raises(Unauthorized):
        pool.call("set_attestation_service", RATERS[0], sender=MALLORY)
    for bad in (ZERO, b"\x01" * 3):
        with pytest.raises(InvalidAddress):
            pool.call("set_attestation_service", bad, sender=OWNER)
    assert pool.call("attestation_service", sender=MALLORY) == SERVICE


def test_init_only_once(pool):
    assert pool.call("owner", sender=MALLORY) == OWNER
    with pytest.raises(AlreadyInitialized):
        pool.call("init", MALLORY, SERVICE, sender=MALLORY)
    assert pool.call("owner", sender=MALLORY) == OWNER
    (ev,) = pool.events(b"OwnershipTransferred")
    assert ev.args == {"previous": ZERO, "new": OWNER}


def test_init_validates_addresses(engine):
    engine.deploy(POOL, fund_pool)
    with pytest.raises(InvalidAddress):
        engine.call(POOL, "init", OWNER, ZERO, sender=OWNER)
    with pytest.raises(InvalidAddress):
        engine.call(POOL, "init", ZERO, SERVICE, sender=OWNER)
    # failed init leaves the contract uninitialized
    engine.call(POOL, "init", OWNER, SERVICE, sender=OWNER)


def test_transfer_ownership(pool):
    pool.call("transfer_ownership", ALICE, sender=OWNER)
    assert pool.call("owner", sender=MALLORY) == ALICE
    with pytest.raises(Unauthorized):
        pool.call("add", BOB, sender=OWNER)
    pool.call("add", BOB, sender=ALICE)
    assert pool.events(b"OwnershipTransferred")[-1].args == {"previous": OWNER, "new": ALICE}

    with pytest.raises(InvalidAddress):
        pool.call("transfer_ownership", ZERO, sender=ALICE)
