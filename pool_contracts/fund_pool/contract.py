"""
Reputation-gated Fund Pool

A shared balance that whitelisted participants may draw from once per
cooldown period. The share each participant may take is set by peer
attestations: members like or dislike each other, and the resulting
like-ratio moves their withdrawal limit between 5% and 20% of the pool.

State:
  - owner: address (emergency drain, configuration, whitelist)
  - attestation service: address handed to the attestation syscall
  - membership: access registry (identity -> slot)
  - per member: last_withdrawal_time, likes, dislikes, withdrawal_limit
  - pool balance: this contract's treasury balance

Methods:
  - init(owner, attestation_service)
  - deposit(amount)
  - add(identity) / add_batch(identities)                    [owner]
  - withdraw() -> amount                                     [member]
  - emergency_withdraw() -> amount                           [owner]
  - submit_attestation(target, is_like) -> new_limit         [member]
  - set_attestation_service(endpoint)                        [owner]
  - transfer_ownership(new_owner)                            [owner]
  - get_reputation_stats(identity) -> (likes, dislikes, limit)
  - is_whitelisted, whitelisted_count, pool_balance, owner, attestation_service,
    next_withdrawal_time, preview_withdrawal

Events:
  - MembershipAdded(identity), BatchAdded(count)
  - Withdrawn(identity, amount), EmergencyWithdrawn(owner, amount)
  - ReputationUpdated(identity, is_like)
  - AttestationServiceChanged(endpoint)
  - Deposited(sender, amount)
  - OwnershipTransferred(previous, new)

Both payout paths share one non-reentrancy scope and move funds as their last
step; a failed transfer reverts the whole call. Every other mutating method
refuses to start while that scope is held.
"""

from typing import List, Tuple

from pool_vm.errors import VmError
from pool_vm.stdlib import abi, codec, events, storage, syscalls, treasury

from pool_contracts.errors import (
    AmountTooSmall,
    AttestationFailed,
    CooldownActive,
    InvalidAddress,
    InvalidAmount,
    NotWhitelisted,
    PoolEmpty,
    SelfRating,
    TransferFailed,
)
from pool_contracts.stdlib import access, control, reputation
from pool_contracts.stdlib.access import ownable
from pool_contracts.stdlib.math import apply_bps

# ============================================================================
# Storage Keys
# ============================================================================

K_SERVICE = b"pool:attest_service"


def _k_last(identity: bytes) -> bytes:
    """Last withdrawal time of a member"""
    return b"pool:last_withdrawal:" + identity


# ============================================================================
# Constants
# ============================================================================

COOLDOWN = 86_400  # seconds between withdrawals of one member
PAYOUT_SCOPE = b"payout"
INIT_FLAG = b"fund_pool"

EVENT_WITHDRAWN = b"Withdrawn"
EVENT_EMERGENCY_WITHDRAWN = b"EmergencyWithdrawn"
EVENT_SERVICE_CHANGED = b"AttestationServiceChanged"
EVENT_DEPOSITED = b"Deposited"


def _pay(to: bytes, amount: int) -> None:
    try:
        treasury.transfer(to, amount)
    except VmError as exc:
        raise TransferFailed(context={"to": to.hex(), "amount": amount, "cause": exc.code}) from exc


def _withdrawal_amount(identity: bytes) -> int:
    return apply_bps(treasury.balance(), reputation.limit_of(identity))


def _require_idle() -> None:
    """No other pool mutation may start while a payout is in flight."""
    control.require_not_entered(PAYOUT_SCOPE)


# ============================================================================
# Setup & configuration
# ============================================================================


def init(owner: bytes, attestation_service: bytes) -> None:
    """One-time initializer: set the owner and the attestation service."""
    control.initialize_once(INIT_FLAG)
    abi.require(abi.is_address(attestation_service), InvalidAddress, "attestation service must be a valid address")
    ownable.init_owner(owner)
    storage.set(K_SERVICE, bytes(attestation_service))


def set_attestation_service(endpoint: bytes) -> None:
    _require_idle()
    ownable.require_owner(abi.caller())
    abi.require(abi.is_address(endpoint), InvalidAddress, "endpoint must be a valid address")
    storage.set(K_SERVICE, bytes(endpoint))
    events.emit(EVENT_SERVICE_CHANGED, {"endpoint": bytes(endpoint)})


def transfer_ownership(new_owner: bytes) -> None:
    _require_idle()
    ownable.transfer_ownership(abi.caller(), new_owner)


def deposit(amount: int) -> None:
    """Pay `amount` from the caller's balance into the pool."""
    _require_idle()
    abi.require(isinstance(amount, int) and not isinstance(amount, bool) and amount > 0, InvalidAmount)
    treasury.collect(amount)
    events.emit(EVENT_DEPOSITED, {"sender": abi.caller(), "amount": amount})


# ============================================================================
# Whitelist
# ============================================================================


def add(identity: bytes) -> None:
    _require_idle()
    access.add(abi.caller(), identity)
    reputation.seed_limit(bytes(identity))


def add_batch(identities: List[bytes]) -> int:
    _require_idle()
    added = access.add_batch(abi.caller(), identities)
    for identity in added:
        reputation.seed_limit(identity)
    return len(added)


def is_whitelisted(identity: bytes) -> bool:
    return access.is_member(identity)


def whitelisted_count() -> int:
    return access.member_count()


# ============================================================================
# Withdrawals
# ============================================================================


def withdraw() -> int:
    """
    Withdraw the caller's share: floor(balance * limit / 10_000).

    Reverts with NotWhitelisted, CooldownActive, PoolEmpty, AmountTooSmall or
    TransferFailed. The withdrawal time is recorded before funds move.
    """
    caller = abi.caller()
    with control.nonreentrant(PAYOUT_SCOPE):
        abi.require(access.is_member(caller), NotWhitelisted)

        now = abi.timestamp()
        next_allowed = storage.get_int(_k_last(caller)) + COOLDOWN
        abi.require(now >= next_allowed, CooldownActive, next_allowed=next_allowed, now=now)

        abi.require(treasury.balance() > 0, PoolEmpty)
        amount = _withdrawal_amount(caller)
        abi.require(amount > 0, AmountTooSmall, balance=treasury.balance())

        storage.set_int(_k_last(caller), now)
        _pay(caller, amount)

    events.emit(EVENT_WITHDRAWN, {"identity": caller, "amount": amount})
    return amount


def emergency_withdraw() -> int:
    """Owner-only: move the whole pool balance to the owner."""
    caller = abi.caller()
    with control.nonreentrant(PAYOUT_SCOPE):
        ownable.require_owner(caller)
        amount = treasury.balance()
        abi.require(amount > 0, PoolEmpty)
        _pay(caller, amount)

    events.emit(EVENT_EMERGENCY_WITHDRAWN, {"owner": caller, "amount": amount})
    return amount


# ============================================================================
# Reputation
# ============================================================================


def submit_attestation(target: bytes, is_like: bool) -> int:
    """
    Like or dislike another member. The attestation service is notified
    before any counter changes; its refusal reverts the call.
    Returns the target's new withdrawal limit.
    """
    _require_idle()
    caller = abi.caller()
    abi.require(access.is_member(caller), NotWhitelisted)
    abi.require(caller != target, SelfRating)
    abi.require(access.is_member(target), NotWhitelisted, "target is not whitelisted")
    abi.require(isinstance(is_like, bool), b"REP:BAD_VOTE", "is_like must be a bool")

    payload = codec.encode_attestation(target, is_like, abi.timestamp())
    try:
        ok = syscalls.attest(attestation_service(), target, payload)
    except VmError as exc:
        raise AttestationFailed(context={"cause": exc.code}) from exc
    abi.require(ok, AttestationFailed)

    return reputation.record_vote(caller, target, is_like)


def get_reputation_stats(identity: bytes) -> Tuple[int, int, int]:
    return reputation.stats(identity)


# ============================================================================
# Views
# ============================================================================


def pool_balance() -> int:
    return treasury.balance()


def owner() -> bytes:
    return ownable.get_owner() or abi.zero_address()


def attestation_service() -> bytes:
    return storage.get(K_SERVICE) or abi.zero_address()


def next_withdrawal_time(identity: bytes) -> int:
    """Earliest timestamp at which `identity` may withdraw; 0 for non-members."""
    if not access.is_member(identity):
        return 0
    return storage.get_int(_k_last(bytes(identity))) + COOLDOWN


def preview_withdrawal(identity: bytes) -> int:
    """Amount `withdraw` would pay `identity` right now (0 if it would revert)."""
    if not access.is_member(identity) or control.is_entered(PAYOUT_SCOPE):
        return 0
    identity = bytes(identity)
    if abi.timestamp() < storage.get_int(_k_last(identity)) + COOLDOWN:
        return 0
    return _withdrawal_amount(identity)


__all__ = [
    "init",
    "set_attestation_service",
    "transfer_ownership",
    "deposit",
    "add",
    "add_batch",
    "is_whitelisted",
    "whitelisted_count",
    "withdraw",
    "emergency_withdraw",
    "submit_attestation",
    "get_reputation_stats",
    "pool_balance",
    "owner",
    "attestation_service",
    "next_withdrawal_time",
    "preview_withdrawal",
]
