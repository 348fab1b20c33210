# -*- coding: utf-8 -*-
"""
pool_contracts.errors
=====================

Revert types raised by the pool contracts and their library code.

Each error pins a stable, machine-readable ``code`` (``VmError.code``) so
hosts and tests can match on it without parsing messages:

    try:
        engine.call(POOL, "withdraw", sender=alice)
    except CooldownActive as e:
        e.code     # "POOL:COOLDOWN_ACTIVE"
        e.context  # {"next_allowed": ...}
"""
from __future__ import annotations

from pool_vm.errors import Revert


class InvalidIdentity(Revert):
    """identity is zero or malformed"""

    code = "POOL:INVALID_IDENTITY"


class AlreadyMember(Revert):
    """identity is already whitelisted"""

    code = "POOL:ALREADY_MEMBER"


class NotWhitelisted(Revert):
    """identity is not whitelisted"""

    code = "POOL:NOT_WHITELISTED"


class SelfRating(Revert):
    """participants cannot rate themselves"""

    code = "POOL:SELF_RATING"


class CooldownActive(Revert):
    """withdrawal cooldown has not elapsed"""

    code = "POOL:COOLDOWN_ACTIVE"


class PoolEmpty(Revert):
    """pool balance is zero"""

    code = "POOL:EMPTY"


class AmountTooSmall(Revert):
    """computed withdrawal amount is zero"""

    code = "POOL:AMOUNT_TOO_SMALL"


class TransferFailed(Revert):
    """transfer to recipient failed"""

    code = "POOL:TRANSFER_FAILED"


class AttestationFailed(Revert):
    """attestation service rejected or failed the call"""

    code = "POOL:ATTESTATION_FAILED"


class InvalidAddress(Revert):
    """address is zero or malformed"""

    code = "POOL:INVALID_ADDRESS"


class InvalidAmount(Revert):
    """amount must be a positive integer"""

    code = "POOL:INVALID_AMOUNT"


class Unauthorized(Revert):
    """caller is not the owner"""

    code = "ACCESS:NOT_OWNER"


class ReentrantCall(Revert):
    """reentrant call rejected"""

    code = "CONTROL:REENTRANT"


class AlreadyInitialized(Revert):
    """contract already initialized"""

    code = "CONTROL:ALREADY_INIT"


__all__ = [
    "InvalidIdentity",
    "AlreadyMember",
    "NotWhitelisted",
    "SelfRating",
    "CooldownActive",
    "PoolEmpty",
    "AmountTooSmall",
    "TransferFailed",
    "AttestationFailed",
    "InvalidAddress",
    "InvalidAmount",
    "Unauthorized",
    "ReentrantCall",
    "AlreadyInitialized",
]
