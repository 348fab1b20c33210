# -*- coding: utf-8 -*-
"""
pool_contracts.stdlib.reputation
================================

Per-participant like/dislike counters and the withdrawal limit derived from
them.

The limit is a percentage scaled by 100 (``1000`` == 10.00% of the pool per
withdrawal). `limit_for_votes` maps votes to a limit:

    total == 0            -> BASE_LIMIT (1000)
    ratio = likes * 1000 // total
    ratio >= 800          -> MAX_LIMIT  (2000)
    ratio <= 200          -> MIN_LIMIT  (500)
    otherwise             -> 500 + (ratio - 200) * 1500 // 600

so the stored limit is always BASE_LIMIT or a value in [500, 2000].

Storage layout
--------------
- likes:    key = b"rep:likes:" + identity     -> uint
- dislikes: key = b"rep:dislikes:" + identity  -> uint
- limit:    key = b"rep:limit:" + identity     -> uint (absent until seeded)

Events
------
- "ReputationUpdated" args: {"identity": bytes, "is_like": bool}
"""
from __future__ import annotations

from typing import Final, Tuple

from pool_vm.stdlib import abi, events, storage

from pool_contracts.errors import NotWhitelisted, SelfRating
from pool_contracts.stdlib import access
from pool_contracts.stdlib.math import mul_div_down, ratio_permille, require_nonneg

BASE_LIMIT: Final[int] = 1_000
MAX_LIMIT: Final[int] = 2_000
MIN_LIMIT: Final[int] = 500

HIGH_RATIO: Final[int] = 800
LOW_RATIO: Final[int] = 200

_LIKES_PREFIX: bytes = b"rep:likes:"
_DISLIKES_PREFIX: bytes = b"rep:dislikes:"
_LIMIT_PREFIX: bytes = b"rep:limit:"

__all__ = [
    "BASE_LIMIT",
    "MAX_LIMIT",
    "MIN_LIMIT",
    "limit_for_votes",
    "seed_limit",
    "limit_of",
    "record_vote",
    "stats",
]


def limit_for_votes(likes: int, dislikes: int) -> int:
    """Withdrawal limit for a vote tally. Pure; reverts on negative input."""
    require_nonneg(likes, dislikes)
    total = likes + dislikes
    if total == 0:
        return BASE_LIMIT
    ratio = ratio_permille(likes, total)
    if ratio >= HIGH_RATIO:
        return MAX_LIMIT
    if ratio <= LOW_RATIO:
        return MIN_LIMIT
    span = MAX_LIMIT - MIN_LIMIT
    return MIN_LIMIT + mul_div_down(ratio - LOW_RATIO, span, HIGH_RATIO - LOW_RATIO)


def seed_limit(identity: bytes) -> None:
    """Store the default limit for a freshly whitelisted identity."""
    storage.set_int(_LIMIT_PREFIX + identity, BASE_LIMIT)


def limit_of(identity: bytes) -> int:
    return storage.get_int(_LIMIT_PREFIX + identity)


def stats(identity: bytes) -> Tuple[int, int, int]:
    """(likes, dislikes, withdrawal_limit); all zero for unknown identities."""
    if not access.is_valid_identity(identity):
        return (0, 0, 0)
    identity = bytes(identity)
    return (
        storage.get_int(_LIKES_PREFIX + identity),
        storage.get_int(_DISLIKES_PREFIX + identity),
        storage.get_int(_LIMIT_PREFIX + identity),
    )


def record_vote(rater: bytes, target: bytes, is_like: bool) -> int:
    """
    Count one like or dislike from `rater` for `target` and store the new
    limit. Returns that limit.

    The rater's own membership is the caller's concern; this checks only
    SelfRating and that `target` is a member.
    """
    abi.require(isinstance(is_like, bool), b"REP:BAD_VOTE", "is_like must be a bool")
    abi.require(rater != target, SelfRating)
    abi.require(access.is_member(target), NotWhitelisted, "target is not whitelisted")
    target = bytes(target)

    likes_key = _LIKES_PREFIX + target
    dislikes_key = _DISLIKES_PREFIX + target
    likes = storage.get_int(likes_key)
    dislikes = storage.get_int(dislikes_key)
    if is_like:
        likes += 1
        storage.set_int(likes_key, likes)
    else:
        dislikes += 1
        storage.set_int(dislikes_key, dislikes)

    limit = limit_for_votes(likes, dislikes)
    storage.set_int(_LIMIT_PREFIX + target, limit)
    events.emit(b"ReputationUpdated", {"identity": target, "is_like": is_like})
    return limit
