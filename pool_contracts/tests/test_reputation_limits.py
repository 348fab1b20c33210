from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from pool_contracts.errors import NotWhitelisted
from pool_contracts.stdlib.math import BPS_DEN, apply_bps, ratio_permille
from pool_contracts.stdlib.reputation import BASE_LIMIT, MAX_LIMIT, MIN_LIMIT, limit_for_votes, record_vote
from pool_vm.errors import Revert
from pool_vm.runtime import context as ctx


@pytest.mark.parametrize(
    "likes,dislikes,expected",
    [
        (0, 0, 1000),  # no votes: base limit
        (1, 0, 2000),
        (8, 2, 2000),  # ratio 800
        (4, 1, 2000),
        (799, 201, 1997),  # ratio 799 -> 500 + 599*1500//600
        (5, 5, 1250),  # ratio 500
        (201, 799, 502),  # ratio 201 -> 500 + 1*1500//600
        (2, 8, 500),  # ratio 200
        (0, 3, 500),
        (1, 2, 832),  # ratio 333 -> 500 + 133*1500//600
        (2, 1, 1665),  # ratio 666 -> 500 + 466*1500//600
    ],
)
def test_limit_table(likes, dislikes, expected):
    assert limit_for_votes(likes, dislikes) == expected


def test_limit_rejects_negative_and_non_int():
    with pytest.raises(Revert) as ei:
        limit_for_votes(-1, 3)
    assert ei.value.code == "MATH:NEGATIVE"
    with pytest.raises(Revert):
        limit_for_votes(1.0, 1)  # type: ignore[arg-type]


@pytest.mark.property
@settings(max_examples=300, deadline=None)
@given(st.integers(0, 10_000), st.integers(0, 10_000))
def test_limit_always_in_range(likes, dislikes):
    limit = limit_for_votes(likes, dislikes)
    if likes + dislikes == 0:
        assert limit == BASE_LIMIT
    else:
        assert MIN_LIMIT <= limit <= MAX_LIMIT


@pytest.mark.property
@settings(max_examples=300, deadline=None)
@given(st.integers(0, 5_000), st.integers(1, 5_000))
def test_one_more_like_never_lowers_limit(likes, dislikes):
    assert limit_for_votes(likes + 1, dislikes) >= limit_for_votes(likes, dislikes)


@pytest.mark.property
@settings(max_examples=300, deadline=None)
@given(st.integers(1, 5_000), st.integers(0, 5_000))
def test_one_more_dislike_never_raises_limit(likes, dislikes):
    assert limit_for_votes(likes, dislikes + 1) <= limit_for_votes(likes, dislikes)


def test_math_helpers():
    assert BPS_DEN == 10_000
    assert apply_bps(1000, 1000) == 100
    assert apply_bps(1000, 2000) == 200
    assert apply_bps(9, 500) == 0
    assert ratio_permille(8, 10) == 800
    with pytest.raises(Revert):
        apply_bps(1000, 10_001)
    with pytest.raises(Revert):
        ratio_permille(1, 0)


def test_record_vote_rejects_malformed_target():
    rater = b"\x11" * 20
    frame = ctx.CallFrame(
        address=b"\x22" * 20,
        block=ctx.BlockEnv(height=1, timestamp=1),
        tx=ctx.TxEnv(sender=rater, to=b"\x22" * 20),
        depth=0,
    )
    ctx.push_frame(frame)
    try:
        with pytest.raises(NotWhitelisted):
            record_vote(rater, "0x" + "33" * 20, True)  # type: ignore[arg-type]
        with pytest.raises(NotWhitelisted):
            record_vote(rater, b"\x33" * 20, False)
    finally:
        ctx.pop_frame()
