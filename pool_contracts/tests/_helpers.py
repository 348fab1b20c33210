from __future__ import annotations

import hashlib


def make_address(tag: str, n: int = 20) -> bytes:
    """Stable test address derived from a label."""
    return hashlib.sha3_256(tag.encode("utf-8")).digest()[:n]


START_TIME = 1_700_000_000
DAY = 86_400

POOL = make_address("fund-pool")
WHITELIST = make_address("whitelist")
OWNER = make_address("owner")
SERVICE = make_address("attestation-service")
ALICE = make_address("alice")
BOB = make_address("bob")
CAROL = make_address("carol")
MALLORY = make_address("mallory")
ZERO = b"\x00" * 20

RATERS = [make_address(f"rater-{i}") for i in range(10)]
