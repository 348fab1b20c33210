# -*- coding: utf-8 -*-
"""
pool_contracts.stdlib
=====================

Library code shared by the pool contracts:

- ``access``     membership registry (+ ``access.ownable`` for the owner)
- ``control``    reentrancy guard and initialize-once flags
- ``math``       integer-only helpers (bps, ratios, guards)
- ``reputation`` like/dislike ledger and the withdrawal-limit function
"""
