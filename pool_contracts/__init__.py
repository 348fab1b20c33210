"""
pool_contracts — contracts and contract-side library for the reputation pool.

- ``pool_contracts.fund_pool.contract``  the reputation-gated fund pool
- ``pool_contracts.whitelist.contract``  stand-alone enumerable whitelist
- ``pool_contracts.stdlib``              access / control / math / reputation helpers
- ``pool_contracts.errors``              revert types with stable codes
"""
