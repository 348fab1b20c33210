import os

import pytest

# Prefer UTC everywhere; keep hash iteration stable.
os.environ.setdefault("TZ", "UTC")
os.environ.setdefault("PYTHONHASHSEED", "0")


def pytest_configure(config):
    config.addinivalue_line("markers", "property: hypothesis-driven property tests")
    config.addinivalue_line("markers", "e2e: multi-call end-to-end scenarios")


@pytest.fixture(autouse=True)
def _fresh_runtime():
    """
    Every test starts with empty storage/events/ledger, the local attestation
    provider and a config re-read from the environment.
    """
    from pool_vm.config import load_config
    from pool_vm.runtime import syscalls
    from pool_vm.runtime.engine import reset_state

    load_config.cache_clear()
    reset_state()
    syscalls.reset_provider()
    yield
    reset_state()
    syscalls.reset_provider()
    load_config.cache_clear()
