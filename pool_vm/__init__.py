"""
pool_vm — host runtime for the reputation-gated fund pool.

- ``pool_vm.runtime``: call context, storage, events, treasury ledger,
  attestation syscall and the journaled `Engine`.
- ``pool_vm.stdlib``: the namespaces contract code imports.
- ``pool_vm.config``: environment-driven limits (`load_config`).
- ``pool_vm.metrics``: Prometheus counters.
"""

from __future__ import annotations

from .version import __version__


def version() -> str:
    """Return the pool_vm version string."""
    return __version__


__all__ = ["__version__", "version"]
