"""Host-side capability providers plugged into the pool runtime."""

from .attest import HttpAttestationProvider, install_from_config

__all__ = ["HttpAttestationProvider", "install_from_config"]
