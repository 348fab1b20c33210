"""
pool_capabilities — host providers for the pool runtime's syscalls.

Currently: the HTTP attestation provider (``pool_capabilities.host.attest``).
"""
