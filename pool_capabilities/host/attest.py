"""
pool_capabilities.host.attest — HTTP-backed attestation provider.

Delivers attestation payloads produced by the pool contract to an external
attestation service over HTTP.

Endpoint (convention)
---------------------
- POST {base}/attest/0x<target-hex>
    Headers: Content-Type: application/cbor
             X-Attestation-Service: 0x<service-hex>
    Body:    canonical CBOR map {"target": bytes, "is_like": bool, "timestamp": int}
    Any 2xx status acknowledges the attestation.

Every other status, a transport error, or a timeout counts as a refusal.
Nothing is retried: the contract call that triggered the attestation fails
and the caller decides whether to try again.

Usage
-----
    from pool_vm.runtime import syscalls
    from pool_capabilities.host.attest import HttpAttestationProvider

    syscalls.set_provider(HttpAttestationProvider("http://localhost:8090"))

    # or, driven by REPPOOL_ATTEST_URL / REPPOOL_ATTEST_TIMEOUT:
    install_from_config()
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

import httpx

from pool_vm.config import load_config
from pool_vm.runtime import syscalls_api

log = logging.getLogger(__name__)

CONTENT_TYPE = "application/cbor"
SERVICE_HEADER = "X-Attestation-Service"


class HttpAttestationProvider:
    """
    Synchronous attestation provider backed by an `httpx.Client`.

    Safe to use as a context manager; a client passed in by the caller is not
    closed by `close()`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: Optional[float] = None,
        default_headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout if timeout is not None else load_config().attest_timeout_s)

        hdrs = {"Accept": "*/*"}
        if default_headers:
            hdrs.update(default_headers)

        self._own_client = client is None
        self._client = client or httpx.Client(base_url=self.base_url, headers=hdrs, timeout=self.timeout)

    # --- context management

    def close(self) -> None:
        if self._own_client:
            self._client.close()

    def __enter__(self) -> "HttpAttestationProvider":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- provider API

    def attest(self, service: bytes, target: bytes, payload: bytes) -> bool:
        path = f"/attest/0x{bytes(target).hex()}"
        try:
            resp = self._client.post(
                url=path,
                content=bytes(payload),
                headers={"Content-Type": CONTENT_TYPE, SERVICE_HEADER: "0x" + bytes(service).hex()},
            )
        except httpx.TimeoutException as e:
            log.warning("attestation POST %s timed out after %.1fs: %s", path, self.timeout, e)
            return False
        except httpx.HTTPError as e:
            log.warning("attestation POST %s failed: %s", path, e)
            return False

        if resp.is_success:
            log.debug("attestation POST %s acknowledged (%d)", path, resp.status_code)
            return True
        log.warning("attestation POST %s refused: HTTP %d %s", path, resp.status_code, resp.text[:200])
        return False


def install_from_config() -> Optional[HttpAttestationProvider]:
    """
    Install an HttpAttestationProvider when REPPOOL_ATTEST_URL is set.
    Returns the installed provider, or None (local provider stays active).
    """
    cfg = load_config()
    if not cfg.attest_url:
        return None
    provider = HttpAttestationProvider(cfg.attest_url, timeout=cfg.attest_timeout_s)
    syscalls_api.set_provider(provider)
    log.info("attestation provider: %s (timeout %.1fs)", cfg.attest_url, cfg.attest_timeout_s)
    return provider


__all__ = ["HttpAttestationProvider", "install_from_config", "CONTENT_TYPE", "SERVICE_HEADER"]
