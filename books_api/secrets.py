import logging

import httpx

logger = logging.getLogger(__name__)


def fetch_vault_secret(*, addr: str, token: str, mount: str, path: str, timeout: float = 5.0) -> dict[str, str]:
    """Read the ``data`` of a Vault KV v2 secret.

    Errors from Vault are raised as ``httpx.HTTPStatusError``; a secret without
    data yields an empty dict.
    """
    url = f"{addr.rstrip('/')}/v1/{mount}/data/{path.lstrip('/')}"
    with httpx.Client(timeout=timeout) as client:
        resp = client.get(url, headers={"X-Vault-Token": token})
        resp.raise_for_status()
        payload = resp.json()

    secret = (payload.get("data") or {}).get("data") or {}
    logger.info("vault.secret_loaded", extra={"path": path, "keys": sorted(secret)})
    return secret
