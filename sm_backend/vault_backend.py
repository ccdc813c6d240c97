# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""HashiCorp Vault secret backend (KV version 1 and 2 engines)."""

import logging
import os
import threading
import time
from typing import Any

import hvac
import hvac.exceptions
import requests

from .client import BackendClient
from .exceptions import BackendNotFoundError, BackendProviderError

logger = logging.getLogger(__name__)

DEFAULT_VAULT_URL = "https://127.0.0.1:8200"
KV_ENGINES = ("kv1", "kv2")


def split_mount_path(path: str) -> tuple[str, str]:
    """Split ``secret/payments/db`` into the mount ``secret`` and ``payments/db``.

    Raises:
        BackendProviderError: If ``path`` has no secret below the mount
    """
    mount, _, secret_path = path.strip("/").partition("/")
    if not mount or not secret_path:
        raise BackendProviderError(f"Vault path '{path}' must look like <mount>/<secret path>")
    return mount, secret_path


class VaultBackend(BackendClient):
    """Backend reading key/value secrets from HashiCorp Vault.

    The first segment of a datasource path is the engine mount point and
    the rest is the secret path inside it. ``engine`` selects the KV API
    version; with ``kv2`` the latest version of the secret is read.

    Token lifetime: at most once per ``token_polling_period`` seconds the
    token is looked up, and when its TTL has dropped below
    ``max_token_ttl`` it is renewed by ``renew_ttl_increment`` seconds.
    Tokens without a TTL (root tokens) are never renewed.

    ``VAULT_ADDR`` and ``VAULT_TOKEN`` are used when ``url``/``token`` are
    not given.

    Example:
        >>> backend = VaultBackend(url="https://vault:8200", token="s.xxx", engine="kv2")
        >>> backend.read_secret("secret/payments/db", "password")
    """

    def __init__(
        self,
        url: str | None = None,
        token: str | None = None,
        engine: str = "kv2",
        max_token_ttl: int = 300,
        token_polling_period: float = 15.0,
        renew_ttl_increment: int = 600,
        timeout: float = 5.0,
        client: Any = None,
    ):
        """Initialize the Vault backend.

        Raises:
            BackendProviderError: If the engine is unknown or no token is configured
        """
        if engine not in KV_ENGINES:
            raise BackendProviderError(
                f"Unsupported Vault engine: {engine}. Supported: {', '.join(KV_ENGINES)}"
            )

        self.url = url or os.getenv("VAULT_ADDR") or DEFAULT_VAULT_URL
        token = token or os.getenv("VAULT_TOKEN")
        if not token and client is None:
            raise BackendProviderError(
                "Vault token not configured. Provide token or set VAULT_TOKEN environment variable"
            )

        self.engine = engine
        self.max_token_ttl = max_token_ttl
        self.token_polling_period = token_polling_period
        self.renew_ttl_increment = renew_ttl_increment
        self.client = client or hvac.Client(url=self.url, token=token, timeout=timeout)

        self._token_lock = threading.Lock()
        self._next_token_check = 0.0
        logger.info("Initialized Vault backend for %s (engine %s)", self.url, self.engine)

    def read_secret(self, path: str, key: str) -> str:
        """Read ``key`` of the KV secret at ``path``.

        Raises:
            BackendNotFoundError: If the secret, or the key inside it, does not exist
            BackendProviderError: If Vault is unreachable, denies access or returns bad data
        """
        self.renew_token_if_needed()

        mount, secret_path = split_mount_path(path)
        try:
            if self.engine == "kv2":
                response = self.client.secrets.kv.v2.read_secret_version(
                    path=secret_path, mount_point=mount, raise_on_deleted_version=True
                )
                data = (response.get("data") or {}).get("data")
            else:
                response = self.client.secrets.kv.v1.read_secret(path=secret_path, mount_point=mount)
                data = response.get("data")
        except hvac.exceptions.InvalidPath as e:
            raise BackendNotFoundError(f"Secret not found: {path}") from e
        except hvac.exceptions.Forbidden as e:
            raise BackendProviderError(f"Permission denied reading secret '{path}'") from e
        except hvac.exceptions.VaultError as e:
            raise BackendProviderError(f"Failed to retrieve secret '{path}': {e}") from e
        except requests.exceptions.RequestException as e:
            raise BackendProviderError(f"Unable to reach Vault at {self.url}: {e}") from e

        if not data:
            raise BackendNotFoundError(f"Secret '{path}' has no data")
        if key not in data:
            raise BackendNotFoundError(f"Key '{key}' not found in secret {path}")

        value = data[key]
        if not isinstance(value, str):
            raise BackendProviderError(f"Value of key '{key}' in secret {path} is not a string")
        return value

    def renew_token_if_needed(self) -> None:
        """Renew the client token when it is about to expire.

        Raises:
            BackendProviderError: If the token cannot be looked up or renewed
        """
        with self._token_lock:
            now = time.monotonic()
            if now < self._next_token_check:
                return
            self._next_token_check = now + self.token_polling_period

            try:
                token_data = self.client.auth.token.lookup_self().get("data") or {}
                ttl = int(token_data.get("ttl") or 0)
                if ttl == 0 or ttl >= self.max_token_ttl:
                    return
                if not token_data.get("renewable"):
                    logger.warning("Vault token expires in %ss and is not renewable", ttl)
                    return
                self.client.auth.token.renew_self(increment=self.renew_ttl_increment)
                logger.info("Renewed Vault token for %ss", self.renew_ttl_increment)
            except hvac.exceptions.VaultError as e:
                self._next_token_check = 0.0
                raise BackendProviderError(f"Unable to renew Vault token: {e}") from e
            except requests.exceptions.RequestException as e:
                self._next_token_check = 0.0
                raise BackendProviderError(f"Unable to reach Vault at {self.url}: {e}") from e
