# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Environment-backed configuration provider."""

import os
from typing import Mapping

from .base import ConfigProvider


class EnvConfigProvider(ConfigProvider):
    """Reads settings from environment variables.

    With a ``prefix`` (``SECRETS_MANAGER_`` for the service), the prefixed
    variable wins over the bare one, so ``SECRETS_MANAGER_VAULT_ADDR``
    overrides a ``VAULT_ADDR`` inherited from the pod environment. Empty
    values count as unset.

    Example:
        >>> provider = EnvConfigProvider({"SECRETS_MANAGER_WORKER_COUNT": "4"}, prefix="SECRETS_MANAGER_")
        >>> provider.get("WORKER_COUNT")
        '4'
    """

    def __init__(self, environ: Mapping[str, str] | None = None, prefix: str = ""):
        self._environ = environ if environ is not None else os.environ
        self.prefix = prefix

    def get(self, key: str) -> str | None:
        for name in self._candidates(key):
            value = self._environ.get(name)
            if value:
                return value
        return None

    def describe(self, key: str) -> str:
        return " or ".join(self._candidates(key))

    def _candidates(self, key: str) -> list[str]:
        if self.prefix and not key.startswith(self.prefix):
            return [f"{self.prefix}{key}", key]
        return [key]
