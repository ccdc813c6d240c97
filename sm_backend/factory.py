# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Factory for creating backend clients."""

from typing import Any, cast

from .azurekeyvault_backend import AzureKeyVaultBackend
from .client import BackendClient
from .exceptions import BackendProviderError
from .local_backend import LocalFileBackend
from .vault_backend import VaultBackend


def create_backend_client(backend_type: str, **kwargs: Any) -> BackendClient:
    """Factory function to create backend clients.

    Args:
        backend_type: Type of backend to create ("vault", "local", "azure")
        **kwargs: Backend-specific configuration

    Returns:
        BackendClient instance

    Raises:
        BackendProviderError: If backend_type is unknown

    Example:
        >>> backend = create_backend_client("vault", url="https://vault:8200", engine="kv2")
    """
    backends: dict[str, type] = {
        "local": LocalFileBackend,
        "azure": AzureKeyVaultBackend,
        "vault": VaultBackend,
    }

    if backend_type not in backends:
        raise BackendProviderError(
            f"Unknown backend type: {backend_type}. "
            f"Available: {', '.join(backends.keys())}"
        )

    backend_class = backends[backend_type]
    return cast(BackendClient, backend_class(**kwargs))
