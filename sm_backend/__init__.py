# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Secret backends and value codecs for the secrets manager controller.

Example:
    >>> from sm_backend import create_backend_client, default_registry
    >>> backend = create_backend_client("local", base_path="/run/secrets")
    >>> value = backend.read_secret("payments/db", "password")
    >>> default_registry.decode("base64", value)
"""

__version__ = "0.1.0"

from .azurekeyvault_backend import AzureKeyVaultBackend
from .client import BackendClient
from .codecs import CodecRegistry, default_registry, register_codec
from .exceptions import (
    BackendError,
    BackendNotFoundError,
    BackendProviderError,
    DecodeError,
    EncodingNotImplementedError,
)
from .factory import create_backend_client
from .local_backend import LocalFileBackend
from .vault_backend import VaultBackend

__all__ = [
    "__version__",
    "BackendClient",
    "LocalFileBackend",
    "AzureKeyVaultBackend",
    "VaultBackend",
    "create_backend_client",
    "CodecRegistry",
    "default_registry",
    "register_codec",
    "BackendError",
    "BackendNotFoundError",
    "BackendProviderError",
    "DecodeError",
    "EncodingNotImplementedError",
]
