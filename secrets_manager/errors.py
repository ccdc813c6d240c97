# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Exceptions raised by the controller core."""


class SecretsManagerError(Exception):
    """Base exception for controller errors."""
    pass


class InvalidKeyError(SecretsManagerError):
    """Raised when a reconciliation key is not ``namespace/name`` or ``name``."""
    pass


class InvalidDefinitionError(SecretsManagerError):
    """Raised when a SecretDefinition object is malformed."""
    pass


class CacheSyncError(SecretsManagerError):
    """Raised when the local cache never completed its initial listing."""
    pass


class TargetStoreError(SecretsManagerError):
    """Base exception for target store (cluster Secret) errors."""
    pass


class SecretNotFoundError(TargetStoreError):
    """Raised when a materialized secret does not exist in a namespace."""
    pass


class TargetReadError(TargetStoreError):
    """Raised when reading a materialized secret fails."""
    pass


class TargetWriteError(TargetStoreError):
    """Raised when creating or updating a materialized secret fails."""
    pass
