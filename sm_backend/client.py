# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Base backend client interface."""

from abc import ABC, abstractmethod


class BackendClient(ABC):
    """Abstract base class for secret backends.

    A backend is the authoritative source of secret values. Values are
    addressed by a ``path`` (a group of related values, e.g. a vault entry)
    and a ``key`` inside that group.
    """

    @abstractmethod
    def read_secret(self, path: str, key: str) -> str:
        """Read one value from the backend.

        Args:
            path: Backend path of the secret group
            key: Key of the value inside the group

        Returns:
            The stored value, still in its declared encoding

        Raises:
            BackendNotFoundError: If the path or key does not exist
            BackendProviderError: If retrieval fails
        """
        pass
