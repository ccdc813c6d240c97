# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Local filesystem secret backend."""

import json
import logging
from pathlib import Path

from .client import BackendClient
from .exceptions import BackendNotFoundError, BackendProviderError

logger = logging.getLogger(__name__)


class LocalFileBackend(BackendClient):
    """Backend that reads secret groups from a local directory.

    A path resolves to either a JSON document or a directory:

    - ``<base_path>/<path>.json`` holding an object of ``key -> value``
    - ``<base_path>/<path>/<key>``, one file per key (the layout of
      Kubernetes and Docker mounted secrets)

    The JSON document wins when both exist.

    Example:
        >>> backend = LocalFileBackend(base_path="/run/secrets")
        >>> backend.read_secret("teams/payments/db", "password")
        >>> # Reads "password" from /run/secrets/teams/payments/db.json

    Attributes:
        base_path: Directory containing secret groups
    """

    def __init__(self, base_path: str):
        """Initialize the local file backend.

        Args:
            base_path: Base directory containing secret groups

        Raises:
            BackendProviderError: If base_path does not exist or is not a directory
        """
        self.base_path = Path(base_path)

        if not self.base_path.exists():
            raise BackendProviderError(f"Backend base path does not exist: {base_path}")

        if not self.base_path.is_dir():
            raise BackendProviderError(f"Backend base path is not a directory: {base_path}")

        logger.info("Initialized local backend at %s", self.base_path)

    def _resolve(self, relative: str) -> Path:
        """Resolve a path below base_path, rejecting traversal outside it.

        Raises:
            BackendProviderError: If the resolved path escapes base_path
        """
        if not relative or Path(relative).is_absolute():
            raise BackendProviderError(f"Invalid backend path: {relative!r}")

        potential_path = (self.base_path / relative).resolve()
        base_resolved = self.base_path.resolve()

        try:
            potential_path.relative_to(base_resolved)
        except ValueError as e:
            raise BackendProviderError(
                f"Invalid backend path (path traversal detected): {relative}"
            ) from e

        return potential_path

    def read_secret(self, path: str, key: str) -> str:
        """Read ``key`` from the secret group at ``path``.

        Raises:
            BackendNotFoundError: If neither layout holds the path, or the key is absent
            BackendProviderError: If the path is invalid or the file cannot be read
        """
        json_path = self._resolve(f"{path}.json")
        if json_path.is_file():
            return self._read_from_document(json_path, path, key)

        group_dir = self._resolve(path)
        if group_dir.is_dir():
            return self._read_from_directory(group_dir, path, key)

        raise BackendNotFoundError(f"Secret path not found: {path}")

    def _read_from_document(self, json_path: Path, path: str, key: str) -> str:
        try:
            with open(json_path, encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise BackendProviderError(f"Invalid JSON in secret file for {path}: {e}") from e
        except OSError as e:
            raise BackendProviderError(f"Failed to read secret {path}: {e}") from e

        if not isinstance(document, dict):
            raise BackendProviderError(f"Secret file for {path} must contain a JSON object")

        if key not in document:
            raise BackendNotFoundError(f"Key '{key}' not found in secret {path}")

        value = document[key]
        if not isinstance(value, str):
            raise BackendProviderError(f"Value of key '{key}' in secret {path} is not a string")
        return value

    def _read_from_directory(self, group_dir: Path, path: str, key: str) -> str:
        key_path = self._resolve(f"{path}/{key}")
        if key_path.parent != group_dir:
            raise BackendProviderError(f"Invalid key name: {key}")

        if not key_path.is_file():
            raise BackendNotFoundError(f"Key '{key}' not found in secret {path}")

        try:
            with open(key_path, encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise BackendProviderError(f"Failed to read key '{key}' of secret {path}: {e}") from e
