# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Azure Key Vault secret backend."""

import json
import logging
import os

from .client import BackendClient
from .exceptions import BackendNotFoundError, BackendProviderError

logger = logging.getLogger(__name__)


def to_vault_secret_name(path: str) -> str:
    """Map a backend path onto a Key Vault secret name.

    Key Vault names only allow alphanumerics and dashes, so ``/`` and ``_``
    become ``-`` and surrounding separators are dropped.
    """
    return path.strip("/").replace("/", "-").replace("_", "-")


class AzureKeyVaultBackend(BackendClient):
    """Backend that retrieves secret groups from Azure Key Vault.

    Each backend path maps to one Key Vault secret whose value is a JSON
    object; the datasource key selects a field of that object.

    Authentication goes through DefaultAzureCredential (managed identity,
    environment credentials or the Azure CLI).

    Configuration via environment variables:
    - AZURE_KEY_VAULT_NAME: Name of the Key Vault (e.g., "my-vault")
    - AZURE_KEY_VAULT_URI: Full URI (e.g., "https://my-vault.vault.azure.net/")
      If both are provided, URI takes precedence.

    Example:
        >>> backend = AzureKeyVaultBackend(vault_name="my-vault")
        >>> backend.read_secret("payments/db", "password")
        >>> # Reads field "password" of Key Vault secret "payments-db"
    """

    def __init__(self, vault_url: str | None = None, vault_name: str | None = None):
        """Initialize the Azure Key Vault backend.

        Args:
            vault_url: Full Azure Key Vault URL
            vault_name: Name of the Key Vault, ignored if vault_url is provided

        Raises:
            BackendProviderError: If the SDK is missing, the vault URL cannot be
                determined or the client cannot be created
        """
        try:
            from azure.core.exceptions import AzureError, ClientAuthenticationError
            from azure.identity import DefaultAzureCredential
            from azure.keyvault.secrets import SecretClient
        except ImportError as e:
            raise BackendProviderError(
                "Azure SDK dependencies for Azure Key Vault are not installed. "
                "Install with: pip install secrets-manager[azure]"
            ) from e

        self.vault_url = self._determine_vault_url(vault_url, vault_name)

        try:
            self._credential = DefaultAzureCredential()
            self.client = SecretClient(vault_url=self.vault_url, credential=self._credential)
            logger.info("Initialized Azure Key Vault backend for %s", self.vault_url)
        except ClientAuthenticationError as e:
            raise BackendProviderError(f"Failed to authenticate with Azure Key Vault: {e}") from e
        except ValueError as e:
            raise BackendProviderError(f"Invalid Azure Key Vault URL '{self.vault_url}': {e}") from e
        except AzureError as e:
            raise BackendProviderError(f"Azure Key Vault client error: {e}") from e

    def close(self) -> None:
        """Release the SecretClient and credential."""
        for resource in (getattr(self, "client", None), getattr(self, "_credential", None)):
            close_method = getattr(resource, "close", None)
            if callable(close_method):
                try:
                    close_method()
                except (AttributeError, TypeError, RuntimeError):
                    pass

    @staticmethod
    def _determine_vault_url(vault_url: str | None, vault_name: str | None) -> str:
        if vault_url:
            return vault_url

        env_uri = os.getenv("AZURE_KEY_VAULT_URI")
        if env_uri:
            return env_uri

        if vault_name:
            return f"https://{vault_name}.vault.azure.net/"

        env_name = os.getenv("AZURE_KEY_VAULT_NAME")
        if env_name:
            return f"https://{env_name}.vault.azure.net/"

        raise BackendProviderError(
            "Azure Key Vault URL not configured. Provide vault_url or vault_name, or set "
            "AZURE_KEY_VAULT_URI or AZURE_KEY_VAULT_NAME environment variable"
        )

    def read_secret(self, path: str, key: str) -> str:
        """Read field ``key`` of the Key Vault secret mapped from ``path``.

        Raises:
            BackendNotFoundError: If the secret or the field does not exist
            BackendProviderError: If retrieval fails or the value is not a JSON object
        """
        from azure.core.exceptions import AzureError, ResourceNotFoundError

        secret_name = to_vault_secret_name(path)
        try:
            secret = self.client.get_secret(secret_name)
        except ResourceNotFoundError as e:
            raise BackendNotFoundError(f"Secret not found: {path}") from e
        except AzureError as e:
            raise BackendProviderError(f"Failed to retrieve secret '{path}': {e}") from e

        if secret.value is None:
            raise BackendNotFoundError(f"Secret '{path}' has no value")

        try:
            document = json.loads(secret.value)
        except json.JSONDecodeError as e:
            raise BackendProviderError(f"Secret '{path}' is not valid JSON: {e}") from e

        if not isinstance(document, dict):
            raise BackendProviderError(f"Secret '{path}' must contain a JSON object")

        if key not in document:
            raise BackendNotFoundError(f"Key '{key}' not found in secret {path}")

        value = document[key]
        if not isinstance(value, str):
            raise BackendProviderError(f"Value of key '{key}' in secret {path} is not a string")
        return value
