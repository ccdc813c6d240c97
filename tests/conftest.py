# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Shared fixtures and in-memory fakes for the test suite."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from unittest.mock import MagicMock

import pytest

from secrets_manager.errors import SecretNotFoundError
from secrets_manager.kubernetes_client import TargetStoreClient
from secrets_manager.models import DatasourceRef, Secret, SecretDefinition, SecretDefinitionSpec
from sm_backend import BackendClient, BackendNotFoundError
from sm_logging import SilentLogger
from sm_metrics import NoOpMetricsCollector


class FakeBackend(BackendClient):
    """Backend serving values from a ``{(path, key): value}`` dict."""

    def __init__(self, values: dict[tuple[str, str], str] | None = None):
        self.values = dict(values or {})
        self.errors: dict[tuple[str, str], Exception] = {}
        self.reads: list[tuple[str, str]] = []

    def read_secret(self, path: str, key: str) -> str:
        self.reads.append((path, key))
        if (path, key) in self.errors:
            raise self.errors[(path, key)]
        try:
            return self.values[(path, key)]
        except KeyError as e:
            raise BackendNotFoundError(f"{path}/{key} not found") from e


class FakeTargetStore(TargetStoreClient):
    """Target store keeping secrets in memory and recording every call."""

    def __init__(self):
        self.secrets: dict[tuple[str, str], Secret] = {}
        self.read_errors: dict[str, Exception] = {}
        self.write_errors: dict[str, Exception] = {}
        self.reads: list[tuple[str, str]] = []
        self.writes: list[Secret] = []

    def read_secret(self, namespace: str, name: str) -> dict[str, bytes]:
        self.reads.append((namespace, name))
        if namespace in self.read_errors:
            raise self.read_errors[namespace]
        secret = self.secrets.get((namespace, name))
        if secret is None:
            raise SecretNotFoundError(f"{namespace}/{name} not found")
        return dict(secret.data)

    def upsert_secret(self, secret: Secret) -> None:
        if secret.namespace in self.write_errors:
            raise self.write_errors[secret.namespace]
        self.writes.append(secret)
        self.secrets[(secret.namespace, secret.name)] = secret


def make_spec(
    name: str = "test-secret",
    namespaces: list[str] | None = None,
    data: dict[str, DatasourceRef] | None = None,
    secret_type: str = "Opaque",
) -> SecretDefinitionSpec:
    return SecretDefinitionSpec(
        name=name,
        namespaces=["default"] if namespaces is None else namespaces,
        type=secret_type,
        data=data if data is not None else {"data": DatasourceRef(path="secret/test", key="data")},
    )


def make_definition(name: str = "test-secret", namespace: str = "default", **kwargs) -> SecretDefinition:
    return SecretDefinition(name=name, namespace=namespace, spec=make_spec(name=name, **kwargs))


@pytest.fixture
def logger():
    return SilentLogger(level="DEBUG")


@pytest.fixture
def metrics():
    return NoOpMetricsCollector()


@pytest.fixture
def backend():
    return FakeBackend({("secret/test", "data"): "fake-content"})


@pytest.fixture
def target_store():
    return FakeTargetStore()


@dataclass(frozen=True)
class AzureSdkMocks:
    """Per-test Azure SDK mocks.

    ``sys.modules`` is patched so ``AzureKeyVaultBackend`` can import Azure SDK
    symbols without the azure extra installed.
    """

    secret_client_cls: MagicMock
    default_credential_cls: MagicMock
    ResourceNotFoundError: type[Exception]
    ClientAuthenticationError: type[Exception]
    AzureError: type[Exception]


@pytest.fixture
def azure_sdk_mocks(monkeypatch: pytest.MonkeyPatch) -> AzureSdkMocks:
    """Provide per-test Azure SDK module mocks via ``sys.modules``."""
    secret_client_cls = MagicMock(name="SecretClient")
    default_credential_cls = MagicMock(name="DefaultAzureCredential")

    azure_error = type("AzureError", (Exception,), {})
    resource_not_found_error = type("ResourceNotFoundError", (azure_error,), {})
    client_auth_error = type("ClientAuthenticationError", (azure_error,), {})

    monkeypatch.setitem(sys.modules, "azure", MagicMock())
    monkeypatch.setitem(sys.modules, "azure.keyvault", MagicMock())
    monkeypatch.setitem(sys.modules, "azure.core", MagicMock())
    monkeypatch.setitem(
        sys.modules,
        "azure.keyvault.secrets",
        MagicMock(SecretClient=secret_client_cls),
    )
    monkeypatch.setitem(
        sys.modules,
        "azure.identity",
        MagicMock(DefaultAzureCredential=default_credential_cls),
    )
    monkeypatch.setitem(
        sys.modules,
        "azure.core.exceptions",
        MagicMock(
            ResourceNotFoundError=resource_not_found_error,
            ClientAuthenticationError=client_auth_error,
            AzureError=azure_error,
        ),
    )

    return AzureSdkMocks(
        secret_client_cls=secret_client_cls,
        default_credential_cls=default_credential_cls,
        ResourceNotFoundError=resource_not_found_error,
        ClientAuthenticationError=client_auth_error,
        AzureError=azure_error,
    )


class FakeInformer:
    """Informer stand-in with a real DefinitionCache and manual event dispatch."""

    def __init__(self, synced: bool = True):
        from secrets_manager.informer import DefinitionCache

        self.cache = DefinitionCache()
        self.synced = synced
        self.failed = False
        self.handlers = []

    def add_event_handler(self, on_add=None, on_update=None, on_delete=None):
        self.handlers.append((on_add, on_update, on_delete))

    def has_failed(self):
        return self.failed

    def wait_for_cache_sync(self, stop_event, poll_interval=0.01):
        while not stop_event.is_set() and not self.failed:
            if self.synced:
                return True
            stop_event.wait(poll_interval)
        return self.synced

    def add(self, definition):
        self.cache.upsert(definition)
        for on_add, _, _ in self.handlers:
            on_add(definition)

    def update(self, old, new):
        self.cache.upsert(new)
        for _, on_update, _ in self.handlers:
            on_update(old, new)

    def delete(self, definition):
        self.cache.delete(definition.key)
        for _, _, on_delete in self.handlers:
            on_delete(definition)
