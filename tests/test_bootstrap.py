# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Tests for CRD creation, event recording and the service entry point."""

from unittest.mock import MagicMock

import pytest
from kubernetes.client.rest import ApiException

from conftest import make_definition
from secrets_manager import __version__
from secrets_manager.crd import build_crd, create_crd, crd_name
from secrets_manager.errors import SecretsManagerError
from secrets_manager.events import EventRecorder
from secrets_manager.config import load_service_config
from secrets_manager.main import build_backend, main
from sm_backend import LocalFileBackend, VaultBackend
from sm_config import EnvConfigProvider


class TestCrd:
    def test_build_crd(self):
        crd = build_crd()

        assert crd.metadata.name == "secretdefinitions.secretsmanager.tuenti.io"
        assert crd.spec.scope == "Namespaced"
        assert crd.spec.names.kind == "SecretDefinition"
        version = crd.spec.versions[0]
        assert version.name == "v1alpha1"
        assert version.served and version.storage
        assert "spec" in version.schema.open_apiv3_schema.properties

    def test_custom_group(self):
        assert crd_name("example.com") == "secretdefinitions.example.com"
        assert build_crd("example.com").spec.group == "example.com"

    def test_create(self, logger):
        api = MagicMock()

        create_crd(api, logger)

        api.create_custom_resource_definition.assert_called_once()
        assert logger.has_log("CustomResourceDefinition created")

    def test_already_exists_is_success(self, logger):
        api = MagicMock()
        api.create_custom_resource_definition.side_effect = ApiException(status=409, reason="AlreadyExists")

        create_crd(api, logger)

        assert logger.has_log("already exists")

    def test_other_errors_raise(self, logger):
        api = MagicMock()
        api.create_custom_resource_definition.side_effect = ApiException(status=403, reason="Forbidden")

        with pytest.raises(SecretsManagerError, match="Forbidden"):
            create_crd(api, logger)


class TestEventRecorder:
    def test_creates_event(self, logger):
        core_api = MagicMock()
        recorder = EventRecorder(core_api, logger, api_version="secretsmanager.tuenti.io/v1alpha1")
        definition = make_definition()

        recorder.event(definition, "Normal", "Synced", "synced")

        kwargs = core_api.create_namespaced_event.call_args.kwargs
        assert kwargs["namespace"] == "default"
        body = kwargs["body"]
        assert body.involved_object.kind == "SecretDefinition"
        assert body.involved_object.name == "test-secret"
        assert body.reason == "Synced"
        assert body.type == "Normal"

    def test_api_errors_are_swallowed(self, logger):
        core_api = MagicMock()
        core_api.create_namespaced_event.side_effect = ApiException(status=403, reason="Forbidden")
        recorder = EventRecorder(core_api, logger, api_version="secretsmanager.tuenti.io/v1alpha1")

        recorder.event(make_definition(), "Normal", "Synced", "synced")

        assert logger.has_log("Unable to record event", level="WARNING")


class TestMain:
    def test_version(self, capsys):
        assert main(["--version"]) == 0

        assert __version__ in capsys.readouterr().out

    def test_invalid_configuration_exits_nonzero(self, monkeypatch):
        monkeypatch.setenv("WORKER_COUNT", "two")

        assert main([]) == 1


class TestBuildBackend:
    def test_vault_is_the_default(self, monkeypatch):
        client_cls = MagicMock(name="Client")
        monkeypatch.setattr("sm_backend.vault_backend.hvac.Client", client_cls)
        config = load_service_config(EnvConfigProvider({
            "VAULT_ADDR": "https://vault:8200",
            "VAULT_TOKEN": "s.token",
            "VAULT_ENGINE": "kv1",
        }))

        backend = build_backend(config)

        assert isinstance(backend, VaultBackend)
        assert backend.engine == "kv1"
        client_cls.assert_called_once_with(url="https://vault:8200", token="s.token", timeout=5.0)

    def test_local_backend(self, tmp_path):
        config = load_service_config(EnvConfigProvider({
            "BACKEND_TYPE": "local",
            "BACKEND_BASE_PATH": str(tmp_path),
        }))

        assert isinstance(build_backend(config), LocalFileBackend)
