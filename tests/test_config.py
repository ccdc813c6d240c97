# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Tests for configuration providers, schema loading and TypedConfig."""

import json

import pytest

from secrets_manager.config import load_service_config
from sm_config import (
    ConfigSchema,
    ConfigSchemaError,
    ConfigValidationError,
    EnvConfigProvider,
    FieldSpec,
    SchemaConfigLoader,
    TypedConfig,
    load_typed_config,
)


class TestEnvConfigProvider:
    def test_get(self):
        provider = EnvConfigProvider({"NAME": "value"})

        assert provider.get("NAME") == "value"
        assert provider.get("MISSING") is None

    def test_empty_value_is_unset(self):
        assert EnvConfigProvider({"NAME": ""}).get("NAME") is None

    def test_prefixed_variable_wins(self):
        provider = EnvConfigProvider(
            {"SECRETS_MANAGER_VAULT_ADDR": "https://override:8200", "VAULT_ADDR": "https://pod:8200"},
            prefix="SECRETS_MANAGER_",
        )

        assert provider.get("VAULT_ADDR") == "https://override:8200"

    def test_falls_back_to_bare_name(self):
        provider = EnvConfigProvider({"VAULT_ADDR": "https://pod:8200"}, prefix="SECRETS_MANAGER_")

        assert provider.get("VAULT_ADDR") == "https://pod:8200"

    def test_describe(self):
        provider = EnvConfigProvider({}, prefix="SECRETS_MANAGER_")

        assert provider.describe("WORKER_COUNT") == "SECRETS_MANAGER_WORKER_COUNT or WORKER_COUNT"
        assert EnvConfigProvider({}).describe("WORKER_COUNT") == "WORKER_COUNT"

    def test_reads_process_environment_by_default(self, monkeypatch):
        monkeypatch.setenv("SM_TEST_SETTING", "on")

        assert EnvConfigProvider().get("SM_TEST_SETTING") == "on"


def schema(*fields):
    return ConfigSchema.from_fields("test-service", list(fields))


class TestSchemaConfigLoader:
    def test_defaults(self):
        config = SchemaConfigLoader(
            schema(FieldSpec("worker_count", field_type="int", default=2)),
            provider=EnvConfigProvider({}),
        ).load()

        assert config == {"worker_count": 2}

    def test_env_var_coercion(self):
        loader = SchemaConfigLoader(
            schema(
                FieldSpec("worker_count", field_type="int", env_var="WORKERS"),
                FieldSpec("in_cluster", field_type="bool"),
                FieldSpec("resync", field_type="float", env_var="RESYNC"),
            ),
            provider=EnvConfigProvider({"WORKERS": "4", "IN_CLUSTER": "false", "RESYNC": "1.5"}),
        )

        assert loader.load() == {"worker_count": 4, "in_cluster": False, "resync": 1.5}

    def test_required_field_missing(self):
        loader = SchemaConfigLoader(
            schema(FieldSpec("backend_type", required=True)),
            provider=EnvConfigProvider({}),
        )

        with pytest.raises(ConfigValidationError, match=r"backend_type: required but not set \(looked up BACKEND_TYPE\)"):
            loader.load()

    def test_invalid_values_are_collected(self):
        loader = SchemaConfigLoader(
            schema(
                FieldSpec("worker_count", field_type="int"),
                FieldSpec("in_cluster", field_type="bool"),
            ),
            provider=EnvConfigProvider({"WORKER_COUNT": "two", "IN_CLUSTER": "maybe"}),
        )

        with pytest.raises(ConfigValidationError) as exc_info:
            loader.load()

        message = str(exc_info.value)
        assert "worker_count" in message
        assert "in_cluster" in message

    def test_choices_and_minimum(self):
        loader = SchemaConfigLoader(
            schema(
                FieldSpec("backend_type", choices=("local", "azure")),
                FieldSpec("worker_count", field_type="int", minimum=1),
            ),
            provider=EnvConfigProvider({"BACKEND_TYPE": "consul", "WORKER_COUNT": "0"}),
        )

        with pytest.raises(ConfigValidationError) as exc_info:
            loader.load()

        assert "not one of" in str(exc_info.value)
        assert "must be >= 1" in str(exc_info.value)

    def test_secret_values_are_not_echoed(self):
        loader = SchemaConfigLoader(
            schema(FieldSpec("vault_token", field_type="int", secret=True)),
            provider=EnvConfigProvider({"VAULT_TOKEN": "s.super-secret"}),
        )

        with pytest.raises(ConfigValidationError) as exc_info:
            loader.load()

        assert "s.super-secret" not in str(exc_info.value)
        assert "<redacted>" in str(exc_info.value)

    def test_prefixed_provider_is_named_in_missing_field_error(self):
        loader = SchemaConfigLoader(
            schema(FieldSpec("vault_token", required=True, env_var="VAULT_TOKEN")),
            provider=EnvConfigProvider({}, prefix="SECRETS_MANAGER_"),
        )

        with pytest.raises(ConfigValidationError, match="SECRETS_MANAGER_VAULT_TOKEN or VAULT_TOKEN"):
            loader.load()


class TestConfigSchema:
    def test_from_json_file(self, tmp_path):
        path = tmp_path / "schema.json"
        path.write_text(json.dumps({
            "service_name": "svc",
            "fields": {"port": {"type": "int", "default": 80, "choices": None}},
        }))

        loaded = ConfigSchema.from_json_file(str(path))

        assert loaded.service_name == "svc"
        assert loaded.fields["port"].field_type == "int"
        assert loaded.fields["port"].default == 80

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigSchemaError, match="not found"):
            ConfigSchema.from_json_file(str(tmp_path / "missing.json"))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "schema.json"
        path.write_text("{")

        with pytest.raises(ConfigSchemaError, match="Invalid JSON"):
            ConfigSchema.from_json_file(str(path))


class TestTypedConfig:
    def test_attribute_access(self):
        config = TypedConfig({"worker_count": 2})

        assert config.worker_count == 2

    def test_missing_attribute(self):
        with pytest.raises(AttributeError, match="not found"):
            TypedConfig({}).worker_count

    def test_immutable(self):
        config = TypedConfig({"worker_count": 2})

        with pytest.raises(AttributeError, match="read-only"):
            config.worker_count = 3

    def test_no_dict_access(self):
        with pytest.raises(TypeError):
            TypedConfig({"worker_count": 2})["worker_count"]

    def test_repr_masks_secret_keys(self):
        config = TypedConfig({"vault_token": "s.token", "vault_url": "https://vault:8200"}, secret_keys=["vault_token"])

        assert "s.token" not in repr(config)
        assert "https://vault:8200" in repr(config)
        assert config.vault_token == "s.token"

    def test_load_typed_config(self):
        config = load_typed_config(
            schema(FieldSpec("worker_count", field_type="int", default=2)),
            provider=EnvConfigProvider({"WORKER_COUNT": "8"}),
        )

        assert config.worker_count == 8


class TestServiceConfig:
    def test_defaults(self):
        config = load_service_config(EnvConfigProvider({}))

        assert config.backend_type == "vault"
        assert config.vault_url == "https://127.0.0.1:8200"
        assert config.vault_token is None
        assert config.vault_engine == "kv2"
        assert config.vault_max_token_ttl == 300
        assert config.vault_token_polling_period == 15.0
        assert config.vault_renew_ttl_increment == 600
        assert config.backend_timeout_seconds == 5.0
        assert config.worker_count == 2
        assert config.max_retries == 15
        assert config.resync_period_seconds == 30.0
        assert config.crd_group == "secretsmanager.tuenti.io"
        assert config.in_cluster is True
        assert config.create_crd is True
        assert config.watch_namespace == ""
        assert config.retry_base_delay_ms == 5
        assert config.retry_max_delay_ms == 1_000_000
        assert config.metrics_port == 8080

    def test_overrides(self):
        config = load_service_config(EnvConfigProvider({
            "BACKEND_TYPE": "azure",
            "AZURE_KEY_VAULT_NAME": "vault",
            "WORKER_COUNT": "4",
            "IN_CLUSTER": "false",
            "KUBECONFIG": "/tmp/kubeconfig",
        }))

        assert config.backend_type == "azure"
        assert config.azure_key_vault_name == "vault"
        assert config.worker_count == 4
        assert config.in_cluster is False
        assert config.kubeconfig == "/tmp/kubeconfig"

    def test_vault_settings(self):
        config = load_service_config(EnvConfigProvider({
            "VAULT_ADDR": "https://vault:8200",
            "VAULT_TOKEN": "s.token",
            "VAULT_ENGINE": "kv1",
        }))

        assert config.vault_url == "https://vault:8200"
        assert config.vault_token == "s.token"
        assert config.vault_engine == "kv1"
        assert "s.token" not in repr(config)

    def test_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("WORKER_COUNT", "3")
        monkeypatch.setenv("SECRETS_MANAGER_WORKER_COUNT", "6")

        assert load_service_config().worker_count == 6

    def test_invalid_backend(self):
        with pytest.raises(ConfigValidationError, match="backend_type"):
            load_service_config(EnvConfigProvider({"BACKEND_TYPE": "consul"}))

    def test_invalid_vault_engine(self):
        with pytest.raises(ConfigValidationError, match="vault_engine"):
            load_service_config(EnvConfigProvider({"VAULT_ENGINE": "kv3"}))
