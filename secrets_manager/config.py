# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Configuration schema of the secrets manager service."""

from sm_config import ConfigProvider, ConfigSchema, EnvConfigProvider, TypedConfig, load_typed_config

from .informer import DEFAULT_GROUP

SERVICE_NAME = "secrets-manager"
ENV_PREFIX = "SECRETS_MANAGER_"

SERVICE_SCHEMA = {
    "service_name": SERVICE_NAME,
    "fields": {
        "log_type": {
            "type": "string",
            "env_var": "LOG_TYPE",
            "default": "stdout",
            "choices": ["stdout", "silent"],
        },
        "log_level": {
            "type": "string",
            "env_var": "LOG_LEVEL",
            "default": "INFO",
        },
        "backend_type": {
            "type": "string",
            "env_var": "BACKEND_TYPE",
            "default": "vault",
            "choices": ["vault", "local", "azure"],
            "description": "Secret backend driver",
        },
        "backend_timeout_seconds": {
            "type": "float",
            "env_var": "BACKEND_TIMEOUT_SECONDS",
            "default": 5.0,
            "minimum": 0,
        },
        "vault_url": {
            "type": "string",
            "env_var": "VAULT_ADDR",
            "default": "https://127.0.0.1:8200",
        },
        "vault_token": {"type": "string", "env_var": "VAULT_TOKEN", "secret": True},
        "vault_engine": {
            "type": "string",
            "env_var": "VAULT_ENGINE",
            "default": "kv2",
            "choices": ["kv1", "kv2"],
            "description": "Vault KV secret engine version",
        },
        "vault_max_token_ttl": {
            "type": "int",
            "env_var": "VAULT_MAX_TOKEN_TTL",
            "default": 300,
            "minimum": 0,
            "description": "Renew the token once its TTL drops below this many seconds",
        },
        "vault_token_polling_period": {
            "type": "float",
            "env_var": "VAULT_TOKEN_POLLING_PERIOD",
            "default": 15.0,
            "minimum": 0,
        },
        "vault_renew_ttl_increment": {
            "type": "int",
            "env_var": "VAULT_RENEW_TTL_INCREMENT",
            "default": 600,
            "minimum": 1,
        },
        "backend_base_path": {
            "type": "string",
            "env_var": "BACKEND_BASE_PATH",
            "default": "/run/secrets",
            "description": "Base directory of the local backend",
        },
        "azure_key_vault_url": {"type": "string", "env_var": "AZURE_KEY_VAULT_URI"},
        "azure_key_vault_name": {"type": "string", "env_var": "AZURE_KEY_VAULT_NAME"},
        "in_cluster": {"type": "bool", "env_var": "IN_CLUSTER", "default": True},
        "kubeconfig": {
            "type": "string",
            "env_var": "KUBECONFIG",
            "description": "Kubeconfig path when not running in-cluster",
        },
        "watch_namespace": {
            "type": "string",
            "env_var": "WATCH_NAMESPACE",
            "default": "",
            "description": "Namespace to watch for SecretDefinitions (empty: all)",
        },
        "crd_group": {"type": "string", "env_var": "CRD_GROUP", "default": DEFAULT_GROUP},
        "create_crd": {"type": "bool", "env_var": "CREATE_CRD", "default": True},
        "resync_period_seconds": {
            "type": "float",
            "env_var": "RESYNC_PERIOD_SECONDS",
            "default": 30.0,
            "minimum": 0,
        },
        "worker_count": {"type": "int", "env_var": "WORKER_COUNT", "default": 2, "minimum": 1},
        "max_retries": {"type": "int", "env_var": "MAX_RETRIES", "default": 15, "minimum": 0},
        "retry_base_delay_ms": {
            "type": "int",
            "env_var": "RETRY_BASE_DELAY_MS",
            "default": 5,
            "minimum": 1,
        },
        "retry_max_delay_ms": {
            "type": "int",
            "env_var": "RETRY_MAX_DELAY_MS",
            "default": 1_000_000,
            "minimum": 1,
        },
        "metrics_type": {
            "type": "string",
            "env_var": "METRICS_TYPE",
            "default": "prometheus",
            "choices": ["prometheus", "noop"],
        },
        "metrics_port": {"type": "int", "env_var": "METRICS_PORT", "default": 8080, "minimum": 0},
    },
}


def load_service_config(provider: ConfigProvider | None = None) -> TypedConfig:
    """Load and validate the service configuration.

    By default settings come from the environment, where a variable
    prefixed with ``SECRETS_MANAGER_`` overrides the bare name.

    Raises:
        ConfigValidationError: If any value is missing or invalid
    """
    provider = provider or EnvConfigProvider(prefix=ENV_PREFIX)
    return load_typed_config(ConfigSchema.from_dict(SERVICE_SCHEMA), provider=provider)
