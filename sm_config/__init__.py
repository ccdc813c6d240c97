# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Configuration management for the secrets manager controller."""

__version__ = "0.1.0"

from .base import ConfigProvider
from .env_provider import EnvConfigProvider
from .schema_loader import (
    ConfigSchema,
    ConfigSchemaError,
    ConfigValidationError,
    FieldSpec,
    SchemaConfigLoader,
)
from .typed_config import TypedConfig, load_typed_config

__all__ = [
    "__version__",
    "ConfigProvider",
    "EnvConfigProvider",
    "ConfigSchema",
    "ConfigSchemaError",
    "ConfigValidationError",
    "FieldSpec",
    "SchemaConfigLoader",
    "TypedConfig",
    "load_typed_config",
]
