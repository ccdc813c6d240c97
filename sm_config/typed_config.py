# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Typed configuration wrapper for services."""

from typing import Any, Iterable

from .base import ConfigProvider
from .schema_loader import ConfigSchema, SchemaConfigLoader


class TypedConfig:
    """Immutable, attribute-only view over a validated configuration dict.

    Dictionary-style access is not supported so every key a service reads
    is spelled out as an attribute. Keys listed in ``secret_keys`` are
    masked in ``repr`` so a logged config never leaks a token.

    Example:
        >>> config = load_service_config()
        >>> config.worker_count
        2
        >>> config["worker_count"]
        TypeError: TypedConfig does not support dict-style access
    """

    def __init__(self, config_dict: dict[str, Any], secret_keys: Iterable[str] = ()):
        object.__setattr__(self, "_config", dict(config_dict))
        object.__setattr__(self, "_secret_keys", frozenset(secret_keys))

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

        config = object.__getattribute__(self, "_config")
        if name not in config:
            raise AttributeError(
                f"Configuration key '{name}' not found. "
                f"Available keys: {sorted(config.keys())}"
            )
        return config[name]

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(
            f"Cannot modify configuration. '{name}' is read-only. "
            "Configuration is immutable after loading."
        )

    def __getitem__(self, key: str) -> Any:
        raise TypeError(
            f"TypedConfig does not support dict-style access (config['{key}']). "
            f"Use attribute-style instead: config.{key}"
        )

    def __repr__(self) -> str:
        config = object.__getattribute__(self, "_config")
        secret_keys = object.__getattribute__(self, "_secret_keys")
        shown = {
            key: "<redacted>" if key in secret_keys and value is not None else value
            for key, value in config.items()
        }
        return f"TypedConfig({shown!r})"

    def __dir__(self) -> list:
        return sorted(object.__getattribute__(self, "_config").keys())


def load_typed_config(schema: ConfigSchema, provider: ConfigProvider | None = None) -> TypedConfig:
    """Load and validate configuration, returning a typed config object.

    Args:
        schema: Schema describing every field the service reads
        provider: Source of raw values (defaults to the process environment)

    Raises:
        ConfigValidationError: If configuration validation fails
    """
    loader = SchemaConfigLoader(schema=schema, provider=provider)
    secret_keys = [name for name, spec in schema.fields.items() if spec.secret]
    return TypedConfig(loader.load(), secret_keys=secret_keys)
