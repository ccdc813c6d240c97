# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Schema-driven configuration loader with validation."""

import json
import os
from dataclasses import dataclass, field
from typing import Any

from .base import ConfigProvider
from .env_provider import EnvConfigProvider

TRUE_VALUES = ("true", "1", "yes", "on")
FALSE_VALUES = ("false", "0", "no", "off")


class ConfigValidationError(Exception):
    """Exception raised when configuration validation fails."""
    pass


class ConfigSchemaError(Exception):
    """Exception raised when schema is invalid or missing."""
    pass


@dataclass
class FieldSpec:
    """Specification for a single configuration field."""
    name: str
    field_type: str = "string"  # "string", "int", "bool", "float"
    required: bool = False
    default: Any = None
    env_var: str | None = None
    description: str | None = None
    choices: tuple[str, ...] | None = None
    minimum: float | None = None
    secret: bool = False

    @property
    def key(self) -> str:
        return self.env_var or self.name.upper()


@dataclass
class ConfigSchema:
    """Configuration schema for a service."""
    service_name: str
    fields: dict[str, FieldSpec] = field(default_factory=dict)

    @classmethod
    def from_fields(cls, service_name: str, fields: list[FieldSpec]) -> "ConfigSchema":
        """Build a schema from a list of field specs."""
        return cls(service_name=service_name, fields={spec.name: spec for spec in fields})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConfigSchema":
        """Create ConfigSchema from a dictionary.

        Args:
            data: Schema data with ``service_name`` and ``fields``

        Returns:
            ConfigSchema instance
        """
        fields = {}
        for field_name, field_data in data.get("fields", {}).items():
            choices = field_data.get("choices")
            fields[field_name] = FieldSpec(
                name=field_name,
                field_type=field_data.get("type", "string"),
                required=field_data.get("required", False),
                default=field_data.get("default"),
                env_var=field_data.get("env_var"),
                description=field_data.get("description"),
                choices=tuple(choices) if choices else None,
                minimum=field_data.get("minimum"),
                secret=field_data.get("secret", False),
            )
        return cls(service_name=data.get("service_name", "unknown"), fields=fields)

    @classmethod
    def from_json_file(cls, filepath: str) -> "ConfigSchema":
        """Load schema from a JSON file.

        Raises:
            ConfigSchemaError: If schema file is invalid or missing
        """
        if not os.path.exists(filepath):
            raise ConfigSchemaError(f"Schema file not found: {filepath}")

        try:
            with open(filepath, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigSchemaError(f"Invalid JSON in schema file {filepath}: {e}") from e
        except OSError as e:
            raise ConfigSchemaError(f"Error loading schema from {filepath}: {e}") from e
        return cls.from_dict(data)


class SchemaConfigLoader:
    """Loads and validates configuration based on schema.

    Every field is read from one provider, coerced to its declared type and
    checked against ``choices``/``minimum``. All problems are reported
    together in a single :class:`ConfigValidationError`. Values of fields
    marked ``secret`` never appear in error messages.
    """

    def __init__(self, schema: ConfigSchema, provider: ConfigProvider | None = None):
        self.schema = schema
        self.provider = provider or EnvConfigProvider()

    def load(self) -> dict[str, Any]:
        """Load and validate configuration based on schema.

        Returns:
            Validated configuration dictionary

        Raises:
            ConfigValidationError: If any field is missing or invalid
        """
        config = {}
        errors = []

        for field_name, field_spec in self.schema.fields.items():
            try:
                config[field_name] = self._load_field(field_spec)
            except ConfigValidationError as e:
                errors.append(f"{field_name}: {e}")

        if errors:
            raise ConfigValidationError(
                f"Configuration validation failed for {self.schema.service_name}:\n"
                + "\n".join(f"  - {err}" for err in errors)
            )

        return config

    def _load_field(self, field_spec: FieldSpec) -> Any:
        raw_value = self.provider.get(field_spec.key)

        if raw_value is None:
            if field_spec.required:
                raise ConfigValidationError(
                    f"required but not set (looked up {self.provider.describe(field_spec.key)})"
                )
            return field_spec.default

        value = self._coerce(field_spec, raw_value)
        shown = "<redacted>" if field_spec.secret else repr(value)

        if field_spec.choices is not None and value not in field_spec.choices:
            raise ConfigValidationError(f"{shown} is not one of {', '.join(field_spec.choices)}")
        if field_spec.minimum is not None and value < field_spec.minimum:
            raise ConfigValidationError(f"must be >= {field_spec.minimum}, got: {shown}")

        return value

    @staticmethod
    def _coerce(field_spec: FieldSpec, raw_value: str) -> Any:
        shown = "<redacted>" if field_spec.secret else repr(raw_value)

        if field_spec.field_type == "bool":
            value_lower = raw_value.strip().lower()
            if value_lower in TRUE_VALUES:
                return True
            if value_lower in FALSE_VALUES:
                return False
            raise ConfigValidationError(f"expected a boolean, got: {shown}")

        if field_spec.field_type in ("int", "float"):
            converter = int if field_spec.field_type == "int" else float
            try:
                return converter(raw_value)
            except ValueError as e:
                raise ConfigValidationError(f"expected {field_spec.field_type}, got: {shown}") from e

        return raw_value
