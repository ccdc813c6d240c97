# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Configuration source interface."""

from abc import ABC, abstractmethod


class ConfigProvider(ABC):
    """A source of raw string settings.

    Providers never coerce values; typing and validation belong to
    :class:`~sm_config.schema_loader.SchemaConfigLoader`.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the raw value of ``key``, or None when it is unset."""
        pass

    def describe(self, key: str) -> str:
        """Where ``key`` is looked up, for error messages."""
        return key
