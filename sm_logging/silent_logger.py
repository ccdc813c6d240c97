# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""In-memory logger for tests."""

from typing import Any

from .logger import Logger


class SilentLogger(Logger):
    """Keeps every record in :attr:`logs` instead of writing it anywhere.

    Level filtering is not applied, so tests can assert on DEBUG records
    regardless of the configured level.
    """

    def __init__(self, level: str = "INFO", name: str | None = None):
        self.level = level.upper()
        self.name = name or "secrets-manager"
        self.logs: list[dict[str, Any]] = []

    def log(self, level: str, message: str, **kwargs: Any) -> None:
        kwargs.pop("exc_info", None)
        log_entry: dict[str, Any] = {"level": level, "message": message}
        if kwargs:
            log_entry["extra"] = kwargs
        self.logs.append(log_entry)

    def clear_logs(self) -> None:
        self.logs.clear()

    def get_logs(self, level: str | None = None) -> list[dict[str, Any]]:
        """Stored records, optionally only those at ``level``."""
        if level is None:
            return self.logs
        return [log for log in self.logs if log["level"] == level]

    def has_log(self, message: str, level: str | None = None) -> bool:
        """True if any stored record's message contains ``message``."""
        return any(message in log["message"] for log in self.get_logs(level))
