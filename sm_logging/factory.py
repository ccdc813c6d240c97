# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Factory functions for creating logger instances."""

import os

from .logger import Logger
from .silent_logger import SilentLogger
from .stdout_logger import StdoutLogger


def _default(value: str | None, env_var: str, fallback: str) -> str:
    """Pick an explicit value, then the env var, then the fallback."""
    return value or os.getenv(env_var) or fallback


def create_logger(
    logger_type: str | None = None,
    level: str | None = None,
    name: str | None = None,
) -> Logger:
    """Factory function to create a logger instance.

    Args:
        logger_type: Type of logger to create. Options: "stdout", "silent".
            Defaults to LOG_TYPE env or "stdout".
        level: Logging level. Options: DEBUG, INFO, WARNING, ERROR.
            Defaults to LOG_LEVEL env or "INFO".
        name: Logger name for identification. Defaults to LOG_NAME env or
            "secrets-manager".

    Returns:
        Logger instance

    Raises:
        ValueError: If logger_type is not recognized

    Example:
        >>> logger = create_logger(logger_type="stdout", level="DEBUG", name="controller")
        >>> logger.info("Secret synced", namespace="default", name="db-credentials")
    """
    logger_type = _default(logger_type, "LOG_TYPE", "stdout").lower()
    level = _default(level, "LOG_LEVEL", "INFO").upper()
    name = _default(name, "LOG_NAME", "secrets-manager")

    loggers: dict[str, type[Logger]] = {
        "stdout": StdoutLogger,
        "silent": SilentLogger,
    }
    if logger_type not in loggers:
        raise ValueError(
            f"Unknown logger_type: {logger_type}. "
            f"Must be one of: {', '.join(loggers.keys())}"
        )
    return loggers[logger_type](level=level, name=name)
