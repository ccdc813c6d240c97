# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Logger interface shared by every controller component."""

from abc import ABC, abstractmethod
from typing import Any

LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR")


class Logger(ABC):
    """Structured logger handed to each component through its constructor.

    Drivers implement :meth:`log` only. Context such as the namespace, the
    secret name or the backend path travels as keyword arguments so it
    stays machine-readable:

        >>> logger.error("Unable to upsert secret", namespace="default", name="db")
    """

    @abstractmethod
    def log(self, level: str, message: str, **kwargs: Any) -> None:
        """Emit one record.

        Args:
            level: One of ``LEVEL_NAMES``
            message: Human-readable message, without interpolated context
            **kwargs: Structured context; ``exc_info`` attaches the active exception
        """
        pass

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log("DEBUG", message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self.log("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log("ERROR", message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log at ERROR with the exception being handled attached."""
        kwargs.setdefault("exc_info", True)
        self.log("ERROR", message, **kwargs)
