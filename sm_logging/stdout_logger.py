# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Stdout logger implementation with structured JSON output."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .logger import LEVEL_NAMES, Logger


class StdoutLogger(Logger):
    """Logger that writes one JSON object per line to stdout.

    Every record is mirrored to the stdlib ``logging`` module under the same
    name, so handlers and pytest's ``caplog`` see it too.
    """

    def __init__(self, level: str = "INFO", name: str | None = None):
        """Initialize stdout logger.

        Args:
            level: Minimum level written (DEBUG, INFO, WARNING, ERROR)
            name: Logger name reported in each record

        Raises:
            ValueError: If level is not a known level name
        """
        self.level = level.upper()
        self.name = name or "secrets-manager"

        if self.level not in LEVEL_NAMES:
            raise ValueError(f"Invalid log level: {level}. Must be one of {list(LEVEL_NAMES)}")

        self._stdlib_logger = logging.getLogger(self.name)
        self._stdlib_logger.setLevel(logging.NOTSET)

    def log(self, level: str, message: str, **kwargs: Any) -> None:
        if LEVEL_NAMES.index(level) < LEVEL_NAMES.index(self.level):
            return

        exc_info = kwargs.pop("exc_info", None)

        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": level,
            "logger": self.name,
            "message": message,
        }
        if kwargs:
            log_entry["extra"] = kwargs

        try:
            print(json.dumps(log_entry, default=str), file=sys.stdout, flush=True)
        except (TypeError, ValueError) as e:
            print(f"{level}: {message} (JSON serialization failed: {e})", file=sys.stderr, flush=True)

        extra = {"extra": kwargs} if kwargs else None
        self._stdlib_logger.log(getattr(logging, level), message, exc_info=exc_info, extra=extra)
