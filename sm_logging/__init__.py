# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Structured logging for the secrets manager controller.

Example:
    >>> from sm_logging import create_logger
    >>> logger = create_logger(logger_type="stdout", level="INFO", name="secrets-manager")
    >>> logger.info("Controller started", workers=2)
    >>>
    >>> # Silent logger for tests
    >>> test_logger = create_logger(logger_type="silent")
"""

__version__ = "0.1.0"

from .factory import create_logger
from .logger import Logger
from .silent_logger import SilentLogger
from .stdout_logger import StdoutLogger

__all__ = [
    "__version__",
    "Logger",
    "SilentLogger",
    "StdoutLogger",
    "create_logger",
]
