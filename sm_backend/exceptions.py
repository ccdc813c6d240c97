# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Exceptions for secret backends and value decoding."""


class BackendError(Exception):
    """Base exception for backend and decoding errors."""
    pass


class BackendNotFoundError(BackendError):
    """Raised when a requested path or key does not exist in the backend."""
    pass


class BackendProviderError(BackendError):
    """Raised when the backend encounters an error (I/O, auth, bad data)."""
    pass


class EncodingNotImplementedError(BackendError):
    """Raised when a datasource names an encoding with no registered codec."""

    def __init__(self, encoding: str):
        super().__init__(f"encoding {encoding} not supported")
        self.encoding = encoding


class DecodeError(BackendError):
    """Raised when a value cannot be decoded with its declared encoding."""
    pass
