# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Registry of value decoders keyed by encoding name.

A datasource declares how its backend value is encoded. The empty encoding
is the identity (the value's UTF-8 bytes); ``base64`` is strict standard
base64. New encodings are added with :func:`register_codec` without touching
any caller.
"""

import base64
import binascii
import threading
from typing import Callable

from .exceptions import DecodeError, EncodingNotImplementedError

Decoder = Callable[[str], bytes]


def decode_identity(value: str) -> bytes:
    return value.encode("utf-8")


def decode_base64(value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 value: {e}") from e


class CodecRegistry:
    """Thread-safe mapping of encoding name to decoder."""

    def __init__(self, include_builtins: bool = True):
        self._lock = threading.Lock()
        self._decoders: dict[str, Decoder] = {}
        if include_builtins:
            self._decoders[""] = decode_identity
            self._decoders["base64"] = decode_base64

    def register(self, encoding: str, decoder: Decoder) -> None:
        """Register (or replace) the decoder for an encoding name."""
        if not callable(decoder):
            raise TypeError("decoder must be callable")
        with self._lock:
            self._decoders[encoding] = decoder

    def get_decoder(self, encoding: str) -> Decoder:
        """Return the decoder for ``encoding``.

        Raises:
            EncodingNotImplementedError: If nothing is registered under that name
        """
        with self._lock:
            decoder = self._decoders.get(encoding)
        if decoder is None:
            raise EncodingNotImplementedError(encoding)
        return decoder

    def decode(self, encoding: str, value: str) -> bytes:
        """Decode ``value`` with the codec registered for ``encoding``.

        Raises:
            EncodingNotImplementedError: If the encoding is unknown
            DecodeError: If the value is malformed for that encoding
        """
        decoder = self.get_decoder(encoding)
        try:
            return decoder(value)
        except DecodeError:
            raise
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Failed to decode value with encoding '{encoding}': {e}") from e

    def encodings(self) -> list[str]:
        with self._lock:
            return sorted(self._decoders)


default_registry = CodecRegistry()


def register_codec(encoding: str, decoder: Decoder) -> None:
    """Register a decoder on the process-wide default registry."""
    default_registry.register(encoding, decoder)
