"""
Exception classes for message encryption operations.

This module defines the exception hierarchy raised by the encryption policy.
Every error derives from EnvelopeError so callers can catch the whole family.
"""

from __future__ import annotations

from typing import Optional


class EnvelopeError(Exception):
    """Base exception for all message encryption operations."""

    pass


class InvalidArgumentError(EnvelopeError, ValueError):
    """A required argument (message body, property bag, policy) is missing."""

    pass


class ConfigError(EnvelopeError):
    """Configuration error (no encryption key or key resolver configured)."""

    pass


class CryptoError(EnvelopeError):
    """Cryptographic operation failed (encryption, decryption, key wrapping)."""

    pass


class SerializationError(EnvelopeError):
    """Encryption metadata could not be serialized or de-serialized."""

    pass


class MalformedEnvelopeError(EnvelopeError):
    """Encryption metadata parsed but is missing data or has an unknown protocol."""

    pass


class KeyNotFoundError(EnvelopeError):
    """No protecting key could be obtained for the required key identifier."""

    pass


class KeyMismatchError(EnvelopeError):
    """The configured encryption key does not match the key recorded on the message."""

    pass


class UnsupportedAlgorithmError(EnvelopeError):
    """The message names a content encryption algorithm this library cannot execute."""

    pass


class DecryptionError(EnvelopeError):
    """
    Decryption failed for a reason other than the distinguished error kinds.

    The original exception is available as ``cause`` and as ``__cause__``.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause
