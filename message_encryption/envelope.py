"""
Encryption metadata carried alongside an encrypted message body.

This module provides:
- EncryptionAlgorithm: Content encryption algorithm (wire name is textual)
- EncryptionAgent: Protocol version and algorithm used for the body
- WrappedKey: Wrapped content key and the key that wrapped it
- EncryptionData: The complete envelope with JSON (de)serialization

Parsing is purely structural. Whether an envelope is usable (IV present,
known protocol, executable algorithm) is decided by the encryption policy,
so that corrupt JSON and incomplete metadata remain distinct failures.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from .errors import SerializationError


class EncryptionAlgorithm(Enum):
    """Content encryption algorithm."""

    AES_CBC_256 = "AES_CBC_256"
    UNSUPPORTED = "UNSUPPORTED"  # Any name this version does not know

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_str(cls, s: Optional[str]) -> EncryptionAlgorithm:
        """Parse from the wire name; unknown names map to UNSUPPORTED."""
        if s == cls.AES_CBC_256.value:
            return cls.AES_CBC_256
        return cls.UNSUPPORTED


@dataclass(frozen=True)
class EncryptionAgent:
    """Protocol version and content encryption algorithm."""

    protocol: Optional[str]
    encryption_algorithm: EncryptionAlgorithm


@dataclass(frozen=True)
class WrappedKey:
    """Content key wrapped by a protecting key."""

    key_id: Optional[str]
    encrypted_key: Optional[bytes]
    algorithm: Optional[str]


@dataclass(frozen=True)
class EncryptionData:
    """Encryption metadata stored in the message properties."""

    content_encryption_iv: Optional[bytes]
    encryption_agent: EncryptionAgent
    wrapped_content_key: WrappedKey

    def to_json(self) -> str:
        """Serialize envelope to JSON string."""
        try:
            return json.dumps(
                {
                    "ContentEncryptionIV": _b64e(self.content_encryption_iv),
                    "EncryptionAgent": {
                        "EncryptionAlgorithm": self.encryption_agent.encryption_algorithm.value,
                        "Protocol": self.encryption_agent.protocol,
                    },
                    "WrappedContentKey": {
                        "KeyId": self.wrapped_content_key.key_id,
                        "EncryptedKey": _b64e(self.wrapped_content_key.encrypted_key),
                        "Algorithm": self.wrapped_content_key.algorithm,
                    },
                }
            )
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to serialize encryption metadata: {e}") from e

    @classmethod
    def from_json(cls, json_str: Union[str, bytes]) -> EncryptionData:
        """
        Deserialize envelope from JSON string.

        Missing fields are returned as None; only structurally invalid data
        raises.

        Raises:
            SerializationError: If the value is not a JSON object of the
                expected shape, is nested too deeply, or a binary field is not
                valid base64
        """
        if not isinstance(json_str, (str, bytes, bytearray)):
            raise SerializationError(
                f"Encryption metadata must be a string, got {type(json_str).__name__}"
            )
        try:
            data = json.loads(json_str)
        except (ValueError, UnicodeDecodeError, RecursionError) as e:
            raise SerializationError(
                f"Error while de-serializing the encryption metadata: {e}"
            ) from e

        data = _object(data, "encryption metadata")
        agent = _optional_object(data.get("EncryptionAgent"), "EncryptionAgent")
        wrapped = _optional_object(data.get("WrappedContentKey"), "WrappedContentKey")

        return cls(
            content_encryption_iv=_b64d(data.get("ContentEncryptionIV"), "ContentEncryptionIV"),
            encryption_agent=EncryptionAgent(
                protocol=_string(agent.get("Protocol"), "Protocol"),
                encryption_algorithm=EncryptionAlgorithm.from_str(
                    _string(agent.get("EncryptionAlgorithm"), "EncryptionAlgorithm")
                ),
            ),
            wrapped_content_key=WrappedKey(
                key_id=_string(wrapped.get("KeyId"), "KeyId"),
                encrypted_key=_b64d(wrapped.get("EncryptedKey"), "EncryptedKey"),
                algorithm=_string(wrapped.get("Algorithm"), "Algorithm"),
            ),
        )


def _object(value: Any, name: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise SerializationError(f"{name} must be a JSON object")
    return value


def _optional_object(value: Any, name: str) -> Dict[str, Any]:
    return {} if value is None else _object(value, name)


def _string(value: Any, name: str) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise SerializationError(f"{name} must be a string")
    return value


def _b64e(value: Optional[bytes]) -> Optional[str]:
    if value is None:
        return None
    return base64.standard_b64encode(value).decode("ascii")


def _b64d(value: Any, name: str) -> Optional[bytes]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise SerializationError(f"{name} must be a base64 string")
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SerializationError(f"{name} is not valid base64: {e}") from e
