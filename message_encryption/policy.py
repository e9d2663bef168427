"""
Message body encryption policy.

This module provides:
- EncryptionPolicyOptions: Encryption key supplier and decryption key resolver
- EncryptionPolicy: Encrypts and decrypts message bodies

Architecture:
- A fresh AES-256 content key and IV are generated for every message
- The content key is wrapped by the policy's protecting key
- The wrapped key, IV and algorithm travel in the "encryptiondata" property

Key selection:
- Encryption always uses the supplied encryption key. It is fetched once per
  policy and cached; concurrent first calls wait on a lock so the supplier
  runs at most once.
- Decryption prefers the key resolver (looked up by the key id recorded on
  the message). Without a resolver the cached encryption key is used, and
  its key id must match the recorded one exactly.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .crypto import AesCbcCipher, ContentKey, SecureKey
from .envelope import EncryptionAgent, EncryptionAlgorithm, EncryptionData, WrappedKey
from .errors import (
    ConfigError,
    CryptoError,
    DecryptionError,
    InvalidArgumentError,
    KeyMismatchError,
    KeyNotFoundError,
    MalformedEnvelopeError,
    SerializationError,
    UnsupportedAlgorithmError,
)
from .keys import KeyResolver, KeySupplier, ProtectingKey
from .message import Message

logger = logging.getLogger(__name__)

ENCRYPTION_HEADER_DATA_KEY: str = "encryptiondata"
PROTOCOL_VERSION: str = "1.0"

# Raised as-is by decrypt_body; anything else is wrapped in DecryptionError.
_DISTINGUISHED_ERRORS = (
    SerializationError,
    MalformedEnvelopeError,
    KeyNotFoundError,
    KeyMismatchError,
    UnsupportedAlgorithmError,
)


@dataclass
class EncryptionPolicyOptions:
    """
    Encryption policy configuration.

    ``encryption_key`` has to be set for encryption. ``key_resolver`` is used
    for decryption; without it the encryption key is tried instead.
    """

    encryption_key: Optional[KeySupplier] = None
    key_resolver: Optional[KeyResolver] = None

    def validate(self) -> None:
        """
        Validate the options.

        Raises:
            ConfigError: If neither encryption_key nor key_resolver is set
        """
        if self.encryption_key is None and self.key_resolver is None:
            raise ConfigError("Neither encryption_key nor key_resolver has been set.")


class EncryptionPolicy:
    """
    Message body encryption policy.

    Each policy is bound to a single encryption key for its lifetime.
    """

    def __init__(self, options: EncryptionPolicyOptions) -> None:
        """
        Initialize EncryptionPolicy.

        Args:
            options: Validated policy options

        Raises:
            ConfigError: If neither encryption_key nor key_resolver is set
        """
        if options is None:
            raise InvalidArgumentError("options must not be None")
        options.validate()
        self._options = options
        self._cached_encryption_key: Optional[ProtectingKey] = None
        self._lock = asyncio.Lock()

    @classmethod
    def with_key(
        cls,
        encryption_key: Optional[ProtectingKey],
        key_resolver: Optional[KeyResolver] = None,
    ) -> EncryptionPolicy:
        """
        Create a policy from a concrete key.

        If the encryption key is set, encryption and decryption with that key
        are available. If the key resolver is set, decryption is available.
        Both may be given.

        Args:
            encryption_key: Protecting key used for encryption
            key_resolver: Resolver used for decryption

        Returns:
            EncryptionPolicy instance
        """
        options = EncryptionPolicyOptions(key_resolver=key_resolver)
        if encryption_key is not None:

            async def supply_key() -> ProtectingKey:
                return encryption_key

            options.encryption_key = supply_key

        policy = cls(options)
        policy._cached_encryption_key = encryption_key
        return policy

    @classmethod
    def configure(
        cls, configure: Callable[[EncryptionPolicyOptions], None]
    ) -> EncryptionPolicy:
        """
        Create a policy by letting a callback fill in the options.

        Args:
            configure: Callback receiving empty EncryptionPolicyOptions

        Returns:
            EncryptionPolicy instance
        """
        if configure is None:
            raise InvalidArgumentError("configure must not be None")
        options = EncryptionPolicyOptions()
        configure(options)
        return cls(options)

    @property
    def key_resolver(self) -> Optional[KeyResolver]:
        """Get the decryption key resolver."""
        return self._options.key_resolver

    @property
    def can_encrypt(self) -> bool:
        """Whether an encryption key supplier is configured."""
        return self._options.encryption_key is not None

    async def get_encryption_key(self) -> ProtectingKey:
        """
        Get the encryption key, fetching it from the supplier on first use.

        Returns:
            The cached encryption key

        Raises:
            ConfigError: If no encryption key supplier is configured
            KeyNotFoundError: If the supplier returned no key
        """
        if self._cached_encryption_key is None:
            supplier = self._options.encryption_key
            if supplier is None:
                raise ConfigError("No encryption key has been configured.")
            async with self._lock:
                if self._cached_encryption_key is None:
                    self._cached_encryption_key = await supplier()

        if self._cached_encryption_key is None:
            raise KeyNotFoundError("Encryption key could not be resolved")
        return self._cached_encryption_key

    async def encrypt_message(self, message: Message) -> Message:
        """
        Encrypt a message body in place.

        Args:
            message: Message to encrypt

        Returns:
            The same message with encrypted body and encryption metadata
        """
        if message is None:
            raise InvalidArgumentError("message must not be None")
        if not self.can_encrypt:
            raise ConfigError("No encryption key has been configured.")

        logger.info("Encrypting message %s", message.message_id)
        message.body, message.properties = await self.encrypt_body(
            message.body, message.properties
        )
        logger.info("Encrypting message %s finished", message.message_id)
        return message

    async def decrypt_message(self, message: Message) -> Message:
        """
        Decrypt a message body in place.

        Args:
            message: Message to decrypt

        Returns:
            The same message with decrypted body
        """
        if message is None:
            raise InvalidArgumentError("message must not be None")

        logger.info("Decrypting message %s", message.message_id)
        message.body = await self.decrypt_body(message.body, message.properties)
        logger.info("Decrypting message %s finished", message.message_id)
        return message

    async def encrypt_body(
        self, body: bytes, properties: Mapping[str, Any]
    ) -> Tuple[bytes, Dict[str, Any]]:
        """
        Encrypt a message body.

        The input properties are not modified; a copy carrying the
        encryption metadata is returned instead.

        Args:
            body: Plaintext body
            properties: Message properties

        Returns:
            Tuple of (ciphertext, properties with encryption metadata)

        Raises:
            InvalidArgumentError: If body or properties is None
            ConfigError: If no encryption key is configured
        """
        _check_arguments(body, properties)

        encryption_key = await self.get_encryption_key()
        logger.debug("Using key %s", encryption_key.key_id)

        content_key = ContentKey.generate()
        wrapped_key, wrap_algorithm = await encryption_key.wrap_key(
            content_key.key.as_bytes(), None
        )

        data = EncryptionData(
            content_encryption_iv=content_key.iv,
            encryption_agent=EncryptionAgent(
                protocol=PROTOCOL_VERSION,
                encryption_algorithm=EncryptionAlgorithm.AES_CBC_256,
            ),
            wrapped_content_key=WrappedKey(
                key_id=encryption_key.key_id,
                encrypted_key=wrapped_key,
                algorithm=wrap_algorithm,
            ),
        )

        updated = dict(properties)
        updated[ENCRYPTION_HEADER_DATA_KEY] = data.to_json()
        return AesCbcCipher.encrypt(content_key.key, content_key.iv, bytes(body)), updated

    async def decrypt_body(self, body: bytes, properties: Mapping[str, Any]) -> bytes:
        """
        Decrypt a message body.

        Bodies without encryption metadata are returned unchanged.

        Args:
            body: Encrypted body
            properties: Message properties

        Returns:
            Decrypted body

        Raises:
            InvalidArgumentError: If body or properties is None
            SerializationError: If the encryption metadata is not valid JSON
            MalformedEnvelopeError: If the IV or wrapped key is missing, or
                the protocol version is not understood
            KeyNotFoundError: If no decryption key could be resolved
            KeyMismatchError: If the encryption key does not match the
                key id stored on the message
            UnsupportedAlgorithmError: If the content algorithm is unsupported
            DecryptionError: If decryption failed for any other reason
        """
        _check_arguments(body, properties)

        raw = properties.get(ENCRYPTION_HEADER_DATA_KEY)
        if raw is None:
            logger.warning("No encryption data found. Skip body decryption.")
            return body

        data = EncryptionData.from_json(raw)

        try:
            self._validate(data)
            content_key = await self._unwrap_content_key(data)

            algorithm = data.encryption_agent.encryption_algorithm
            logger.debug("Detected encryption algorithm %s", algorithm)
            if algorithm is not EncryptionAlgorithm.AES_CBC_256:
                raise UnsupportedAlgorithmError(
                    "Invalid encryption algorithm found on the message. This version "
                    "of the library does not support the specified encryption algorithm."
                )

            return AesCbcCipher.decrypt(content_key, data.content_encryption_iv, bytes(body))
        except _DISTINGUISHED_ERRORS:
            raise
        except Exception as e:
            raise DecryptionError(
                "Decryption logic threw error. Please check the cause for more details.",
                cause=e,
            ) from e

    @staticmethod
    def _validate(data: EncryptionData) -> None:
        if not data.content_encryption_iv:
            raise MalformedEnvelopeError("IV not found.")
        if not data.wrapped_content_key.encrypted_key:
            raise MalformedEnvelopeError("Encryption key not found.")
        if data.encryption_agent.protocol != PROTOCOL_VERSION:
            raise MalformedEnvelopeError(
                f"Invalid encryption agent protocol {data.encryption_agent.protocol!r}. "
                "This version of the library does not understand the encryption "
                "agent set on the message."
            )

    async def _resolve_decryption_key(self, data: EncryptionData) -> ProtectingKey:
        key_id = data.wrapped_content_key.key_id

        if self._options.key_resolver is not None:
            logger.debug("Try using key resolver")
            key = await self._options.key_resolver.resolve_key(key_id)
            if key is None:
                raise KeyNotFoundError("No decryption key could be resolved")
            logger.debug("Key found %s", key.key_id)
            return key

        if self._options.encryption_key is not None:
            key = await self.get_encryption_key()
            if key.key_id != key_id:
                raise KeyMismatchError(
                    "Key mismatch. The key id stored on the message does not match "
                    "the specified key."
                )
            logger.debug("Using original encryption key %s", key.key_id)
            return key

        raise KeyNotFoundError("Could not resolve a decryption key")

    async def _unwrap_content_key(self, data: EncryptionData) -> SecureKey:
        key = await self._resolve_decryption_key(data)
        wrapped = data.wrapped_content_key
        content_key = await key.unwrap_key(wrapped.encrypted_key, wrapped.algorithm)
        if not content_key:
            raise CryptoError("Could not unwrap the content key")
        return SecureKey(content_key)

    def __repr__(self) -> str:
        return (
            f"EncryptionPolicy(can_encrypt={self.can_encrypt}, "
            f"key_resolver={self._options.key_resolver!r})"
        )


def _check_arguments(body: Any, properties: Any) -> None:
    if body is None:
        raise InvalidArgumentError("body must not be None")
    if not isinstance(body, (bytes, bytearray, memoryview)):
        raise InvalidArgumentError(f"body must be bytes, got {type(body).__name__}")
    if properties is None:
        raise InvalidArgumentError("properties must not be None")
