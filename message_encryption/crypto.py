"""
Cryptographic primitives for AES-256-CBC message body encryption.

This module provides:
- SecureKey: Secure key wrapper with automatic zeroization
- ContentKey: Ephemeral per-message content key and initialization vector
- AesCbcCipher: AES-256-CBC encryption/decryption with PKCS7 padding
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import CryptoError

# Cryptographic constants
AES_256_KEY_SIZE: int = 32  # 256 bits
IV_SIZE: int = 16  # 128 bits (one AES block)
BLOCK_SIZE_BITS: int = 128  # AES block size for PKCS7 padding


class SecureKey:
    """
    Secure key wrapper with automatic memory cleanup on deletion.

    Uses bytearray internally for mutable zeroing in __del__.
    Note: Python's garbage collector doesn't guarantee immediate cleanup,
    so this is best-effort zeroization.
    """

    __slots__ = ("_bytes",)

    def __init__(self, key_bytes: bytes | bytearray) -> None:
        """
        Create a SecureKey from raw bytes.

        Args:
            key_bytes: Raw key material (should be 32 bytes for AES-256)
        """
        if not isinstance(key_bytes, (bytes, bytearray)):
            raise CryptoError("Key must be bytes or bytearray")
        self._bytes = bytearray(key_bytes)

    @classmethod
    def generate(cls) -> SecureKey:
        """Generate a cryptographically secure random 32-byte key."""
        return cls(secrets.token_bytes(AES_256_KEY_SIZE))

    def as_bytes(self) -> bytes:
        """Return key as immutable bytes."""
        return bytes(self._bytes)

    def __len__(self) -> int:
        """Return key length in bytes."""
        return len(self._bytes)

    def __repr__(self) -> str:
        """Redacted representation to prevent accidental key disclosure."""
        return "SecureKey([REDACTED])"

    def __del__(self) -> None:
        """Zero memory on deletion (best-effort)."""
        if hasattr(self, "_bytes"):
            for i in range(len(self._bytes)):
                self._bytes[i] = 0


@dataclass(frozen=True)
class ContentKey:
    """
    Ephemeral content encryption key and IV for a single message.

    Generated fresh for every encryption and discarded afterwards; only its
    wrapped form travels with the message.
    """

    key: SecureKey
    iv: bytes

    @classmethod
    def generate(cls) -> ContentKey:
        """Generate a random AES-256 key and a random 16-byte IV."""
        return cls(key=SecureKey.generate(), iv=generate_random_bytes(IV_SIZE))


class AesCbcCipher:
    """
    AES-256-CBC encryption with PKCS7 padding.

    The cipher context is created and finalized inside each call, so no
    state is shared between messages.
    """

    @staticmethod
    def _cipher(key: SecureKey, iv: bytes) -> Cipher:
        if len(key) != AES_256_KEY_SIZE:
            raise CryptoError(
                f"Invalid key size: expected {AES_256_KEY_SIZE}, got {len(key)}"
            )
        if len(iv) != IV_SIZE:
            raise CryptoError(f"Invalid IV size: expected {IV_SIZE}, got {len(iv)}")
        return Cipher(algorithms.AES(key.as_bytes()), modes.CBC(iv))

    @staticmethod
    def encrypt(key: SecureKey, iv: bytes, plaintext: bytes) -> bytes:
        """
        Encrypt plaintext with AES-256-CBC.

        Args:
            key: 32-byte content key
            iv: 16-byte initialization vector
            plaintext: Data to encrypt (padded to the block boundary)

        Returns:
            Ciphertext bytes (a whole number of blocks)

        Raises:
            CryptoError: If key/IV size is invalid or encryption fails
        """
        cipher = AesCbcCipher._cipher(key, iv)

        try:
            padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
            padded = padder.update(plaintext) + padder.finalize()
            encryptor = cipher.encryptor()
            return encryptor.update(padded) + encryptor.finalize()
        except Exception as e:
            raise CryptoError(f"Encryption error: {e}") from e

    @staticmethod
    def decrypt(key: SecureKey, iv: bytes, ciphertext: bytes) -> bytes:
        """
        Decrypt AES-256-CBC ciphertext and strip PKCS7 padding.

        Args:
            key: 32-byte content key
            iv: 16-byte initialization vector used for encryption
            ciphertext: Data to decrypt

        Returns:
            Decrypted plaintext bytes

        Raises:
            CryptoError: If key/IV size is invalid, the ciphertext is not
                block aligned, or the padding is corrupt
        """
        cipher = AesCbcCipher._cipher(key, iv)

        if len(ciphertext) % IV_SIZE != 0:
            raise CryptoError("Ciphertext length is not a multiple of the block size")

        try:
            decryptor = cipher.decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()
            return unpadder.update(padded) + unpadder.finalize()
        except Exception:
            # Generic error to prevent padding oracle attacks
            raise CryptoError("Decryption failed")


def generate_random_bytes(length: int) -> bytes:
    """
    Generate cryptographically secure random bytes.

    Args:
        length: Number of bytes to generate

    Returns:
        Random bytes of specified length
    """
    return secrets.token_bytes(length)
