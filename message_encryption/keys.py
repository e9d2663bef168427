"""
Key provider abstractions for wrapping content keys.

This module provides:
- ProtectingKey: Abstract key that can wrap/unwrap a content key
- KeyResolver: Abstract lookup of a ProtectingKey by its identifier
- KeySupplier: Type of the coroutine function that supplies the encryption key
- RsaKey: RSA-OAEP protecting key
- SymmetricKey: AES key wrap (RFC 3394) protecting key
- DictKeyResolver: In-memory resolver for tests and single-process setups
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, Optional, Tuple

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.keywrap import (
    InvalidUnwrap,
    aes_key_unwrap,
    aes_key_wrap,
)

from .crypto import AES_256_KEY_SIZE
from .errors import CryptoError

RSA_OAEP: str = "RSA-OAEP"
RSA_OAEP_256: str = "RSA-OAEP-256"
A256KW: str = "A256KW"


class ProtectingKey(ABC):
    """
    A key that protects content keys.

    Implementations may be local key material or a handle on a remote key
    management service; all operations are async so either fits.
    """

    @property
    @abstractmethod
    def key_id(self) -> str:
        """Stable key identifier recorded in the encryption metadata."""
        ...

    @abstractmethod
    async def wrap_key(
        self, key: bytes, algorithm: Optional[str] = None
    ) -> Tuple[bytes, str]:
        """
        Wrap a content key.

        Args:
            key: Plaintext content key
            algorithm: Optional wrap algorithm hint; None selects the default

        Returns:
            Tuple of (wrapped key bytes, name of the algorithm actually used)
        """
        ...

    @abstractmethod
    async def unwrap_key(self, encrypted_key: bytes, algorithm: str) -> bytes:
        """Unwrap a content key previously wrapped with ``algorithm``."""
        ...


class KeyResolver(ABC):
    """Looks up protecting keys by identifier."""

    @abstractmethod
    async def resolve_key(self, key_id: str) -> Optional[ProtectingKey]:
        """Return the key for ``key_id``, or None if it is unknown."""
        ...


KeySupplier = Callable[[], Awaitable[ProtectingKey]]


def _oaep(algorithm: str) -> padding.OAEP:
    if algorithm == RSA_OAEP:
        digest = hashes.SHA1()
    elif algorithm == RSA_OAEP_256:
        digest = hashes.SHA256()
    else:
        raise CryptoError(f"Unsupported RSA wrap algorithm: {algorithm}")
    return padding.OAEP(mgf=padding.MGF1(algorithm=digest), algorithm=digest, label=None)


class RsaKey(ProtectingKey):
    """
    RSA protecting key using OAEP padding.

    A public key alone is enough to wrap; unwrapping needs the private key.
    """

    default_algorithm: str = RSA_OAEP_256

    def __init__(
        self,
        key_id: str,
        private_key: Optional[rsa.RSAPrivateKey] = None,
        public_key: Optional[rsa.RSAPublicKey] = None,
    ) -> None:
        """
        Initialize RsaKey.

        Args:
            key_id: Key identifier
            private_key: RSA private key (enables wrap and unwrap)
            public_key: RSA public key (derived from private_key when omitted)
        """
        if private_key is None and public_key is None:
            raise CryptoError("RsaKey needs a private key or a public key")
        self._key_id = key_id
        self._private_key = private_key
        self._public_key = public_key if public_key is not None else private_key.public_key()

    @classmethod
    def generate(cls, key_id: str, key_size: int = 2048) -> RsaKey:
        """Generate a new RSA key pair."""
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
        return cls(key_id, private_key=private_key)

    @classmethod
    def from_pem(
        cls, key_id: str, pem: bytes, password: Optional[bytes] = None
    ) -> RsaKey:
        """
        Load an RSA key from PEM data.

        Private keys (PKCS8 or traditional) and public keys are accepted.

        Raises:
            CryptoError: If the PEM data is not an RSA key
        """
        try:
            if b"PRIVATE KEY" in pem:
                private_key = serialization.load_pem_private_key(pem, password=password)
                if not isinstance(private_key, rsa.RSAPrivateKey):
                    raise CryptoError("PEM data is not an RSA private key")
                return cls(key_id, private_key=private_key)
            public_key = serialization.load_pem_public_key(pem)
        except (ValueError, TypeError) as e:
            raise CryptoError(f"Failed to load RSA key: {e}") from e
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise CryptoError("PEM data is not an RSA public key")
        return cls(key_id, public_key=public_key)

    @property
    def key_id(self) -> str:
        return self._key_id

    @property
    def can_unwrap(self) -> bool:
        return self._private_key is not None

    async def wrap_key(
        self, key: bytes, algorithm: Optional[str] = None
    ) -> Tuple[bytes, str]:
        algorithm = algorithm or self.default_algorithm
        try:
            wrapped = self._public_key.encrypt(key, _oaep(algorithm))
        except CryptoError:
            raise
        except Exception as e:
            raise CryptoError(f"Key wrap failed: {e}") from e
        return wrapped, algorithm

    async def unwrap_key(self, encrypted_key: bytes, algorithm: str) -> bytes:
        if self._private_key is None:
            raise CryptoError(f"Key {self._key_id} has no private key to unwrap with")
        oaep = _oaep(algorithm)
        try:
            return self._private_key.decrypt(encrypted_key, oaep)
        except Exception:
            raise CryptoError("Key unwrap failed")

    def __repr__(self) -> str:
        return f"RsaKey(key_id={self._key_id!r}, private={self.can_unwrap})"


class SymmetricKey(ProtectingKey):
    """AES-256 key-encryption key using AES key wrap (RFC 3394)."""

    def __init__(self, key_id: str, key_bytes: bytes) -> None:
        if len(key_bytes) != AES_256_KEY_SIZE:
            raise CryptoError(
                f"Invalid key size: expected {AES_256_KEY_SIZE}, got {len(key_bytes)}"
            )
        self._key_id = key_id
        self._key = bytes(key_bytes)

    @property
    def key_id(self) -> str:
        return self._key_id

    async def wrap_key(
        self, key: bytes, algorithm: Optional[str] = None
    ) -> Tuple[bytes, str]:
        if algorithm not in (None, A256KW):
            raise CryptoError(f"Unsupported symmetric wrap algorithm: {algorithm}")
        return aes_key_wrap(self._key, key), A256KW

    async def unwrap_key(self, encrypted_key: bytes, algorithm: str) -> bytes:
        if algorithm != A256KW:
            raise CryptoError(f"Unsupported symmetric wrap algorithm: {algorithm}")
        try:
            return aes_key_unwrap(self._key, encrypted_key)
        except (InvalidUnwrap, ValueError):
            raise CryptoError("Key unwrap failed")

    def __repr__(self) -> str:
        return f"SymmetricKey(key_id={self._key_id!r}, [REDACTED])"


class DictKeyResolver(KeyResolver):
    """
    In-memory key resolver.

    Uses asyncio.Lock for safe concurrent registration and lookup.
    """

    def __init__(self, *keys: ProtectingKey) -> None:
        self._keys: Dict[str, ProtectingKey] = {key.key_id: key for key in keys}
        self._lock = asyncio.Lock()

    async def add_key(self, key: ProtectingKey) -> None:
        """Register a key, replacing any key with the same identifier."""
        async with self._lock:
            self._keys[key.key_id] = key

    async def resolve_key(self, key_id: str) -> Optional[ProtectingKey]:
        async with self._lock:
            return self._keys.get(key_id)

    def __len__(self) -> int:
        return len(self._keys)
