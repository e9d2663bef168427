"""
Pytest configuration and fixtures for message encryption tests.
"""

from __future__ import annotations

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from message_encryption import (
    DictKeyResolver,
    EncryptionPolicy,
    Message,
    RsaKey,
)

TEST_MESSAGE = b"Fake Message"


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    """One RSA key pair shared by the session (generation is slow)."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def rsa_key(rsa_private_key: rsa.RSAPrivateKey) -> RsaKey:
    """RSA protecting key with id "Test Key"."""
    return RsaKey("Test Key", private_key=rsa_private_key)


@pytest.fixture
def other_rsa_key(rsa_private_key: rsa.RSAPrivateKey) -> RsaKey:
    """Same key material as rsa_key but a different key id."""
    return RsaKey("Test Key 2", private_key=rsa_private_key)


@pytest.fixture
def message() -> Message:
    """Fresh unencrypted message."""
    return Message(TEST_MESSAGE)


@pytest.fixture
def encryption_policy(rsa_key: RsaKey) -> EncryptionPolicy:
    """Policy encrypting (and decrypting) with rsa_key."""
    return EncryptionPolicy.with_key(rsa_key)


@pytest.fixture
async def encrypted_message(
    message: Message, encryption_policy: EncryptionPolicy
) -> Message:
    """Message encrypted with rsa_key."""
    return await encryption_policy.encrypt_message(message)


@pytest.fixture
def resolver_policy(rsa_key: RsaKey) -> EncryptionPolicy:
    """Decryption-only policy resolving rsa_key by id."""
    return EncryptionPolicy.with_key(None, DictKeyResolver(rsa_key))
