"""Tests for the AES-256-CBC content encryption primitives."""

from __future__ import annotations

import pytest

from message_encryption import (
    AES_256_KEY_SIZE,
    IV_SIZE,
    AesCbcCipher,
    ContentKey,
    CryptoError,
    SecureKey,
    generate_random_bytes,
)


def test_secure_key_generate_is_random() -> None:
    a = SecureKey.generate()
    b = SecureKey.generate()
    assert len(a) == AES_256_KEY_SIZE
    assert a.as_bytes() != b.as_bytes()


def test_secure_key_repr_is_redacted() -> None:
    key = SecureKey(b"\x01" * AES_256_KEY_SIZE)
    assert "01" not in repr(key)
    assert repr(key) == "SecureKey([REDACTED])"


def test_secure_key_rejects_non_bytes() -> None:
    with pytest.raises(CryptoError):
        SecureKey("not bytes")  # type: ignore[arg-type]


def test_content_key_generate() -> None:
    first = ContentKey.generate()
    second = ContentKey.generate()
    assert len(first.key) == AES_256_KEY_SIZE
    assert len(first.iv) == IV_SIZE
    assert first.iv != second.iv


@pytest.mark.parametrize("plaintext", [b"", b"a", b"x" * 16, b"Fake Message" * 100])
def test_encrypt_decrypt(plaintext: bytes) -> None:
    content_key = ContentKey.generate()
    ciphertext = AesCbcCipher.encrypt(content_key.key, content_key.iv, plaintext)

    assert len(ciphertext) % IV_SIZE == 0
    assert len(ciphertext) > len(plaintext)
    assert AesCbcCipher.decrypt(content_key.key, content_key.iv, ciphertext) == plaintext


def test_decrypt_with_wrong_key_fails() -> None:
    content_key = ContentKey.generate()
    ciphertext = AesCbcCipher.encrypt(content_key.key, content_key.iv, b"Fake Message")

    # A wrong key almost always produces invalid padding; a valid-looking
    # result must still differ from the plaintext.
    try:
        result = AesCbcCipher.decrypt(SecureKey.generate(), content_key.iv, ciphertext)
    except CryptoError:
        return
    assert result != b"Fake Message"


def test_decrypt_rejects_unaligned_ciphertext() -> None:
    content_key = ContentKey.generate()
    with pytest.raises(CryptoError, match="block size"):
        AesCbcCipher.decrypt(content_key.key, content_key.iv, b"short")


def test_invalid_key_size() -> None:
    with pytest.raises(CryptoError, match="Invalid key size"):
        AesCbcCipher.encrypt(SecureKey(b"\x00" * 16), b"\x00" * IV_SIZE, b"data")


def test_invalid_iv_size() -> None:
    with pytest.raises(CryptoError, match="Invalid IV size"):
        AesCbcCipher.encrypt(SecureKey.generate(), b"\x00" * 12, b"data")


def test_generate_random_bytes() -> None:
    assert len(generate_random_bytes(7)) == 7
    assert generate_random_bytes(32) != generate_random_bytes(32)
