"""
Policy configuration from the environment.

Reads the encryption key location from environment variables (a ``.env``
file is loaded first when present):

    MESSAGE_ENCRYPTION_KEY_ID = <key identifier recorded on messages>
    MESSAGE_ENCRYPTION_KEY_FILE = <path to a PEM encoded RSA private key>
    MESSAGE_ENCRYPTION_KEY_PASSWORD = <optional PEM password>

Never log key material. Only key ids and file paths are logged.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from .errors import ConfigError, CryptoError
from .keys import DictKeyResolver, RsaKey
from .policy import EncryptionPolicy

logger = logging.getLogger(__name__)

KEY_ID_ENV: str = "MESSAGE_ENCRYPTION_KEY_ID"
KEY_FILE_ENV: str = "MESSAGE_ENCRYPTION_KEY_FILE"
KEY_PASSWORD_ENV: str = "MESSAGE_ENCRYPTION_KEY_PASSWORD"


@dataclass(frozen=True)
class EncryptionSettings:
    """Encryption key settings."""

    key_id: str
    key_file: Path
    key_password: Optional[str] = None

    def __repr__(self) -> str:
        password = "[REDACTED]" if self.key_password else None
        return (
            f"EncryptionSettings(key_id={self.key_id!r}, "
            f"key_file={str(self.key_file)!r}, key_password={password})"
        )


def load_settings(env_file: Optional[Union[str, Path]] = None) -> EncryptionSettings:
    """
    Load encryption settings from the environment.

    Args:
        env_file: Optional .env file; the default search is used when omitted.
            Variables already set in the environment take precedence.

    Returns:
        EncryptionSettings

    Raises:
        ConfigError: If a required variable is missing or empty
    """
    load_dotenv(env_file)

    key_id = os.environ.get(KEY_ID_ENV, "").strip()
    if not key_id:
        raise ConfigError(f"{KEY_ID_ENV} must be set in environment or .env file")

    key_file = os.environ.get(KEY_FILE_ENV, "").strip()
    if not key_file:
        raise ConfigError(f"{KEY_FILE_ENV} must be set in environment or .env file")

    return EncryptionSettings(
        key_id=key_id,
        key_file=Path(key_file),
        key_password=os.environ.get(KEY_PASSWORD_ENV) or None,
    )


def load_key(settings: EncryptionSettings) -> RsaKey:
    """
    Load the RSA key named by the settings.

    Raises:
        ConfigError: If the key file cannot be read or is not an RSA key
    """
    try:
        pem = settings.key_file.read_bytes()
    except OSError as e:
        raise ConfigError(f"Failed to read key file {settings.key_file}: {e}") from e

    password = settings.key_password.encode("utf-8") if settings.key_password else None
    try:
        key = RsaKey.from_pem(settings.key_id, pem, password=password)
    except CryptoError as e:
        raise ConfigError(f"Invalid key file {settings.key_file}: {e}") from e

    logger.debug("Loaded key %s from %s", settings.key_id, settings.key_file)
    return key


def policy_from_env(env_file: Optional[Union[str, Path]] = None) -> EncryptionPolicy:
    """
    Build an encryption policy from the environment.

    The loaded key encrypts, and is also served by a resolver for decryption.

    Args:
        env_file: Optional .env file

    Returns:
        EncryptionPolicy instance
    """
    key = load_key(load_settings(env_file))
    return EncryptionPolicy.with_key(key, DictKeyResolver(key))
