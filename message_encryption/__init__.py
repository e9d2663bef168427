"""
Message Encryption Library

Client-side envelope encryption for message bodies.

Overview
--------
- A fresh **content key** (AES-256-CBC) encrypts each message body
- The content key is wrapped by a **protecting key** (RSA-OAEP, AES key wrap,
  or any ProtectingKey implementation backed by a key management service)
- The wrapped key, IV and algorithm travel in the message's
  ``"encryptiondata"`` property, so any holder of the protecting key can
  decrypt

Quick Start
-----------
```python
import asyncio
from message_encryption import (
    DictKeyResolver,
    EncryptionPolicy,
    Message,
    RsaKey,
    decrypt_message,
    encrypt_message,
)

async def main():
    key = RsaKey.generate("orders-key")

    # Sender: encrypt with the key
    sender = EncryptionPolicy.with_key(key)
    message = await encrypt_message(Message(b"Sensitive data"), sender)

    # Receiver: resolve the key by the id recorded on the message
    receiver = EncryptionPolicy.with_key(None, DictKeyResolver(key))
    message = await decrypt_message(message, receiver)

asyncio.run(main())
```

Modules
-------
- `crypto`: AES-256-CBC content encryption primitives
- `keys`: Protecting key and key resolver abstractions
- `envelope`: Encryption metadata model
- `policy`: Encryption policy (key selection, encrypt, decrypt)
- `message`: Message helpers and send/receive plugin
- `config`: Environment based policy configuration
- `errors`: Error types and exception classes
"""

__version__ = "0.1.0"

# ============================================================================
# Crypto Exports
# ============================================================================

from .crypto import (
    AES_256_KEY_SIZE,
    IV_SIZE,
    AesCbcCipher,
    ContentKey,
    SecureKey,
    generate_random_bytes,
)

# ============================================================================
# Error Exports
# ============================================================================

from .errors import (
    ConfigError,
    CryptoError,
    DecryptionError,
    EnvelopeError,
    InvalidArgumentError,
    KeyMismatchError,
    KeyNotFoundError,
    MalformedEnvelopeError,
    SerializationError,
    UnsupportedAlgorithmError,
)

# ============================================================================
# Key Exports
# ============================================================================

from .keys import (
    A256KW,
    RSA_OAEP,
    RSA_OAEP_256,
    DictKeyResolver,
    KeyResolver,
    KeySupplier,
    ProtectingKey,
    RsaKey,
    SymmetricKey,
)

# ============================================================================
# Envelope Exports
# ============================================================================

from .envelope import (
    EncryptionAgent,
    EncryptionAlgorithm,
    EncryptionData,
    WrappedKey,
)

# ============================================================================
# Message Exports
# ============================================================================

from .message import (
    Message,
    MessageBodyEncryptionPlugin,
    decrypt_message,
    encrypt_message,
)

# ============================================================================
# Policy Exports (Primary API)
# ============================================================================

from .policy import (
    ENCRYPTION_HEADER_DATA_KEY,
    PROTOCOL_VERSION,
    EncryptionPolicy,
    EncryptionPolicyOptions,
)

# ============================================================================
# Configuration Exports
# ============================================================================

from .config import (
    EncryptionSettings,
    load_key,
    load_settings,
    policy_from_env,
)

# ============================================================================
# Public API
# ============================================================================

__all__ = [
    # Version
    "__version__",
    # Crypto
    "AES_256_KEY_SIZE",
    "IV_SIZE",
    "AesCbcCipher",
    "ContentKey",
    "SecureKey",
    "generate_random_bytes",
    # Errors
    "EnvelopeError",
    "InvalidArgumentError",
    "ConfigError",
    "CryptoError",
    "SerializationError",
    "MalformedEnvelopeError",
    "KeyNotFoundError",
    "KeyMismatchError",
    "UnsupportedAlgorithmError",
    "DecryptionError",
    # Keys
    "ProtectingKey",
    "KeyResolver",
    "KeySupplier",
    "RsaKey",
    "SymmetricKey",
    "DictKeyResolver",
    "RSA_OAEP",
    "RSA_OAEP_256",
    "A256KW",
    # Envelope
    "EncryptionAlgorithm",
    "EncryptionAgent",
    "WrappedKey",
    "EncryptionData",
    # Message
    "Message",
    "MessageBodyEncryptionPlugin",
    "encrypt_message",
    "decrypt_message",
    # Policy (Primary API)
    "ENCRYPTION_HEADER_DATA_KEY",
    "PROTOCOL_VERSION",
    "EncryptionPolicy",
    "EncryptionPolicyOptions",
    # Configuration
    "EncryptionSettings",
    "load_settings",
    "load_key",
    "policy_from_env",
]
