"""
Message adaptation layer.

This module provides:
- Message: Opaque body plus a property bag
- encrypt_message / decrypt_message: Apply an optional policy to a message
- MessageBodyEncryptionPlugin: Before-send / after-receive hooks

A missing policy leaves messages untouched, so callers can wire these
functions in unconditionally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import uuid4

from .errors import InvalidArgumentError

if TYPE_CHECKING:
    from .policy import EncryptionPolicy


@dataclass
class Message:
    """Message with an opaque body and user properties."""

    body: bytes
    properties: Dict[str, Any] = field(default_factory=dict)
    message_id: str = field(default_factory=lambda: uuid4().hex)


async def encrypt_message(
    message: Message, policy: Optional[EncryptionPolicy]
) -> Message:
    """
    Encrypt the message body. If no policy is set, the message is not modified.

    Args:
        message: Message to encrypt
        policy: Encryption policy, or None

    Returns:
        The encrypted message
    """
    if policy is not None:
        return await policy.encrypt_message(message)
    return message


async def decrypt_message(
    message: Message, policy: Optional[EncryptionPolicy]
) -> Message:
    """
    Decrypt the message body. If no policy is set, the message is not modified.

    Args:
        message: Message to decrypt
        policy: Encryption policy, or None

    Returns:
        The decrypted message
    """
    if policy is not None:
        return await policy.decrypt_message(message)
    return message


class MessageBodyEncryptionPlugin:
    """Hook adapter encrypting before send and decrypting after receive."""

    name = "Message body encryption plugin"

    def __init__(self, policy: EncryptionPolicy) -> None:
        if policy is None:
            raise InvalidArgumentError("policy must not be None")
        self._policy = policy

    @property
    def policy(self) -> EncryptionPolicy:
        return self._policy

    async def before_message_send(self, message: Message) -> Message:
        return await encrypt_message(message, self._policy)

    async def after_message_receive(self, message: Message) -> Message:
        return await decrypt_message(message, self._policy)
