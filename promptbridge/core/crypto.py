"""Symmetric encryption for OAuth tokens stored at rest."""

import base64
import binascii
import logging

from cryptography.fernet import Fernet, InvalidToken

from promptbridge.core.errors import DecryptionError, InvalidEncryptionKeyError

logger = logging.getLogger(__name__)

KEY_HEX_LENGTH = 64


class CredentialCipher:
    """Encrypts and decrypts token strings with a single process-wide key.

    Uses Fernet (AES-CBC with a random IV per call, authenticated with HMAC-SHA256),
    so encrypting the same token twice yields unlinkable ciphertexts and a wrong key
    or damaged ciphertext is detected instead of decrypting to garbage.
    """

    def __init__(self, key: bytes):
        """Initialize the cipher.

        Args:
            key: 32 raw key bytes (16 signing + 16 encryption bytes for Fernet)
        """
        if len(key) != 32:
            raise InvalidEncryptionKeyError(
                f"Encryption key must be 32 bytes, got {len(key)}"
            )
        self._fernet = Fernet(base64.urlsafe_b64encode(key))

    @classmethod
    def from_hex(cls, key_hex: str) -> "CredentialCipher":
        """Build a cipher from a 64-character hex key.

        Raises:
            InvalidEncryptionKeyError: If the key is not exactly 64 hex characters
        """
        if not isinstance(key_hex, str) or len(key_hex) != KEY_HEX_LENGTH:
            raise InvalidEncryptionKeyError(
                "ENCRYPTION_KEY must be a 32-byte hex string (64 characters)"
            )
        try:
            key = binascii.unhexlify(key_hex)
        except (binascii.Error, ValueError) as e:
            raise InvalidEncryptionKeyError(
                "ENCRYPTION_KEY must be a 32-byte hex string (64 characters)"
            ) from e
        return cls(key)

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a stored token.

        Raises:
            DecryptionError: On wrong key, tampering, truncation or malformed input
        """
        if not ciphertext:
            raise DecryptionError("Ciphertext is empty")
        try:
            return self._fernet.decrypt(ciphertext).decode("utf-8")
        except (InvalidToken, TypeError, ValueError) as e:
            logger.debug("Token decryption failed: %s", type(e).__name__)
            raise DecryptionError("Failed to decrypt stored token") from e


__all__ = ["CredentialCipher", "KEY_HEX_LENGTH"]
