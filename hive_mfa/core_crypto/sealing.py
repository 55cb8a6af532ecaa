"""
Secret Sealing Module

AES-256-GCM encryption for TOTP secrets at rest.

A profile store only ever sees the sealed token when a cipher is
configured, so a leaked profile table does not leak second factors.

Token format:
    base64( nonce (12) | ciphertext | tag (16) )
"""

import base64
import binascii
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM


KEY_SIZE = 32               # 256-bit key
NONCE_SIZE = 12             # 96-bit nonce for GCM
TAG_SIZE = 16               # 128-bit GCM tag

# Binds sealed tokens to their purpose
ASSOCIATED_DATA = b"hive-mfa:totp-secret:v1"


class SealingError(Exception):
    """Raised when a sealed token cannot be opened."""
    pass


class SecretCipher:
    """
    Seal and open secret strings with AES-256-GCM.

    Example:
        >>> cipher = SecretCipher(os.urandom(32))
        >>> cipher.open(cipher.seal("GEZDGNBV"))
        'GEZDGNBV'
    """

    def __init__(self, key: bytes):
        """
        Initialize cipher.

        Args:
            key: 32-byte AES key

        Raises:
            ValueError: If key has the wrong length
        """
        if len(key) != KEY_SIZE:
            raise ValueError(f"Key must be {KEY_SIZE} bytes")
        self._aesgcm = AESGCM(key)

    @classmethod
    def from_base64(cls, encoded_key: str) -> 'SecretCipher':
        """
        Build a cipher from a base64-encoded key.

        Raises:
            ValueError: If the text is not base64 or not 32 bytes
        """
        try:
            key = base64.b64decode(encoded_key, validate=True)
        except binascii.Error as e:
            raise ValueError("Master key is not valid base64") from e
        return cls(key)

    @staticmethod
    def generate_key() -> bytes:
        """Generate a fresh random AES-256 key."""
        return AESGCM.generate_key(bit_length=KEY_SIZE * 8)

    def seal(self, plaintext: str) -> str:
        """
        Encrypt a string.

        A fresh random nonce is used for every call, so sealing the same
        text twice produces different tokens.
        """
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self._aesgcm.encrypt(nonce, plaintext.encode('utf-8'), ASSOCIATED_DATA)
        return base64.b64encode(nonce + ciphertext).decode('ascii')

    def open(self, token: str) -> str:
        """
        Decrypt a sealed token.

        Raises:
            SealingError: If the token is malformed or fails authentication
        """
        try:
            raw = base64.b64decode(token, validate=True)
        except binascii.Error as e:
            raise SealingError("Sealed secret is not valid base64") from e

        if len(raw) < NONCE_SIZE + TAG_SIZE:
            raise SealingError("Sealed secret is truncated")

        nonce, ciphertext = raw[:NONCE_SIZE], raw[NONCE_SIZE:]
        try:
            plaintext = self._aesgcm.decrypt(nonce, ciphertext, ASSOCIATED_DATA)
        except InvalidTag as e:
            raise SealingError("Sealed secret failed authentication") from e

        return plaintext.decode('utf-8')


def cipher_from_key(encoded_key: Optional[str]) -> Optional[SecretCipher]:
    """Return a cipher for a configured base64 key, or None when unset."""
    if not encoded_key:
        return None
    return SecretCipher.from_base64(encoded_key)
