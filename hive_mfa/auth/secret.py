"""
Shared secret value type.

A SharedSecret never shows its bytes in repr/str output and refuses to be
pickled, so it cannot end up in a log line or a cache by accident.
"""

import hmac
import secrets

from ..core_crypto import base32


SECRET_BYTES = 20  # 160 bits, matches the HMAC-SHA1 block key size

REDACTED = '<redacted>'


class SharedSecret:
    """
    Opaque TOTP shared secret.

    Example:
        >>> secret = SharedSecret.generate()
        >>> repr(secret)
        'SharedSecret(<redacted>)'
    """

    __slots__ = ('_raw',)

    def __init__(self, raw: bytes):
        if not raw:
            raise ValueError("Shared secret must not be empty")
        self._raw = bytes(raw)

    @classmethod
    def generate(cls, length: int = SECRET_BYTES) -> 'SharedSecret':
        """Generate a secret from the OS CSPRNG."""
        return cls(secrets.token_bytes(length))

    @classmethod
    def from_base32(cls, text: str) -> 'SharedSecret':
        """
        Build a secret from its Base32 rendering.

        Raises:
            ValueError: If the text decodes to no bytes at all
        """
        return cls(base32.decode(text))

    @property
    def raw(self) -> bytes:
        """Raw key bytes for HMAC."""
        return self._raw

    @property
    def base32(self) -> str:
        """Unpadded Base32 rendering for enrollment."""
        return base32.encode(self._raw)

    def __eq__(self, other) -> bool:
        if not isinstance(other, SharedSecret):
            return NotImplemented
        return hmac.compare_digest(self._raw, other._raw)

    __hash__ = None

    def __len__(self) -> int:
        return len(self._raw)

    def __reduce__(self):
        raise TypeError("SharedSecret cannot be serialized")

    def __repr__(self) -> str:
        return f"SharedSecret({REDACTED})"

    __str__ = __repr__
