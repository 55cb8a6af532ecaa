"""
Base32 Codec (RFC 4648)

Encodes shared secrets for display and QR enrollment, and decodes the
secrets typed or scanned back from authenticator apps.

Behaviour:
- Encoding uses the standard alphabet (A-Z, 2-7) and emits no padding
- Decoding is case-insensitive and strips trailing '=' padding
- Characters outside the alphabet are skipped silently
- An incomplete trailing group of bits is dropped

Decoding never raises: a mangled secret simply decodes to different
bytes, and the HMAC comparison downstream fails to match.
"""

import base64


ALPHABET = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ234567'
BITS_PER_CHAR = 5
BITS_PER_BYTE = 8

_LOOKUP = {char: index for index, char in enumerate(ALPHABET)}


def encode(data: bytes) -> str:
    """
    Encode bytes as unpadded Base32 text.

    Args:
        data: Raw bytes

    Returns:
        Base32 string without '=' padding
    """
    return base64.b32encode(bytes(data)).decode('ascii').rstrip('=')


def decode(text: str) -> bytes:
    """
    Decode Base32 text permissively.

    Args:
        text: Base32 string (any case, padded or not)

    Returns:
        Decoded bytes
    """
    cleaned = text.upper().rstrip('=')

    buffer = 0
    bits = 0
    output = bytearray()

    for char in cleaned:
        index = _LOOKUP.get(char)
        if index is None:
            continue

        buffer = (buffer << BITS_PER_CHAR) | index
        bits += BITS_PER_CHAR

        if bits >= BITS_PER_BYTE:
            bits -= BITS_PER_BYTE
            output.append((buffer >> bits) & 0xFF)
            # Keep only the bits not yet emitted
            buffer &= (1 << bits) - 1

    return bytes(output)

