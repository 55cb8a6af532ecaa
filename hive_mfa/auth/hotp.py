"""
HOTP (HMAC-based One-Time Password) Generator

Implements RFC 4226 dynamic truncation over an HMAC digest.

The counter is packed as an 8-byte big-endian unsigned integer, the
digest's low nibble picks a 4-byte window, the top bit of that window is
cleared and the result is reduced modulo 10**digits.

Any deviation here (endianness, mask, modulus) breaks interoperability
with every standard authenticator app.
"""

import hashlib
import hmac
import struct


HOTP_DIGITS = 6            # Digits in a one-time code
HOTP_ALGORITHM = 'SHA1'    # Algorithm used by authenticator apps

# RFC 6238 allows these; only SHA1 is used for enrollment
HASH_ALGORITHMS = {
    'SHA1': hashlib.sha1,
    'SHA256': hashlib.sha256,
    'SHA512': hashlib.sha512,
}

MAX_COUNTER = 0xFFFFFFFFFFFFFFFF


def hotp(secret: bytes, counter: int, digits: int = HOTP_DIGITS,
         algorithm: str = HOTP_ALGORITHM) -> str:
    """
    Generate an HOTP value.

    Args:
        secret: Shared secret key bytes
        counter: Non-negative moving factor
        digits: Number of digits in the code
        algorithm: SHA1, SHA256 or SHA512

    Returns:
        Zero-padded decimal code string

    Raises:
        ValueError: If the counter is out of range or the algorithm is unknown
    """
    if counter < 0 or counter > MAX_COUNTER:
        raise ValueError("Counter must be an unsigned 64-bit integer")

    hash_algo = HASH_ALGORITHMS.get(algorithm.upper())
    if hash_algo is None:
        raise ValueError(f"Unsupported HOTP algorithm: {algorithm}")

    digest = hmac.new(secret, struct.pack('>Q', counter), hash_algo).digest()

    offset = digest[-1] & 0x0F
    value = struct.unpack('>I', digest[offset:offset + 4])[0] & 0x7FFFFFFF

    return str(value % (10 ** digits)).zfill(digits)
