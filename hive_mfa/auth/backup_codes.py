"""
Backup (recovery) codes.

Codes are 4 random bytes rendered as 8 uppercase hex characters in two
groups (ABCD-1234). Only a SHA-256 hex digest of the normalized code is
ever stored; the plaintext is handed to the user once.

Normalization strips whitespace and hyphens and case-folds, so
"abcd 1234", "ABCD-1234" and "abcd1234" hash identically.
"""

import hashlib
import re
import secrets
from typing import List, Set


BACKUP_CODE_COUNT = 10
BACKUP_CODE_BYTES = 4
GROUP_SIZE = 4

_STRIP_RE = re.compile(r'[\s\-]+')
_BACKUP_SHAPE_RE = re.compile(r'[0-9a-f]{%d}' % (BACKUP_CODE_BYTES * 2))


def normalize_code(code: str) -> str:
    """Strip whitespace and hyphens, then case-fold."""
    return _STRIP_RE.sub('', code).casefold()


def is_backup_code_shape(normalized: str) -> bool:
    """Check whether a normalized candidate looks like a backup code."""
    return _BACKUP_SHAPE_RE.fullmatch(normalized) is not None


def generate_backup_code() -> str:
    """Generate one grouped backup code."""
    raw = secrets.token_hex(BACKUP_CODE_BYTES).upper()
    return '-'.join(raw[i:i + GROUP_SIZE] for i in range(0, len(raw), GROUP_SIZE))


def generate_backup_codes(count: int = BACKUP_CODE_COUNT) -> List[str]:
    """
    Generate a batch of distinct backup codes.

    Args:
        count: Number of codes

    Returns:
        List of plaintext codes
    """
    if count <= 0:
        raise ValueError("Backup code count must be positive")

    codes: List[str] = []
    seen: Set[str] = set()
    while len(codes) < count:
        code = generate_backup_code()
        if code in seen:
            continue
        seen.add(code)
        codes.append(code)
    return codes


def hash_backup_code(code: str, salt: bytes = b'') -> str:
    """
    Hash a backup code for storage or lookup.

    Args:
        code: Plaintext code (any grouping or case)
        salt: Optional per-account salt

    Returns:
        Hex SHA-256 digest
    """
    data = normalize_code(code).encode('utf-8')
    if salt:
        data = salt + b':' + data
    return hashlib.sha256(data).hexdigest()


def hash_backup_codes(codes: List[str], salt: bytes = b'') -> Set[str]:
    """Hash a batch of codes into the stored set."""
    return {hash_backup_code(code, salt) for code in codes}
