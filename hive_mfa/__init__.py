# HIVE MFA
"""
TOTP second-factor authentication: secret provisioning, RFC 6238 code
verification and single-use backup codes over an external profile store.
"""

from .auth import (
    TwoFactorManager,
    TOTPEngine,
    SharedSecret,
    InMemoryProfileStore,
    ProfileStore,
    ErrorCode,
    StoreError,
)

__version__ = "0.1.0"

__all__ = [
    'TwoFactorManager',
    'TOTPEngine',
    'SharedSecret',
    'InMemoryProfileStore',
    'ProfileStore',
    'ErrorCode',
    'StoreError',
]
