# Authentication Module
"""
Second-factor authentication implementations:
- HOTP (RFC 4226) - hotp.py
- TOTP (RFC 6238) engine with injected clock - totp.py
- Shared secret value type - secret.py
- otpauth:// enrollment URI and QR rendering - enrollment.py
- Single-use backup codes - backup_codes.py
- Profile store contract - store.py
- Credential lifecycle manager - manager.py

Security features:
- Constant-time comparison for code verification
- Cryptographically secure random secrets and backup codes
- Backup codes stored only as SHA-256 hashes, redeemed atomically
- Secrets never appear in repr() or logs
"""

from .hotp import hotp

from .totp import (
    TOTPEngine,
    totp,
    verify_totp,
    get_time_counter,
    get_remaining_seconds,
    TOTP_DIGITS,
    TOTP_TIME_STEP,
    TOTP_DRIFT_TOLERANCE,
)

from .secret import SharedSecret

from .enrollment import (
    build_enrollment_uri,
    render_qr_ascii,
    render_qr_svg,
)

from .backup_codes import (
    generate_backup_codes,
    hash_backup_code,
    normalize_code,
)

from .errors import (
    ErrorCode,
    ErrorKind,
    TwoFactorError,
    StoreError,
)

from .store import (
    CredentialRecord,
    ProfileStore,
    InMemoryProfileStore,
)

from .manager import (
    TwoFactorManager,
    ProvisionResult,
    ConfirmResult,
    ValidationResult,
    DisableResult,
    BackupCodesResult,
    CancelResult,
    StatusResult,
)

__all__ = [
    # HOTP / TOTP
    'hotp',
    'TOTPEngine',
    'totp',
    'verify_totp',
    'get_time_counter',
    'get_remaining_seconds',
    'TOTP_DIGITS',
    'TOTP_TIME_STEP',
    'TOTP_DRIFT_TOLERANCE',
    'SharedSecret',
    # Enrollment
    'build_enrollment_uri',
    'render_qr_ascii',
    'render_qr_svg',
    # Backup codes
    'generate_backup_codes',
    'hash_backup_code',
    'normalize_code',
    # Errors
    'ErrorCode',
    'ErrorKind',
    'TwoFactorError',
    'StoreError',
    # Store
    'CredentialRecord',
    'ProfileStore',
    'InMemoryProfileStore',
    # Manager
    'TwoFactorManager',
    'ProvisionResult',
    'ConfirmResult',
    'ValidationResult',
    'DisableResult',
    'BackupCodesResult',
    'CancelResult',
    'StatusResult',
]
