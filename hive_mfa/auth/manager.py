"""
Two-Factor Credential Lifecycle Manager

Drives an account's second factor through its lifecycle:

    Unprovisioned --provision--> Pending --confirm--> Enabled
         ^                          |                    |
         +---------cancel-----------+                    |
         +-------------------disable---------------------+

Operations:
- provision: issue a secret and a batch of backup codes (not yet enabled)
- confirm: prove possession with one valid code; enables the factor
- validate: check a TOTP code, falling back to a single-use backup code
- disable: clear the secret and backup codes (TOTP code required)
- regenerate_backup_codes: replace the whole backup-code set
- status / cancel

Security considerations:
- Expected failures are returned as an ErrorCode, never raised
- Only StoreError (infrastructure) propagates to the caller
- Every read-check-write sequence, validate included, runs under the
  store's per-account lock
- Backup codes are redeemed through a conditional removal, so one code
  can never succeed twice, even for concurrent requests
- Results and log lines never carry secrets or submitted codes
"""

import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterator, List, Optional

from .backup_codes import (
    BACKUP_CODE_COUNT,
    generate_backup_codes,
    hash_backup_code,
    hash_backup_codes,
    is_backup_code_shape,
    normalize_code,
)
from .enrollment import DEFAULT_ISSUER, build_enrollment_uri
from .errors import ErrorCode, StoreError
from .secret import SharedSecret
from .store import ProfileStore
from .totp import TOTPEngine
from ..config.settings import Settings, get_settings
from ..core_crypto.sealing import SealingError, SecretCipher, cipher_from_key

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r'\s+')


# ============================================================================
# Results
# ============================================================================

@dataclass
class OperationResult:
    """Base result: error is None on success."""
    error: Optional[ErrorCode] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ProvisionResult(OperationResult):
    """Secret and backup codes, shown to the user exactly once."""
    secret_base32: Optional[str] = field(default=None, repr=False)
    enrollment_uri: Optional[str] = field(default=None, repr=False)
    backup_codes: List[str] = field(default_factory=list, repr=False)


@dataclass
class ConfirmResult(OperationResult):
    enabled: bool = False


@dataclass
class ValidationResult(OperationResult):
    valid: bool = False
    used_backup_code: bool = False
    remaining_backup_codes: Optional[int] = None


@dataclass
class DisableResult(OperationResult):
    disabled: bool = False


@dataclass
class BackupCodesResult(OperationResult):
    backup_codes: List[str] = field(default_factory=list, repr=False)


@dataclass
class CancelResult(OperationResult):
    cancelled: bool = False


@dataclass
class StatusResult(OperationResult):
    enabled: bool = False
    enrolled_at: Optional[datetime] = None
    pending: bool = False
    remaining_backup_codes: Optional[int] = None


# ============================================================================
# Manager
# ============================================================================

class TwoFactorManager:
    """
    TOTP second-factor lifecycle over an external profile store.

    Example:
        >>> manager = TwoFactorManager(InMemoryProfileStore())
        >>> setup = manager.provision("user-1", "alice@example.com")
        >>> manager.confirm("user-1", code_from_app).enabled
        True
    """

    def __init__(self, store: ProfileStore,
                 engine: Optional[TOTPEngine] = None,
                 issuer: str = DEFAULT_ISSUER,
                 cipher: Optional[SecretCipher] = None,
                 backup_code_count: int = BACKUP_CODE_COUNT,
                 salt_backup_codes: bool = False,
                 conceal_enrollment_state: bool = True):
        """
        Initialize manager.

        Args:
            store: Profile store holding credential records
            engine: TOTP engine (wall clock, 30s step, +/-1 window if None)
            issuer: Service name shown in authenticator apps
            cipher: Optional cipher sealing secrets before they reach the store
            backup_code_count: Backup codes per batch
            salt_backup_codes: Salt backup-code hashes with the account id
            conceal_enrollment_state: Report validate() on a non-enrolled
                account as INVALID_CODE instead of NOT_PROVISIONED
        """
        self._store = store
        self._engine = engine or TOTPEngine()
        self._issuer = issuer
        self._cipher = cipher
        self._backup_code_count = backup_code_count
        self._salt_backup_codes = salt_backup_codes
        self._conceal_enrollment_state = conceal_enrollment_state

    @classmethod
    def from_settings(cls, store: ProfileStore, settings: Optional[Settings] = None,
                      engine: Optional[TOTPEngine] = None) -> 'TwoFactorManager':
        """Build a manager from deployment settings."""
        settings = settings or get_settings()
        return cls(
            store,
            engine=engine or TOTPEngine(window=settings.verification_window),
            issuer=settings.issuer,
            cipher=cipher_from_key(settings.secret_master_key),
            backup_code_count=settings.backup_code_count,
            salt_backup_codes=settings.salt_backup_codes,
            conceal_enrollment_state=settings.conceal_enrollment_state,
        )

    @property
    def engine(self) -> TOTPEngine:
        return self._engine

    # ------------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------------

    @contextmanager
    def _store_errors(self, operation: str, account_id: str) -> Iterator[None]:
        try:
            yield
        except StoreError:
            logger.exception("Profile store failure during %s for account %s",
                             operation, account_id)
            raise

    @staticmethod
    def _check_account(account_id: str) -> None:
        if not isinstance(account_id, str) or not account_id:
            raise ValueError("account_id must be a non-empty string")

    def _totp_candidate(self, code) -> Optional[str]:
        """Return the code with whitespace removed, or None if not N digits."""
        if not isinstance(code, str):
            return None
        cleaned = _WHITESPACE_RE.sub('', code)
        return cleaned if self._is_totp_shape(cleaned) else None

    def _is_totp_shape(self, candidate: str) -> bool:
        return (len(candidate) == self._engine.digits
                and candidate.isascii() and candidate.isdigit())

    def _salt(self, account_id: str) -> bytes:
        return account_id.encode('utf-8') if self._salt_backup_codes else b''

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._engine.now(), tz=timezone.utc)

    def _seal(self, secret: SharedSecret) -> str:
        if self._cipher is None:
            return secret.base32
        return self._cipher.seal(secret.base32)

    def _unseal(self, stored: str) -> SharedSecret:
        try:
            text = stored if self._cipher is None else self._cipher.open(stored)
            return SharedSecret.from_base32(text)
        except (SealingError, ValueError) as e:
            raise StoreError("Stored TOTP secret is unreadable") from e

    def _new_backup_codes(self, account_id: str):
        codes = generate_backup_codes(self._backup_code_count)
        return codes, hash_backup_codes(codes, self._salt(account_id))

    # ------------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------------

    def provision(self, account_id: str,
                  account_label: Optional[str] = None) -> ProvisionResult:
        """
        Issue a new secret and backup codes, leaving the factor disabled.

        Re-provisioning a pending account replaces its secret and codes.
        An enabled account must be disabled first.

        Args:
            account_id: Authenticated account identifier
            account_label: Label shown in the authenticator app (account_id if None)

        Returns:
            ProvisionResult with the secret, enrollment URI and plaintext codes
        """
        self._check_account(account_id)

        with self._store_errors('provision', account_id), self._store.account_lock(account_id):
            record = self._store.get_credential(account_id)
            if record.enabled:
                logger.warning("Provision refused for account %s: already enabled", account_id)
                return ProvisionResult(error=ErrorCode.ALREADY_ENABLED)

            secret = SharedSecret.generate()
            codes, hashes = self._new_backup_codes(account_id)
            self._store.set_credential(
                account_id,
                secret=self._seal(secret),
                enabled=False,
                backup_code_hashes=hashes,
                enrolled_at=None,
            )

        logger.info("Provisioned TOTP secret for account %s", account_id)
        return ProvisionResult(
            secret_base32=secret.base32,
            enrollment_uri=build_enrollment_uri(
                secret.base32,
                account_label or account_id,
                self._issuer,
                self._engine.digits,
                self._engine.time_step,
            ),
            backup_codes=codes,
        )

    def confirm(self, account_id: str, code: str) -> ConfirmResult:
        """
        Confirm enrollment with a code from the authenticator app.

        A wrong code leaves the state untouched, so the user can retry.
        """
        self._check_account(account_id)

        candidate = self._totp_candidate(code)
        if candidate is None:
            return ConfirmResult(error=ErrorCode.MALFORMED_INPUT)

        with self._store_errors('confirm', account_id), self._store.account_lock(account_id):
            record = self._store.get_credential(account_id)
            if record.secret is None:
                return ConfirmResult(error=ErrorCode.NOT_PROVISIONED)

            if not self._engine.verify(self._unseal(record.secret), candidate):
                logger.warning("Enrollment confirmation failed for account %s", account_id)
                return ConfirmResult(enabled=record.enabled, error=ErrorCode.INVALID_CODE)

            if not record.enabled:
                self._store.set_credential(account_id, enabled=True, enrolled_at=self._now())
                logger.info("Two-factor enabled for account %s", account_id)

        return ConfirmResult(enabled=True)

    def validate(self, account_id: str, code: str) -> ValidationResult:
        """
        Validate a second factor: TOTP first, then a backup code.

        A matching backup code is consumed and cannot be used again.

        Args:
            account_id: Authenticated account identifier
            code: TOTP code or backup code (whitespace and hyphens ignored)

        Returns:
            ValidationResult
        """
        self._check_account(account_id)

        candidate = normalize_code(code) if isinstance(code, str) else ''
        totp_shaped = self._is_totp_shape(candidate)
        backup_shaped = is_backup_code_shape(candidate)
        if not (totp_shaped or backup_shaped):
            return ValidationResult(error=ErrorCode.MALFORMED_INPUT)

        with self._store_errors('validate', account_id), self._store.account_lock(account_id):
            record = self._store.get_credential(account_id)
            if not record.enabled:
                logger.warning("Validation attempted for account %s without two-factor enabled",
                               account_id)
                if self._conceal_enrollment_state:
                    return ValidationResult(error=ErrorCode.INVALID_CODE)
                return ValidationResult(error=ErrorCode.NOT_PROVISIONED)

            if totp_shaped and self._engine.verify(self._unseal(record.secret), candidate):
                return ValidationResult(valid=True)

            if backup_shaped:
                remaining = self._store.remove_backup_code(
                    account_id, hash_backup_code(candidate, self._salt(account_id))
                )
                if remaining is not None:
                    logger.info("Backup code redeemed for account %s (%d remaining)",
                                account_id, remaining)
                    return ValidationResult(
                        valid=True,
                        used_backup_code=True,
                        remaining_backup_codes=remaining,
                    )

        logger.warning("Second-factor validation failed for account %s", account_id)
        return ValidationResult(error=ErrorCode.INVALID_CODE)

    def disable(self, account_id: str, code: str) -> DisableResult:
        """
        Disable two-factor, discarding the secret and all backup codes.

        Requires a current TOTP code; backup codes are not accepted.
        """
        self._check_account(account_id)

        candidate = self._totp_candidate(code)
        if candidate is None:
            return DisableResult(error=ErrorCode.MALFORMED_INPUT)

        with self._store_errors('disable', account_id), self._store.account_lock(account_id):
            record = self._store.get_credential(account_id)
            if not record.enabled:
                return DisableResult(error=ErrorCode.NOT_PROVISIONED)

            if not self._engine.verify(self._unseal(record.secret), candidate):
                logger.warning("Disable refused for account %s: invalid code", account_id)
                return DisableResult(error=ErrorCode.INVALID_CODE)

            self._store.set_credential(
                account_id,
                secret=None,
                enabled=False,
                backup_code_hashes=set(),
                enrolled_at=None,
            )

        logger.info("Two-factor disabled for account %s", account_id)
        return DisableResult(disabled=True)

    def regenerate_backup_codes(self, account_id: str, code: str) -> BackupCodesResult:
        """
        Replace every backup code with a fresh batch.

        Requires a current TOTP code. All earlier codes, used or not, stop
        working.
        """
        self._check_account(account_id)

        candidate = self._totp_candidate(code)
        if candidate is None:
            return BackupCodesResult(error=ErrorCode.MALFORMED_INPUT)

        with self._store_errors('regenerate_backup_codes', account_id), \
                self._store.account_lock(account_id):
            record = self._store.get_credential(account_id)
            if not record.enabled:
                return BackupCodesResult(error=ErrorCode.NOT_PROVISIONED)

            if not self._engine.verify(self._unseal(record.secret), candidate):
                logger.warning("Backup code regeneration refused for account %s: invalid code",
                               account_id)
                return BackupCodesResult(error=ErrorCode.INVALID_CODE)

            codes, hashes = self._new_backup_codes(account_id)
            self._store.set_credential(account_id, backup_code_hashes=hashes)

        logger.info("Backup codes regenerated for account %s", account_id)
        return BackupCodesResult(backup_codes=codes)

    def cancel(self, account_id: str) -> CancelResult:
        """Discard a pending (unconfirmed) enrollment."""
        self._check_account(account_id)

        with self._store_errors('cancel', account_id), self._store.account_lock(account_id):
            record = self._store.get_credential(account_id)
            if record.enabled:
                return CancelResult(error=ErrorCode.ALREADY_ENABLED)
            if record.secret is None:
                return CancelResult(error=ErrorCode.NOT_PROVISIONED)

            self._store.set_credential(
                account_id,
                secret=None,
                backup_code_hashes=set(),
                enrolled_at=None,
            )

        logger.info("Pending enrollment cancelled for account %s", account_id)
        return CancelResult(cancelled=True)

    def status(self, account_id: str) -> StatusResult:
        """Report whether two-factor is enabled, and since when."""
        self._check_account(account_id)

        with self._store_errors('status', account_id):
            record = self._store.get_credential(account_id)

        if not record.enabled:
            return StatusResult(pending=record.pending)

        return StatusResult(
            enabled=True,
            enrolled_at=record.enrolled_at,
            remaining_backup_codes=len(record.backup_code_hashes),
        )

    def __repr__(self) -> str:
        return f"TwoFactorManager(issuer='{self._issuer}', engine={self._engine!r})"
