"""
Profile store contract.

The two-factor manager does not own persistence. It reads and writes a
CredentialRecord per account through a ProfileStore, which must provide:

- get_credential / set_credential for whole-field reads and patches
- remove_backup_code, a conditional removal ("remove this hash only if
  still present") so a backup code can be redeemed at most once
- account_lock, serializing read-check-write sequences per account

InMemoryProfileStore is the reference implementation. Database-backed
stores implement the same methods with row locks or conditional updates,
and raise StoreError when the backend is unavailable.
"""

import threading
import weakref
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from typing import Dict, Iterator, Optional, Set


@dataclass
class CredentialRecord:
    """
    Second-factor state for one account.

    Invariant: enabled implies secret is not None.
    """
    secret: Optional[str] = field(default=None, repr=False)  # Base32 or sealed token
    enabled: bool = False
    backup_code_hashes: Set[str] = field(default_factory=set, repr=False)
    enrolled_at: Optional[datetime] = None

    @property
    def pending(self) -> bool:
        """A secret has been issued but not confirmed yet."""
        return self.secret is not None and not self.enabled

    def copy(self) -> 'CredentialRecord':
        return replace(self, backup_code_hashes=set(self.backup_code_hashes))


_FIELDS = frozenset(f.name for f in fields(CredentialRecord))


def _check_invariants(record: CredentialRecord) -> None:
    if record.enabled and record.secret is None:
        raise ValueError("An enabled credential must have a secret")


class ProfileStore(ABC):
    """Abstract profile store keyed by account id."""

    def __init__(self):
        # Entries vanish once no thread holds or waits on the lock
        self._account_locks = weakref.WeakValueDictionary()
        self._account_locks_guard = threading.Lock()

    @abstractmethod
    def get_credential(self, account_id: str) -> CredentialRecord:
        """
        Load an account's credential record.

        Unknown accounts yield a fresh, unprovisioned record.

        Raises:
            StoreError: If the backend cannot be read
        """

    @abstractmethod
    def set_credential(self, account_id: str, **patch) -> CredentialRecord:
        """
        Apply a field patch and return the updated record.

        Raises:
            ValueError: On unknown fields or a broken invariant
            StoreError: If the backend cannot be written
        """

    @abstractmethod
    def remove_backup_code(self, account_id: str, code_hash: str) -> Optional[int]:
        """
        Remove a backup-code hash only if it is still present.

        Returns:
            Remaining number of hashes, or None if the hash was not present

        Raises:
            StoreError: If the backend cannot be written
        """

    @contextmanager
    def account_lock(self, account_id: str) -> Iterator[None]:
        """Serialize read-check-write sequences for one account."""
        with self._account_locks_guard:
            lock = self._account_locks.setdefault(account_id, threading.RLock())
        with lock:
            yield


class InMemoryProfileStore(ProfileStore):
    """
    Thread-safe in-process profile store.

    Records are copied on the way in and out so callers can never mutate
    stored state without going through the store.
    """

    def __init__(self):
        super().__init__()
        self._lock = threading.RLock()
        self._records: Dict[str, CredentialRecord] = {}

    def get_credential(self, account_id: str) -> CredentialRecord:
        with self._lock:
            record = self._records.get(account_id)
            return record.copy() if record else CredentialRecord()

    def set_credential(self, account_id: str, **patch) -> CredentialRecord:
        unknown = set(patch) - _FIELDS
        if unknown:
            raise ValueError(f"Unknown credential fields: {', '.join(sorted(unknown))}")

        if 'backup_code_hashes' in patch:
            patch['backup_code_hashes'] = set(patch['backup_code_hashes'] or ())

        with self._lock:
            current = self._records.get(account_id) or CredentialRecord()
            updated = replace(current, **patch)
            _check_invariants(updated)
            self._records[account_id] = updated
            return updated.copy()

    def remove_backup_code(self, account_id: str, code_hash: str) -> Optional[int]:
        with self._lock:
            record = self._records.get(account_id)
            if record is None or code_hash not in record.backup_code_hashes:
                return None
            record.backup_code_hashes.discard(code_hash)
            return len(record.backup_code_hashes)
