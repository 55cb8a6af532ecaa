"""
Error taxonomy for the two-factor subsystem.

Expected failures (bad input, wrong lifecycle state, wrong code) are
reported as an ErrorCode on the operation result. Only infrastructure
failures raise.
"""

from enum import Enum


class ErrorKind(Enum):
    """Broad failure category, for callers choosing a retry/lockout policy."""
    INPUT = "input"
    STATE = "state"
    AUTH = "auth"


class ErrorCode(Enum):
    """Reported (non-raised) failure outcomes."""

    MALFORMED_INPUT = "malformed_input"
    NOT_PROVISIONED = "not_provisioned"
    ALREADY_ENABLED = "already_enabled"
    INVALID_CODE = "invalid_code"

    @property
    def kind(self) -> ErrorKind:
        return _KINDS[self]


_KINDS = {
    ErrorCode.MALFORMED_INPUT: ErrorKind.INPUT,
    ErrorCode.NOT_PROVISIONED: ErrorKind.STATE,
    ErrorCode.ALREADY_ENABLED: ErrorKind.STATE,
    ErrorCode.INVALID_CODE: ErrorKind.AUTH,
}


class TwoFactorError(Exception):
    """Base class for raised two-factor errors."""
    pass


class StoreError(TwoFactorError):
    """The profile store could not be read or written."""
    pass
