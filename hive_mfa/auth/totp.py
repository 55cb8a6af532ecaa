"""
TOTP (Time-based One-Time Password) Engine

Implements RFC 6238 TOTP on top of the RFC 4226 HOTP generator.

Features:
- Counter derivation from an injected clock (30-second step)
- Code generation for the current step
- Verification with a small, fixed drift window
- Seconds remaining in the current step

Used with:
- Google Authenticator
- Authy
- Microsoft Authenticator
- Any RFC 6238 compliant authenticator
"""

import hmac
import time
from typing import Callable, Optional, Union

from .hotp import hotp, HOTP_ALGORITHM, HOTP_DIGITS
from .secret import SharedSecret
from ..core_crypto import base32


# TOTP configuration (RFC 6238 defaults)
TOTP_DIGITS = HOTP_DIGITS     # Number of digits in OTP
TOTP_TIME_STEP = 30           # Time step in seconds
TOTP_ALGORITHM = HOTP_ALGORITHM
TOTP_DRIFT_TOLERANCE = 1      # Accept codes from +/- this many time steps
MAX_WINDOW = 10               # Upper bound for any configured window

SecretLike = Union[str, bytes, SharedSecret]
Clock = Callable[[], float]


def _secret_bytes(secret: SecretLike) -> bytes:
    if isinstance(secret, SharedSecret):
        return secret.raw
    if isinstance(secret, str):
        return base32.decode(secret)
    return bytes(secret)


def _check_window(window: int) -> int:
    if window < 0 or window > MAX_WINDOW:
        raise ValueError(f"Verification window must be between 0 and {MAX_WINDOW}")
    return window


def get_time_counter(timestamp: Optional[float] = None,
                     time_step: int = TOTP_TIME_STEP) -> int:
    """
    Get the time counter value for TOTP.

    Args:
        timestamp: Unix timestamp (uses current time if None)
        time_step: Time step in seconds

    Returns:
        Time counter (T = floor(time / time_step))
    """
    if timestamp is None:
        timestamp = time.time()
    return int(timestamp // time_step)


def totp(secret: SecretLike, timestamp: Optional[float] = None,
         digits: int = TOTP_DIGITS,
         time_step: int = TOTP_TIME_STEP,
         algorithm: str = TOTP_ALGORITHM) -> str:
    """
    Generate the TOTP code for a timestamp.

    Args:
        secret: Secret bytes, Base32 text or SharedSecret
        timestamp: Unix timestamp (uses current time if None)
        digits: Number of digits in OTP
        time_step: Time step in seconds
        algorithm: Hash algorithm

    Returns:
        TOTP code string
    """
    counter = get_time_counter(timestamp, time_step)
    return hotp(_secret_bytes(secret), counter, digits, algorithm)


def verify_totp(secret: SecretLike, code: str,
                timestamp: Optional[float] = None,
                digits: int = TOTP_DIGITS,
                time_step: int = TOTP_TIME_STEP,
                algorithm: str = TOTP_ALGORITHM,
                window: int = TOTP_DRIFT_TOLERANCE) -> bool:
    """
    Verify a TOTP code within +/- window time steps.

    At most 2 * window + 1 codes are valid at any instant. Counters below
    zero are never tried.

    Args:
        secret: Secret bytes, Base32 text or SharedSecret
        code: Candidate code
        timestamp: Unix timestamp (uses current time if None)
        digits: Expected number of digits
        time_step: Time step in seconds
        algorithm: Hash algorithm
        window: Number of time steps to check in each direction

    Returns:
        True if the code matches any counter in the window
    """
    _check_window(window)

    if not isinstance(code, str):
        return False
    code = code.replace(' ', '').strip()
    if len(code) != digits or not (code.isascii() and code.isdigit()):
        return False

    key = _secret_bytes(secret)
    current = get_time_counter(timestamp, time_step)

    for offset in range(-window, window + 1):
        counter = current + offset
        if counter < 0:
            continue
        expected = hotp(key, counter, digits, algorithm)
        if hmac.compare_digest(code, expected):
            return True

    return False


def get_remaining_seconds(timestamp: Optional[float] = None,
                          time_step: int = TOTP_TIME_STEP) -> int:
    """Seconds remaining until the next TOTP code."""
    if timestamp is None:
        timestamp = time.time()
    return time_step - (int(timestamp) % time_step)


class TOTPEngine:
    """
    TOTP generator and verifier bound to a clock.

    The clock is injected so verification can be pinned to fixed times
    (RFC vectors, tests) without patching the time module.

    Example:
        >>> engine = TOTPEngine(clock=lambda: 59)
        >>> engine.generate(b"12345678901234567890")
        '287082'
    """

    def __init__(self, clock: Optional[Clock] = None,
                 time_step: int = TOTP_TIME_STEP,
                 digits: int = TOTP_DIGITS,
                 window: int = TOTP_DRIFT_TOLERANCE):
        """
        Initialize engine.

        Args:
            clock: Callable returning Unix time in seconds (time.time if None)
            time_step: Time step in seconds
            digits: Number of digits in OTP
            window: Default drift tolerance in time steps
        """
        if time_step <= 0:
            raise ValueError("Time step must be positive")
        self._clock = clock or time.time
        self._time_step = time_step
        self._digits = digits
        self._window = _check_window(window)

    @property
    def time_step(self) -> int:
        return self._time_step

    @property
    def digits(self) -> int:
        return self._digits

    @property
    def window(self) -> int:
        return self._window

    def now(self) -> float:
        """Current Unix time according to the engine clock."""
        return self._clock()

    def current_counter(self) -> int:
        """floor(now / time_step)."""
        return get_time_counter(self.now(), self._time_step)

    def generate(self, secret: SecretLike) -> str:
        """Generate the code for the current time step."""
        return hotp(_secret_bytes(secret), self.current_counter(), self._digits)

    def verify(self, secret: SecretLike, code: str,
               window: Optional[int] = None) -> bool:
        """
        Verify a code against the current time step.

        Args:
            secret: Secret bytes, Base32 text or SharedSecret
            code: Candidate code
            window: Override the engine's drift tolerance

        Returns:
            True if valid
        """
        return verify_totp(
            secret,
            code,
            self.now(),
            self._digits,
            self._time_step,
            TOTP_ALGORITHM,
            self._window if window is None else window,
        )

    def remaining_seconds(self) -> int:
        """Seconds until the next code."""
        return get_remaining_seconds(self.now(), self._time_step)

    def __repr__(self) -> str:
        return (f"TOTPEngine(time_step={self._time_step}, digits={self._digits}, "
                f"window={self._window})")
