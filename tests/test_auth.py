"""
Unit tests for the second-factor primitives.

Tests:
- HOTP (RFC 4226 vectors)
- TOTP (RFC 6238 vectors, drift window, injected clock)
- Shared secret value type
- Enrollment URI and QR rendering
- Backup code generation and hashing
"""

import pickle
import re
from urllib.parse import parse_qsl, urlsplit

import pyotp
import pytest

from hive_mfa.auth.hotp import hotp
from hive_mfa.auth.totp import (
    TOTPEngine, totp, verify_totp, get_time_counter, get_remaining_seconds,
    TOTP_DIGITS, TOTP_TIME_STEP, MAX_WINDOW
)
from hive_mfa.auth.secret import SharedSecret, SECRET_BYTES
from hive_mfa.auth.enrollment import build_enrollment_uri, render_qr_ascii, render_qr_svg
from hive_mfa.auth.backup_codes import (
    generate_backup_codes, hash_backup_code, hash_backup_codes,
    normalize_code, is_backup_code_shape, BACKUP_CODE_COUNT
)
from hive_mfa.core_crypto import base32

from .conftest import FakeClock


RFC_SECRET_SHA1 = b"12345678901234567890"
RFC_SECRET_SHA256 = b"12345678901234567890123456789012"
RFC_SECRET_SHA512 = b"1234567890" * 6 + b"1234"


class TestHOTP:
    """Tests for RFC 4226 HOTP."""

    def test_rfc4226_vectors(self):
        """RFC 4226 Appendix D values for counters 0..9."""
        expected = [
            "755224", "287082", "359152", "969429", "338314",
            "254676", "287922", "162583", "399871", "520489",
        ]
        for counter, code in enumerate(expected):
            assert hotp(RFC_SECRET_SHA1, counter) == code

    def test_zero_padded(self):
        """Codes are always exactly six digits."""
        for counter in range(200):
            code = hotp(b"padding-check-secret", counter)
            assert len(code) == TOTP_DIGITS
            assert code.isdigit()

    def test_negative_counter_rejected(self):
        """Counters are unsigned."""
        with pytest.raises(ValueError):
            hotp(RFC_SECRET_SHA1, -1)

    def test_unknown_algorithm_rejected(self):
        """Only SHA1/SHA256/SHA512 are accepted."""
        with pytest.raises(ValueError):
            hotp(RFC_SECRET_SHA1, 0, algorithm="MD5")

    def test_matches_pyotp(self):
        """Independent implementation agrees on random counters."""
        secret = SharedSecret.generate()
        reference = pyotp.HOTP(secret.base32)
        for counter in (0, 1, 7, 1000, 2 ** 32 + 5):
            assert hotp(secret.raw, counter) == reference.at(counter)


class TestTOTPVectors:
    """RFC 6238 Appendix B conformance."""

    VECTORS = [
        # timestamp, SHA1, SHA256, SHA512 (8 digits)
        (59, "94287082", "46119246", "90693936"),
        (1111111109, "07081804", "68084774", "25091201"),
        (1111111111, "14050471", "67062674", "99943326"),
        (1234567890, "89005924", "91819424", "93441116"),
        (2000000000, "69279037", "90698825", "38618901"),
        (20000000000, "65353130", "77737706", "47863826"),
    ]

    def test_sha1_eight_digits(self):
        """Published 8-digit SHA1 codes."""
        for timestamp, sha1, _, _ in self.VECTORS:
            assert totp(RFC_SECRET_SHA1, timestamp, digits=8) == sha1

    def test_sha256_and_sha512(self):
        """Published SHA256 and SHA512 codes."""
        for timestamp, _, sha256, sha512 in self.VECTORS:
            assert totp(RFC_SECRET_SHA256, timestamp, digits=8, algorithm="SHA256") == sha256
            assert totp(RFC_SECRET_SHA512, timestamp, digits=8, algorithm="SHA512") == sha512

    def test_engine_six_digit_codes(self):
        """The engine reproduces the low six digits from a Base32 secret."""
        secret_b32 = base32.encode(RFC_SECRET_SHA1)
        for timestamp, sha1, _, _ in self.VECTORS:
            engine = TOTPEngine(clock=FakeClock(timestamp))
            assert engine.generate(secret_b32) == sha1[-6:]


class TestTOTPEngine:
    """Tests for the clock-bound TOTP engine."""

    def test_current_counter(self):
        """Counter is floor(now / 30)."""
        assert TOTPEngine(clock=FakeClock(59)).current_counter() == 1
        assert TOTPEngine(clock=FakeClock(60)).current_counter() == 2
        assert get_time_counter(1111111109) == 37037036

    def test_generate_verify(self):
        """A freshly generated code verifies."""
        engine = TOTPEngine(clock=FakeClock())
        secret = SharedSecret.generate()
        assert engine.verify(secret, engine.generate(secret))

    def test_accepts_all_secret_forms(self):
        """Raw bytes, Base32 text and SharedSecret give the same code."""
        engine = TOTPEngine(clock=FakeClock(1234567890))
        secret = SharedSecret(RFC_SECRET_SHA1)
        assert engine.generate(secret) == engine.generate(secret.base32) == engine.generate(secret.raw)

    @pytest.mark.parametrize("steps,accepted", [
        (-2, False), (-1, True), (0, True), (1, True), (2, False),
    ])
    def test_window(self, steps, accepted):
        """Default window accepts exactly one step either side."""
        engine = TOTPEngine(clock=FakeClock())
        secret = SharedSecret.generate()
        code = hotp(secret.raw, engine.current_counter() + steps)
        assert engine.verify(secret, code) is accepted

    def test_window_zero(self):
        """Window 0 accepts only the current step."""
        engine = TOTPEngine(clock=FakeClock(), window=0)
        secret = SharedSecret.generate()
        assert engine.verify(secret, hotp(secret.raw, engine.current_counter()))
        assert not engine.verify(secret, hotp(secret.raw, engine.current_counter() - 1))

    def test_window_bounds(self):
        """Windows outside 0..MAX_WINDOW are refused."""
        with pytest.raises(ValueError):
            TOTPEngine(window=MAX_WINDOW + 1)
        with pytest.raises(ValueError):
            TOTPEngine(window=-1)
        with pytest.raises(ValueError):
            TOTPEngine().verify(SharedSecret.generate(), "123456", window=MAX_WINDOW + 1)

    def test_clock_drift(self):
        """A code survives one step of clock movement but not two."""
        clock = FakeClock()
        engine = TOTPEngine(clock=clock)
        secret = SharedSecret.generate()
        code = engine.generate(secret)
        clock.advance(TOTP_TIME_STEP)
        assert engine.verify(secret, code)
        clock.advance(TOTP_TIME_STEP)
        assert not engine.verify(secret, code)

    def test_no_negative_counters_near_epoch(self):
        """Verification at t=0 does not try counter -1."""
        engine = TOTPEngine(clock=FakeClock(0))
        assert engine.verify(RFC_SECRET_SHA1, "755224")

    def test_remaining_seconds(self):
        """Seconds left in the current step."""
        assert TOTPEngine(clock=FakeClock(59)).remaining_seconds() == 1
        assert get_remaining_seconds(60) == TOTP_TIME_STEP

    def test_verify_rejects_malformed(self):
        """Wrong length or non-digit codes never verify."""
        secret = SharedSecret.generate()
        for bad in ("", "12345", "1234567", "abcdef", "12ab56", None):
            assert not verify_totp(secret, bad)

    def test_spaces_ignored(self):
        """Grouped input ('123 456') is accepted."""
        engine = TOTPEngine(clock=FakeClock())
        secret = SharedSecret.generate()
        code = engine.generate(secret)
        assert engine.verify(secret, f"{code[:3]} {code[3:]}")

    def test_matches_pyotp(self):
        """pyotp verifies our codes and we verify pyotp's."""
        timestamp = 1_700_000_000
        engine = TOTPEngine(clock=FakeClock(timestamp))
        secret = SharedSecret.generate()
        reference = pyotp.TOTP(secret.base32)
        assert engine.generate(secret) == reference.at(timestamp)
        assert reference.verify(engine.generate(secret), for_time=timestamp)


class TestSharedSecret:
    """Tests for the secret value type."""

    def test_default_length(self):
        """Generated secrets are 160 bits."""
        assert len(SharedSecret.generate()) == SECRET_BYTES

    def test_unique(self):
        """Two generated secrets differ."""
        assert SharedSecret.generate() != SharedSecret.generate()

    def test_base32_round_trip(self):
        """from_base32(secret.base32) is the same secret."""
        secret = SharedSecret.generate()
        assert SharedSecret.from_base32(secret.base32) == secret

    def test_repr_redacted(self):
        """Neither repr nor str reveals the key."""
        secret = SharedSecret.generate()
        for text in (repr(secret), str(secret), f"{secret}"):
            assert secret.base32 not in text
            assert "redacted" in text

    def test_not_picklable(self):
        """Secrets refuse serialization."""
        with pytest.raises(TypeError):
            pickle.dumps(SharedSecret.generate())

    def test_not_hashable(self):
        """Secrets are not usable as dict keys."""
        with pytest.raises(TypeError):
            hash(SharedSecret.generate())

    def test_empty_rejected(self):
        """An empty secret is refused."""
        with pytest.raises(ValueError):
            SharedSecret(b"")
        with pytest.raises(ValueError):
            SharedSecret.from_base32("!!!")


class TestEnrollmentURI:
    """Tests for the otpauth:// URI."""

    def test_exact_format(self):
        """Parameter set and order are fixed."""
        uri = build_enrollment_uri("GEZDGNBVGY3TQOJQ", "alice@example.com")
        assert uri == (
            "otpauth://totp/HIVE:alice%40example.com"
            "?secret=GEZDGNBVGY3TQOJQ&issuer=HIVE&algorithm=SHA1&digits=6&period=30"
        )

    def test_encoding(self):
        """Issuer and label are percent-encoded individually."""
        uri = build_enrollment_uri("ABC", "bob smith", issuer="Acme Corp")
        assert uri.startswith("otpauth://totp/Acme%20Corp:bob%20smith?")
        assert "issuer=Acme%20Corp&" in uri

    def test_pyotp_parses(self):
        """pyotp reads back the same secret and parameters."""
        secret = SharedSecret.generate()
        parsed = pyotp.parse_uri(build_enrollment_uri(secret.base32, "carol@example.com"))
        assert parsed.secret == secret.base32
        assert parsed.issuer == "HIVE"
        assert parsed.name == "carol@example.com"
        assert parsed.digits == 6
        assert parsed.interval == 30

    def test_query_keys(self):
        """Query keys appear in the documented order."""
        query = urlsplit(build_enrollment_uri("ABC", "x")).query
        assert [k for k, _ in parse_qsl(query)] == ["secret", "issuer", "algorithm", "digits", "period"]

    def test_qr_ascii(self):
        """ASCII QR rendering produces a block of text."""
        art = render_qr_ascii(build_enrollment_uri("GEZDGNBVGY3TQOJQ", "alice"))
        assert len(art.splitlines()) > 10

    def test_qr_svg(self):
        """SVG QR rendering produces an SVG document."""
        svg = render_qr_svg(build_enrollment_uri("GEZDGNBVGY3TQOJQ", "alice"))
        assert "<svg" in svg


class TestBackupCodes:
    """Tests for backup code generation and hashing."""

    def test_batch_size_and_format(self):
        """Ten XXXX-XXXX codes by default."""
        codes = generate_backup_codes()
        assert len(codes) == BACKUP_CODE_COUNT
        for code in codes:
            assert re.fullmatch(r"[0-9A-F]{4}-[0-9A-F]{4}", code)

    def test_batch_distinct(self):
        """Codes within a batch are distinct."""
        codes = generate_backup_codes(50)
        assert len(set(codes)) == 50

    def test_invalid_count(self):
        """Count must be positive."""
        with pytest.raises(ValueError):
            generate_backup_codes(0)

    def test_normalization(self):
        """Whitespace, hyphens and case do not change the hash."""
        assert normalize_code(" AB cd-12 34 ") == "abcd1234"
        assert hash_backup_code("ABCD-1234") == hash_backup_code("abcd 1234")
        assert hash_backup_code("ABCD-1234") == hash_backup_code("abcd1234")

    def test_hash_is_sha256_hex(self):
        """Stored form is a 64-char hex digest, never the code."""
        digest = hash_backup_code("ABCD-1234")
        assert re.fullmatch(r"[0-9a-f]{64}", digest)
        assert "abcd1234" not in digest

    def test_salt_changes_hash(self):
        """Per-account salt yields different digests."""
        assert hash_backup_code("ABCD-1234", b"acct-1") != hash_backup_code("ABCD-1234")
        assert hash_backup_code("ABCD-1234", b"acct-1") != hash_backup_code("ABCD-1234", b"acct-2")

    def test_hash_set(self):
        """Batch hashing yields one digest per code."""
        codes = generate_backup_codes()
        assert len(hash_backup_codes(codes)) == len(codes)

    def test_shape(self):
        """Only 8 hex characters look like a backup code."""
        assert is_backup_code_shape("abcd1234")
        assert not is_backup_code_shape("123456")
        assert not is_backup_code_shape("abcd12345")
        assert not is_backup_code_shape("wxyz1234")
