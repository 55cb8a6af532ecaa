# HIVE MFA Test Suite
"""
Test suite including:
- Unit tests (Base32, HOTP, TOTP, backup codes, sealing, settings)
- Integration tests (credential lifecycle scenarios)
- Security tests (invalid inputs, replay, concurrency, redaction)

Run with: pytest
"""
