# Core Cryptography Module
"""
Core encoding and sealing primitives:
- Base32 codec (RFC 4648, permissive decoding)
- AES-256-GCM sealing of secrets at rest
"""
