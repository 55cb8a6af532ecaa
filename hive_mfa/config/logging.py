"""Logging configuration with secret redaction and JSON format support."""

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, Dict

REDACTED = "[REDACTED]"
MAX_DEPTH = 10

# Keys whose values are always redacted
SENSITIVE_KEYS = frozenset({
    "password", "passwd", "secret", "token", "api_key", "apikey",
    "authorization", "auth", "bearer", "credential", "credentials",
    "private_key", "access_token", "refresh_token", "session", "cookie",
    "pin", "otp", "totp", "code", "mfa_code", "backup_code", "backup_codes",
    "recovery_code", "secret_base32", "enrollment_uri", "master_key",
})

# Key suffixes that mark a key as sensitive (mfa_code, db_password, ...)
SENSITIVE_SUFFIXES = ("password", "secret", "token", "_key", "_code")

_OTPAUTH_RE = re.compile(r"otpauth://\S+")
_SECRET_PAIR_RE = re.compile(r"(?i)\b(secret|token|code|password)=([^&\s]+)")

# LogRecord attributes that are never user data
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return lowered in SENSITIVE_KEYS or lowered.endswith(SENSITIVE_SUFFIXES)


def sanitize_log_message(message: str) -> str:
    """Redact enrollment URIs and key=value secrets from free text."""
    message = _OTPAUTH_RE.sub("otpauth://" + REDACTED, message)
    return _SECRET_PAIR_RE.sub(lambda m: f"{m.group(1)}={REDACTED}", message)


def redact(value: Any, depth: int = 0) -> Any:
    """
    Recursively redact sensitive fields from structured data.

    Args:
        value: Dict, list, string or scalar
        depth: Current recursion depth

    Returns:
        A redacted copy of the value
    """
    if depth > MAX_DEPTH:
        return "[MAX_DEPTH_EXCEEDED]"
    if isinstance(value, dict):
        return {
            k: REDACTED if isinstance(k, str) and is_sensitive_key(k) else redact(v, depth + 1)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [redact(item, depth + 1) for item in value]
    if isinstance(value, str):
        return sanitize_log_message(value)
    return value


class SanitizingFilter(logging.Filter):
    """Filter that redacts secrets, codes and enrollment URIs from records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = sanitize_log_message(record.msg)
        if isinstance(record.args, dict):
            record.args = redact(record.args)
        elif record.args:
            record.args = tuple(redact(arg) for arg in record.args)

        # Fields passed through `extra=`
        for key in list(vars(record)):
            if key in _RECORD_ATTRS:
                continue
            value = getattr(record, key)
            setattr(record, key, REDACTED if is_sensitive_key(key) else redact(value))
        return True


class JSONFormatter(logging.Formatter):
    """Format log records as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Standard text formatter with consistent format."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def configure_logging(
    level: str = "INFO", format: str = "text", sanitize_logs: bool = True
) -> logging.Handler:
    """Configure package logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format ('text' or 'json')
        sanitize_logs: If True, redact secrets and codes from logs

    Returns:
        The installed handler
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))

    if format.lower() == "json":
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(TextFormatter())

    if sanitize_logs:
        console_handler.addFilter(SanitizingFilter())

    root_logger.addHandler(console_handler)
    return console_handler
