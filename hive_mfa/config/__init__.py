# Configuration Module
"""
Deployment settings (pydantic-settings, HIVE_MFA_ prefix) and logging
setup with secret redaction.
"""

from .settings import Settings, get_settings
from .logging import (
    configure_logging,
    redact,
    JSONFormatter,
    TextFormatter,
    SanitizingFilter,
)

__all__ = [
    'Settings',
    'get_settings',
    'configure_logging',
    'redact',
    'JSONFormatter',
    'TextFormatter',
    'SanitizingFilter',
]
