"""Deployment settings loaded from environment variables."""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..auth.backup_codes import BACKUP_CODE_COUNT
from ..auth.enrollment import DEFAULT_ISSUER
from ..auth.totp import MAX_WINDOW, TOTP_DRIFT_TOLERANCE

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Two-factor settings (env prefix HIVE_MFA_)."""

    model_config = SettingsConfigDict(
        env_prefix="HIVE_MFA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Enrollment
    issuer: str = Field(DEFAULT_ISSUER, description="Issuer shown in authenticator apps")

    # Verification
    verification_window: int = Field(
        TOTP_DRIFT_TOLERANCE,
        description="Accepted clock drift in 30-second steps, each direction",
    )
    conceal_enrollment_state: bool = Field(
        True,
        description="Report validate() on a non-enrolled account as an invalid code",
    )

    # Backup codes
    backup_code_count: int = Field(BACKUP_CODE_COUNT, description="Codes per batch")
    salt_backup_codes: bool = Field(
        False, description="Salt backup-code hashes with the account id"
    )

    # Secret sealing
    secret_master_key: Optional[str] = Field(
        None,
        description="Base64 AES-256 key; when set, stored secrets are sealed",
        repr=False,
    )

    # Logging
    log_level: str = Field("INFO", description="Logging level")
    log_format: str = Field("text", description="Log format: 'text' or 'json'")
    sanitize_logs: bool = Field(True, description="Redact secrets and codes from logs")

    @field_validator("issuer")
    @classmethod
    def _issuer_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("issuer must not be blank")
        if ":" in value:
            raise ValueError("issuer must not contain ':'")
        return value

    @field_validator("verification_window")
    @classmethod
    def _window_in_range(cls, value: int) -> int:
        if value < 0 or value > MAX_WINDOW:
            raise ValueError(f"verification_window must be between 0 and {MAX_WINDOW}")
        return value

    @field_validator("backup_code_count")
    @classmethod
    def _count_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("backup_code_count must be positive")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("text", "json"):
            raise ValueError("log_format must be 'text' or 'json'")
        return value

    @property
    def sealing_enabled(self) -> bool:
        return bool(self.secret_master_key)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    if not settings.sealing_enabled:
        logger.debug("HIVE_MFA_SECRET_MASTER_KEY not set; TOTP secrets stored unsealed")
    return settings
