from __future__ import annotations

from pydantic_settings import BaseSettings


class CommonSettings(BaseSettings):
    """Fields shared by every environment. Subclasses pick the env file and defaults."""

    DATABASE_URL: str | None = None
    APP_ENV: str = "local"
    DEBUG: bool = False

    # JWT signing keys; access and refresh tokens never share a key
    SECRET_KEY: str | None = None
    REFRESH_SECRET_KEY: str | None = None
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    ACCESS_COOKIE_MAX_AGE: int = 60 * 60 * 24  # 1 day, in seconds

    # Uploads
    UPLOAD_DIR: str = "uploads"
    MAX_FILE_SIZE: int = 5 * 1024 * 1024
    MAX_FILES_PER_COMPLAINT: int = 5

    # Outgoing mail
    MAIL_ENABLED: bool = True
    MAIL_SERVER: str = "smtp.gmail.com"
    MAIL_PORT: int = 587
    MAIL_USERNAME: str = ""
    MAIL_PASSWORD: str = ""
    MAIL_FROM: str | None = None
    MAIL_FROM_NAME: str = "UrbanAssist"
    MAIL_STARTTLS: bool = True
    MAIL_SSL_TLS: bool = False

    MFA_ISSUER: str = "CPRS"

    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None

    @property
    def is_production(self) -> bool:
        return self.APP_ENV in ("prod", "production")
