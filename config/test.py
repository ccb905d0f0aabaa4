from __future__ import annotations

from pydantic_settings import SettingsConfigDict

from config.base import CommonSettings


class TestSettings(CommonSettings):
    DATABASE_URL: str | None = "sqlite+aiosqlite:///./test_civic_reports.db"
    APP_ENV: str = "test"
    DEBUG: bool = False
    SECRET_KEY: str | None = "test-access-secret"
    REFRESH_SECRET_KEY: str | None = "test-refresh-secret"
    UPLOAD_DIR: str = "test_uploads"
    MAIL_ENABLED: bool = False

    model_config = SettingsConfigDict(env_prefix="TEST_", extra="ignore")
