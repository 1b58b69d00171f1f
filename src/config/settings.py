from __future__ import annotations

from functools import lru_cache

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str
    log_level: str = "INFO"
    environment: str = "dev"
    # Verified user id injected by the upstream auth gateway
    identity_header: str = "X-User-ID"
    # CORS
    cors_allow_origins: str = "*"
    # Shared secret for the cron-triggered system endpoints
    cron_secret: SecretStr | None = None
    # Localisation
    default_locale: str = "th"  # th | en
    app_timezone: str = "Asia/Bangkok"
    # Scheduler tuning
    reminder_lead_minutes: int = 30
    # Reminder horizon of the daily run; covers the gap until the next run
    daily_reminder_window_minutes: int = 1440
    overdue_high_after_days: int = 3
    overdue_urgent_after_days: int = 7
    notification_retention_days: int = 30
    invitation_max_age_days: int = 7
    bulk_insert_batch_size: int = 500
    # Realtime
    realtime_queue_size: int = 100
    # Push (FCM)
    fcm_server_key: SecretStr | None = None  # Legacy HTTP API key
    fcm_project_id: str | None = None  # For HTTP v1
    fcm_service_account_json: SecretStr | None = None  # Service Account JSON (HTTP v1)
    fcm_service_account_file: str | None = None  # Path or inline JSON (HTTP v1)
    # At most push_concurrency sends in flight; backoff doubles per retry
    push_concurrency: int = 10
    push_attempts: int = 3
    push_retry_delay_seconds: float = 2.0

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("database_url")
    @classmethod
    def ensure_asyncpg_scheme(cls, value: str) -> str:
        if value.startswith("postgres://"):
            return value.replace("postgres://", "postgresql+asyncpg://", 1)
        if value.startswith("postgresql://") and "+" not in value.split("://", 1)[0]:
            return value.replace("postgresql://", "postgresql+asyncpg://", 1)
        return value

    @field_validator("overdue_urgent_after_days")
    @classmethod
    def ensure_thresholds_ordered(cls, value: int, info) -> int:
        high = info.data.get("overdue_high_after_days")
        if high is not None and value < high:
            raise ValueError("overdue_urgent_after_days must be >= overdue_high_after_days")
        return value

    @property
    def cors_allow_origins_list(self) -> list[str]:
        """Convert cors_allow_origins string to list"""
        if isinstance(self.cors_allow_origins, str):
            return [v.strip() for v in self.cors_allow_origins.split(",") if v.strip()]
        return self.cors_allow_origins

    def get_fcm_service_account_json(self) -> str | None:
        """
        Return the Service Account JSON string for FCM v1 from either
        fcm_service_account_json (direct JSON) or fcm_service_account_file.
        If fcm_service_account_file starts with '{', treat as inline JSON; otherwise read file.
        """
        if self.fcm_service_account_json:
            return self.fcm_service_account_json.get_secret_value()
        if self.fcm_service_account_file:
            content = self.fcm_service_account_file.strip()
            if content.startswith("{"):
                return content
            try:
                with open(content, encoding="utf-8") as f:
                    return f.read()
            except OSError:
                return None
        return None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
