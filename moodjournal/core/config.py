from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://moodjournal:moodjournal@db:5432/moodjournal"
    APP_ENV: str = "development"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://myapp.com,https://api.myapp.com"
    CORS_ORIGINS: str = "*"

    LOG_LEVEL: str = "INFO"

    # IANA zone in which an entry's calendar day is taken for streaks.
    REFERENCE_TIMEZONE: str = "UTC"

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def reference_tz(self) -> tzinfo:
        if self.REFERENCE_TIMEZONE.strip().upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.REFERENCE_TIMEZONE.strip())


settings = Settings()
