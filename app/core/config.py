from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True)

    # App Settings
    APP_NAME: str = "Record Store"
    PROJECT_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: str = "*"  # Comma-separated string or "*"

    DATABASE_URL: str = "sqlite+aiosqlite:///./records.db"
    DATABASE_ECHO: bool = False

    # Expired records are swept once every N upserts
    STORE_PURGE_EVERY: int = 10

    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Parse ALLOWED_ORIGINS
    @property
    def allowed_origins_list(self) -> List[str]:
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]


settings = Settings()

if settings.STORE_PURGE_EVERY < 1:
    raise ValueError("STORE_PURGE_EVERY must be a positive integer.")
