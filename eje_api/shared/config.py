from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_ENV: str = "development"
    API_PREFIX: str = "/api"
    DATABASE_URL: str = "sqlite:///./_data/eje.db"
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:3001,http://localhost:4200"
    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"
    ACCESS_TTL_MIN: int = 60
    API_KEY: str = ""

    # worker coordination
    LOCK_TIMEOUT_MINUTES: int = 10
    MAX_WORKER_ERRORS: int = 3

    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
