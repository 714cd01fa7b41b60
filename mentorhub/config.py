from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./mentorhub.db"

    # JWT Authentication
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Application
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ]

    # Pricing
    DEFAULT_HOURLY_RATE: float = 50.0

    # Meetings
    MEETING_DEFAULT_DELAY_MINUTES: int = 5
    MEETING_LINK_BASE_URL: str = "https://meet.google.com"

    # Scheduled event sweeper
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_POLL_SECONDS: int = 5
    SCHEDULER_BATCH_SIZE: int = 50
    SCHEDULER_MAX_ATTEMPTS: int = 5
    SCHEDULER_BACKOFF_BASE_SECONDS: int = 10

    # Realtime
    REALTIME_QUEUE_SIZE: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )


settings = Settings()
