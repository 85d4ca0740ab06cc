"""Application Settings - Central Configuration"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/queueflow.db"
    database_echo: bool = False
    database_busy_timeout: float = 15.0  # seconds a writer waits for the SQLite lock

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"

    # CORS - set to "*" to allow all origins (kiosk/monitor screens on the LAN)
    cors_origins: str = "*"

    # Scheduler
    scheduler_enabled: bool = True
    default_reset_time: str = "00:00"

    # Queue behaviour
    preset_max_count: int = 500
    ticket_number_width: int = 3
    default_recycle_position: int = 3
    default_service_time_seconds: int = 300

    # Environment
    environment: str = "development"
    debug: bool = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string to list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
