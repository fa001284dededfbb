"""
Configuration management using Pydantic Settings
"""
from pathlib import Path
from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List

PACKAGE_ROOT = Path(__file__).parent.resolve()
DEFAULT_SEED_CONFIG = PACKAGE_ROOT / "seeding" / "data" / "seed-config.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str = "sqlite:///./mathlearn.db"

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_ENABLED: bool = True
    LESSON_CACHE_TTL: int = 3600  # 1 hour

    # Application
    APP_NAME: str = "MathLearn API"
    APP_VERSION: str = "2.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    PORT: int = 3002
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:3002",
    ]

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_PER_HOUR: int = 1000
    # Proxies whose X-Forwarded-For header is trusted for client identity
    TRUSTED_PROXIES: List[str] = []

    # Learning rules
    DEMO_USER_ID: str = "1"
    XP_PER_CORRECT_ANSWER: int = 10

    # Security
    PASSWORD_SALT_ROUNDS: int = 12

    # Seeding
    SEED_CONFIG_PATH: str = str(DEFAULT_SEED_CONFIG)

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @field_validator("DATABASE_URL")
    @classmethod
    def normalize_database_url(cls, value: str) -> str:
        # Hosted Postgres providers still hand out postgres://
        if value.startswith("postgres://"):
            value = value.replace("postgres://", "postgresql://", 1)
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()


# Global settings instance
settings = Settings()
