"""
Application configuration settings
"""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Engagement Scoring Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = "sqlite:///./engagement.db"

    # Celery
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Scoring
    SESSION_TIMEOUT_SECONDS: float = 5.0
    SCORING_CONCURRENCY: int = 1
    LEAD_SCORE_REFRESH_MINUTES: int = 0  # 0 disables the periodic refresh

    class Config:
        env_file = ".env"
        case_sensitive = True


# Create settings instance
settings = Settings()
