"""
Application configuration and settings
"""
from pydantic_settings import BaseSettings
from typing import List, Optional
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    # Gemini Configuration (rubric grader)
    GEMINI_API_KEY: Optional[str] = None
    GRADER_MODEL: str = "gemini-2.5-flash"
    GRADER_TEMPERATURE: float = 0.2
    GRADER_MAX_OUTPUT_TOKENS: int = 2048
    GRADER_VALIDATION_RETRIES: int = 1

    # Feedback pipeline
    FEEDBACK_TIMEOUT_SECONDS: float = 120.0

    # Supabase Configuration
    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    SESSIONS_TABLE: str = "practice_sessions"

    # API Configuration
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Oral Practice Feedback API"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # CORS
    CORS_ORIGINS: List[str] = [
        "*"
    ]

    # Logging
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
