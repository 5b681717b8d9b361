"""Application configuration with environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite:///./questlog.db"

    # JWT Settings
    SECRET_KEY: str = "your-secret-key-change-this-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Password hashing
    BCRYPT_ROUNDS: int = 12

    # Application
    APP_NAME: str = "Questlog API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    # Daily recurrence job
    RECURRENCE_JOB_ENABLED: bool = True
    RECURRENCE_JOB_HOUR: int = 0
    RECURRENCE_JOB_MINUTE: int = 5

    class Config:
        env_file = ".env"
        case_sensitive = True


# Create global settings instance
settings = Settings()
