"""
Configuration settings for the application
"""

import os
from typing import List, Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./conference_signup.db")

    # Security
    JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me-jwt-secret")
    JWT_ALGORITHM: str = "HS256"
    CRON_SECRET: str = os.getenv("CRON_SECRET", "change-me-cron-secret")
    CANCELLATION_TOKEN_BYTES: int = 32

    # Application
    BASE_URL: str = os.getenv("BASE_URL", "http://localhost:8000")
    APP_TIMEZONE: str = os.getenv("APP_TIMEZONE", "America/Los_Angeles")
    SCHOOL_NAME: str = os.getenv("SCHOOL_NAME", "Quail Run Elementary")
    DEFAULT_SLOT_DURATION_MINUTES: int = 60
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Email
    RESEND_API_KEY: Optional[str] = os.getenv("RESEND_API_KEY")
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "noreply@example.com")

    # Reminder sweep; the window must cover the scheduler's invocation interval
    REMINDER_LEAD_HOURS: int = 24
    REMINDER_WINDOW_MINUTES: int = 60

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # Rate limiting
    RATE_LIMIT_PER_MINUTE: int = 30

    class Config:
        env_file = ".env"

settings = Settings()
