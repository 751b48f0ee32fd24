"""
Application configuration using Pydantic Settings.

Environment-based infrastructure switching is controlled by the ENVIRONMENT variable.
Scheduling tunables live here so they can be adjusted per deployment.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local", "production"] = "local"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Database
    # ===========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./planning.db"

    # ===========================================
    # Auth
    # ===========================================
    # Authentication is owned by the surrounding platform; locally every
    # bearer token is accepted and mapped to a user id.
    AUTH_PROVIDER: Literal["mock"] = "mock"

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    # ===========================================
    # Calendar defaults
    # ===========================================
    DEFAULT_WORK_START: str = "09:00"
    DEFAULT_HOBBY_START: str = "19:00"
    DEFAULT_LUNCH_START: str = "12:00"
    DEFAULT_LUNCH_DURATION_MINUTES: int = 60

    # ===========================================
    # Allocation
    # ===========================================
    # Availability window = naive day estimate * multiplier, floored at the
    # minimum span and capped at the maximum span.
    AVAILABILITY_WINDOW_MULTIPLIER: float = 3.0
    AVAILABILITY_MIN_WINDOW_DAYS: int = 180
    AVAILABILITY_MAX_WINDOW_DAYS: int = 3650
    # Floor for the average daily hours used by the window estimate
    MIN_AVERAGE_DAILY_HOURS: float = 0.5
    # Hard cap on working days a single allocation may span (5 years)
    MAX_DAYS_TO_PROCESS: int = 1825
    # Ask for an hours-per-day cap when the task needs more than this share
    # of the largest daily capacity
    HOURS_PER_DAY_PROMPT_RATIO: float = 0.5
    # "warn": log and report children that receive less than their estimate
    # "error": fail the distribution phase instead
    CHILD_SHORTFALL_POLICY: Literal["warn", "error"] = "warn"
    # Re-slot tasks that depend on a task whose end date moved
    REPLAN_DEPENDENTS: bool = True


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
