"""Transition Tracker configuration — settings loaded from the environment."""

from typing import Literal

from pydantic_settings import BaseSettings

SortOrder = Literal["asc", "desc"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite:///data/tracker.db"
    database_echo: bool = False

    # CORS (comma-separated origins)
    cors_origins: str = "http://localhost:3000"

    # List endpoints
    default_page_limit: int = 20
    max_page_limit: int = 100

    # Overdue sweep (milestones + tasks past due → OVERDUE)
    overdue_sweep_enabled: bool = True
    overdue_sweep_interval_hours: float = 1.0

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
