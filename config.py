"""
Configuration module for the Enlive Salon client core.
Loads environment variables and provides typed configuration.
"""

from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # REST API
    api_base_url: str = "http://localhost:8000"
    api_timeout: float = 30.0  # seconds

    # Fetch cache (seconds)
    fetch_stale_time: float = 5 * 60
    fetch_cache_time: float = 10 * 60
    fetch_retry_count: int = 3
    fetch_retry_delay: float = 1.0
    refetch_on_window_focus: bool = True
    refetch_on_reconnect: bool = True

    # Booking policy
    booking_max_days_ahead: int = 30
    timezone: str = "Asia/Kolkata"

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    environment: str = "development"  # development, staging, production

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def validate_all_required(self) -> None:
        """
        Validate that cache and API settings are coherent.

        Raises:
            ValueError: If a setting is missing or out of range
        """
        problems = []

        if not self.api_base_url or not self.api_base_url.startswith(
            ("http://", "https://")
        ):
            problems.append("api_base_url")

        if self.fetch_stale_time < 0:
            problems.append("fetch_stale_time")

        # An entry must not expire before it goes stale
        if self.fetch_cache_time < self.fetch_stale_time:
            problems.append("fetch_cache_time")

        if self.fetch_retry_count < 0:
            problems.append("fetch_retry_count")

        if self.booking_max_days_ahead < 1:
            problems.append("booking_max_days_ahead")

        if problems:
            raise ValueError(
                f"Missing or invalid configuration: "
                f"{', '.join(problems)}. "
                f"Please check your .env file."
            )


# Global settings instance
settings = Settings()
